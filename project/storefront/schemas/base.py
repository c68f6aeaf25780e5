# storefront/schemas/base.py

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Деньги: точный Decimal, не больше двух знаков после запятой (10.005 отклоняется,
# а не округляется); в JSON отдаются числом
Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=14, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    """
    Базовая схема API: наружу поля в camelCase (orderId, paymentStatus),
    на вход принимаются оба варианта имён.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
