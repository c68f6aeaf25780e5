# storefront/models/order.py

from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, JSON
from storefront.utils.database import Base, UTCDateTime

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)  # автоинкремент

    order_id       = Column(String, unique=True, nullable=False)            # ORD-###
    customer       = Column(JSON, nullable=False)                           # Снимок контактов на момент заказа
    customer_email = Column(String, index=True, nullable=False)             # Email в нижнем регистре
    items          = Column(JSON, nullable=False)                           # Позиции (замороженные копии)
    total          = Column(Numeric(12, 2), nullable=False)  # Сумма от клиента, Decimal
    status         = Column(String, index=True, nullable=False, default="Pending")
    payment_status = Column(String, nullable=False, default="Pending")
    payment_intent_id = Column(String, unique=True, nullable=True)          # Идемпотентность подтверждения
    notes          = Column(Text, nullable=False, default="")
    ledger_applied = Column(Boolean, nullable=False, default=False)         # Учтён в агрегате клиента
    created_at     = Column(UTCDateTime(), index=True, nullable=False)
    updated_at     = Column(UTCDateTime(), nullable=False)
