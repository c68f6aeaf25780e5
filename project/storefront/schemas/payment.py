# storefront/schemas/payment.py

from typing import List, Optional

from pydantic import Field

from storefront.schemas.base import CamelModel, Money
from storefront.schemas.order import CustomerContact, Order, OrderItem


class IntentCreate(CamelModel):
    amount: float
    currency: str = "usd"


class IntentCreated(CamelModel):
    client_secret: str
    payment_intent_id: str


class ShippingInfo(CamelModel):
    method: str = ""


class PaymentConfirm(CamelModel):
    payment_intent_id: str = Field(..., min_length=1)
    customer: CustomerContact
    items: List[OrderItem] = Field(..., min_length=1)
    total: Money
    shipping: Optional[ShippingInfo] = None


class PaymentConfirmed(CamelModel):
    success: bool = True
    order: Order
    message: str
