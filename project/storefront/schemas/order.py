# storefront/schemas/order.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from storefront.schemas.base import CamelModel, Money


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    COMPLETE = "Complete"
    FAILED = "Failed"
    REFUNDED = "Refunded"


# ────────────── Контакты покупателя (снимок) ──────────────
class CustomerContact(CamelModel):
    name: str
    email: EmailStr
    phone: str
    address: str = ""
    city: str = ""
    country: str = ""

    @field_validator("name", "phone")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


# ────────────── Позиция заказа ──────────────
class OrderItem(CamelModel):
    product_id: str = Field(..., min_length=1)
    name: str = ""
    price: float = Field(0, ge=0)
    quantity: int = Field(1, ge=1)
    selected_size: Optional[str] = None
    selected_color: Optional[str] = None
    customization: Optional[str] = None


# ────────────── Схема для CREATE (POST /orders) ──────────────
class OrderCreate(CamelModel):
    customer: CustomerContact
    items: List[OrderItem] = Field(..., min_length=1)
    total: Money
    payment_status: Optional[PaymentStatus] = None
    notes: str = ""


# ────────────── Смена статуса ──────────────
class OrderStatusUpdate(CamelModel):
    status: OrderStatus
    payment_status: Optional[PaymentStatus] = None


class ReconcileResponse(CamelModel):
    applied: int


# ────────────── Схема для RESPONSE ──────────────
class Order(CamelModel):
    order_id: str
    customer: CustomerContact
    items: List[OrderItem]
    total: Money
    status: OrderStatus
    payment_status: PaymentStatus
    payment_intent_id: Optional[str] = None
    notes: str = ""
    created_at: datetime
    updated_at: datetime
