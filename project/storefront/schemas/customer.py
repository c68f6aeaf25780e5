# storefront/schemas/customer.py

from datetime import datetime
from enum import Enum
from typing import Optional

from storefront.schemas.base import CamelModel, Money
from storefront.schemas.order import PaymentStatus


class CustomerStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Customer(CamelModel):
    customer_id: str
    customer_name: str
    email: str
    phone: str = ""
    location: str = ""
    total_orders: int
    total_spent: Money
    last_order_date: Optional[datetime] = None
    payment_status: PaymentStatus
    status: CustomerStatus
    created_at: datetime
    updated_at: datetime
