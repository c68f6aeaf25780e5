# storefront/models/customer.py

from sqlalchemy import Column, Integer, String, Numeric
from storefront.utils.database import Base, UTCDateTime

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)  # автоинкремент

    customer_id     = Column(String, unique=True, nullable=False)   # CUST-###
    email           = Column(String, unique=True, nullable=False)   # ключ агрегата
    customer_name   = Column(String, nullable=False)
    phone           = Column(String, nullable=False, default="")
    location        = Column(String, nullable=False, default="")
    total_orders    = Column(Integer, nullable=False, default=0)
    total_spent     = Column(Numeric(14, 2), nullable=False, default=0)
    last_order_date = Column(UTCDateTime(), nullable=True)
    payment_status  = Column(String, nullable=False, default="Pending")
    status          = Column(String, index=True, nullable=False, default="Active")
    created_at      = Column(UTCDateTime(), nullable=False)
    updated_at      = Column(UTCDateTime(), nullable=False)
