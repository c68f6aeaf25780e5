# storefront/models/counter.py

from sqlalchemy import Column, Integer, String
from storefront.utils.database import Base

class Counter(Base):
    __tablename__ = "counters"

    name  = Column(String, primary_key=True)              # "order", "customer"
    value = Column(Integer, nullable=False, default=0)    # последнее выданное значение
