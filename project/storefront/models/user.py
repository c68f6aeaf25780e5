# storefront/models/user.py

from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.sql import func
from storefront.utils.database import Base, UTCDateTime

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)  # автоинкремент
    name = Column(String, nullable=True)
    login = Column(String, unique=True, nullable=False)  # логин
    password = Column(String, nullable=False)            # хэш пароля
    is_admin = Column(Boolean, default=False)            # флаг админа
    timestamp = Column(UTCDateTime(), server_default=func.now())
