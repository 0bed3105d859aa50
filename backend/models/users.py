# backend/models/users.py
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from database import Base

# Represents a storefront account; back-office access is granted through AdminUser
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="customer")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    admin = relationship(
        "AdminUser", back_populates="user", uselist=False,
        foreign_keys="AdminUser.user_id", cascade="all, delete-orphan",
    )
