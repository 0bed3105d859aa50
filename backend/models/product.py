# backend/models/product.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, JSON, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base

# Model Product
# A single sellable item of the pharmacy catalog.
# Stock counters live in StockRecord (1:1), the movement history in StockMovement.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    sku = Column(String, unique=True, nullable=False, index=True)

    description = Column(String, nullable=True)
    short_description = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)
    barcode = Column(String, nullable=True)
    images = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    requires_prescription = Column(Boolean, nullable=False, default=False)

    # Pharmacy specific metadata
    manufacturer = Column(String, nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    batch_number = Column(String, nullable=True)

    created_by = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")
    inventory = relationship(
        "StockRecord", back_populates="product", uselist=False,
        cascade="all, delete-orphan",
    )
    movements = relationship(
        "StockMovement", back_populates="product",
        cascade="all, delete-orphan",
    )
