# backend/models/stock.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Largest value a 32-bit Integer column holds (PostgreSQL INTEGER)
MAX_QUANTITY = 2**31 - 1

# Per-product stock counters.
# quantity_available is a persisted copy of max(0, on_hand - reserved),
# rewritten by the ledger on every movement.
class StockRecord(Base):
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"),
        unique=True, nullable=False, index=True,
    )

    quantity_on_hand = Column(Integer, CheckConstraint("quantity_on_hand >= 0"), nullable=False, default=0)
    quantity_reserved = Column(Integer, CheckConstraint("quantity_reserved >= 0"), nullable=False, default=0)
    quantity_available = Column(Integer, nullable=False, default=0)

    # Advisory thresholds for the admin console
    low_stock_threshold = Column(Integer, CheckConstraint("low_stock_threshold >= 0"), nullable=False, default=10)
    reorder_point = Column(Integer, CheckConstraint("reorder_point >= 0"), nullable=False, default=5)
    reorder_quantity = Column(Integer, CheckConstraint("reorder_quantity >= 0"), nullable=False, default=50)

    last_restocked_at = Column(DateTime(timezone=True), nullable=True)
    last_counted_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="inventory")


# Append-only log of stock changes; rows are never updated
class StockMovement(Base):
    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    # in / out / adjustment
    kind = Column(String(20), nullable=False, index=True)

    # Signed delta after sign coercion (positive for in, negative for out)
    quantity = Column(Integer, nullable=False)
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)

    reason = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    performed_by = Column(Integer, ForeignKey("admin_users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    product = relationship("Product", back_populates="movements")
    admin = relationship("AdminUser")
