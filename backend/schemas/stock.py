# backend/schemas/stock.py
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, RootModel

from models.stock import MAX_QUANTITY
from schemas.base import ORMBase
from schemas.product import ProductCreate

# Allowed kinds of stock movement
StockMovementType = Literal["in", "out", "adjustment"]


# Body of {"action": "adjust-inventory", ...}
class AdjustInventoryRequest(ORMBase):
    action: Literal["adjust-inventory"]
    product_id: int
    type: StockMovementType
    # Validated as a finite whole number by the ledger
    quantity: float
    reason: str
    reference: Optional[str] = None
    notes: Optional[str] = None


# Body of {"action": "create-product", ...}: product plus its opening stock
class CreateProductRequest(ProductCreate):
    action: Literal["create-product"]
    initial_stock: int = Field(default=0, le=MAX_QUANTITY)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0, le=MAX_QUANTITY)
    reorder_point: Optional[int] = Field(default=None, ge=0, le=MAX_QUANTITY)
    reorder_quantity: Optional[int] = Field(default=None, ge=0, le=MAX_QUANTITY)


class InventoryActionRequest(RootModel[Annotated[
    Union[AdjustInventoryRequest, CreateProductRequest], Field(discriminator="action")
]]):
    pass


class StockRecordOut(ORMBase):
    product_id: int
    quantity_on_hand: int
    quantity_reserved: int
    quantity_available: int
    low_stock_threshold: int
    reorder_point: int
    reorder_quantity: int
    last_restocked_at: Optional[datetime] = None
    last_counted_at: Optional[datetime] = None
    notes: Optional[str] = None
    status: str
    needs_reorder: bool


class StockMovementOut(ORMBase):
    id: int
    product_id: int
    kind: str
    quantity: int
    quantity_before: int
    quantity_after: int
    reason: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    performed_by: int
    created_at: Optional[datetime] = None
    product_name: Optional[str] = None
    product_sku: Optional[str] = None


# Paginated response for stock movement history
class StockMovementPage(ORMBase):
    items: List[StockMovementOut]
    total: int
    page: int
    page_size: int


class AdjustInventoryResponse(ORMBase):
    message: str
    transaction: StockMovementOut
    inventory: StockRecordOut


class InventoryProduct(ORMBase):
    id: int
    name: str
    sku: str
    is_active: bool
    category_name: Optional[str] = None


class InventoryItem(ORMBase):
    product: InventoryProduct
    inventory: StockRecordOut


class InventoryStats(ORMBase):
    total_products: int
    low_stock_items: int
    out_of_stock_items: int
    reorder_items: int


class InventoryOverview(ORMBase):
    inventory: List[InventoryItem]
    recent_transactions: List[StockMovementOut]
    stats: InventoryStats


# Advisory settings edited from the admin console
class ThresholdUpdate(ORMBase):
    low_stock_threshold: Optional[int] = Field(None, ge=0, le=MAX_QUANTITY)
    reorder_point: Optional[int] = Field(None, ge=0, le=MAX_QUANTITY)
    reorder_quantity: Optional[int] = Field(None, ge=0, le=MAX_QUANTITY)
    notes: Optional[str] = None


# Schema for a single line of a bulk delivery
class DeliveryItem(ORMBase):
    product_id: int
    quantity: int = Field(le=MAX_QUANTITY)


# Schema for registering a bulk stock delivery
class DeliveryCreate(ORMBase):
    items: List[DeliveryItem]
    reason: str = "purchase"
    reference: Optional[str] = None
    notes: Optional[str] = None


class DeliveryResult(ORMBase):
    message: str
    applied: List[StockMovementOut]
    skipped: List[int]
