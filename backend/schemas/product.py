# backend/schemas/product.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.base import ORMBase
from schemas.category import CategoryOut


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    sku: str = Field(min_length=1)
    description: Optional[str] = None
    short_description: Optional[str] = None
    category_id: int
    price: float = Field(ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    barcode: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    requires_prescription: bool = False
    manufacturer: Optional[str] = None
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = None


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for PATCH requests - all fields optional
class ProductUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    sku: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    short_description: Optional[str] = None
    category_id: Optional[int] = None
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    barcode: Optional[str] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    requires_prescription: Optional[bool] = None
    manufacturer: Optional[str] = None
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = None


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    slug: str
    category: Optional[CategoryOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int


# Storefront view: no admin metadata, stock reduced to a status
class CatalogProduct(ORMBase):
    id: int
    name: str
    slug: str
    sku: str
    short_description: Optional[str] = None
    description: Optional[str] = None
    price: float
    original_price: Optional[float] = None
    images: List[str] = Field(default_factory=list)
    is_featured: bool = False
    requires_prescription: bool = False
    manufacturer: Optional[str] = None
    category: Optional[CategoryOut] = None
    stock_status: str
    in_stock: bool
    quantity_available: int


class CatalogPage(ORMBase):
    items: List[CatalogProduct]
    total: int
    page: int
    page_size: int
