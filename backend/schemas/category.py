# backend/schemas/category.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.base import ORMBase


class CategoryBase(ORMBase):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class CategoryCreate(CategoryBase):
    pass


# Schema for partial category updates
class CategoryUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class CategoryOut(CategoryBase):
    id: int
    slug: str
    created_at: Optional[datetime] = None


class CategoryPage(ORMBase):
    items: List[CategoryOut]
    total: int
