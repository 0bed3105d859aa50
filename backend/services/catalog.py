# backend/services/catalog.py
import re
from typing import Optional

from sqlalchemy.orm import Session

from models.category import Category
from models.product import Product
from schemas.product import ProductCreate
from services.errors import ValidationError
from services.stock_ledger import StockLedger, StockThresholds


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def norm_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    s = sku.strip().upper()
    return s if s else None


def ensure_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if category is None:
        raise ValidationError(f"Category {category_id} does not exist")
    return category


def ensure_unique_product(db: Session, *, sku: Optional[str] = None, slug: Optional[str] = None,
                          exclude_id: Optional[int] = None) -> None:
    if sku is not None:
        q = db.query(Product).filter(Product.sku == sku)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ValidationError("Product with this SKU already exists")
    if slug is not None:
        q = db.query(Product).filter(Product.slug == slug)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ValidationError("Product with this slug already exists")


def create_product(
    db: Session,
    ledger: StockLedger,
    payload: ProductCreate,
    created_by: int,
    initial_stock: int = 0,
    thresholds: Optional[StockThresholds] = None,
) -> Product:
    """Create a product together with its stock record.

    Both rows are committed in one transaction; a failure leaves neither.
    """
    sku = norm_sku(payload.sku)
    slug = slugify(payload.slug or payload.name)
    if not sku or not slug:
        raise ValidationError("Name and SKU are required")

    ensure_category(db, payload.category_id)
    ensure_unique_product(db, sku=sku, slug=slug)

    data = payload.model_dump(include=set(ProductCreate.model_fields))
    data.update(sku=sku, slug=slug, created_by=created_by)

    with ledger.repository.transaction():
        product = Product(**data)
        db.add(product)
        db.flush()
        ledger.create_stock_record(product.id, initial_stock, thresholds)

    db.refresh(product)
    return product
