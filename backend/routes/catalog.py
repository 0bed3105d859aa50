# backend/routes/catalog.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.category import Category
from models.product import Product
from services.stock_ledger import StockStatus, classify_status
import schemas.product as product_schemas
import schemas.category as category_schemas

router = APIRouter(tags=["Catalog"])


# Public view of a product; products without a stock record are out of stock
def _catalog_item(p: Product) -> product_schemas.CatalogProduct:
    record = p.inventory
    stock_status = classify_status(record) if record is not None else StockStatus.OUT_OF_STOCK
    return product_schemas.CatalogProduct.model_validate({
        "id": p.id, "name": p.name, "slug": p.slug, "sku": p.sku,
        "short_description": p.short_description, "description": p.description,
        "price": p.price, "original_price": p.original_price, "images": p.images or [],
        "is_featured": p.is_featured, "requires_prescription": p.requires_prescription,
        "manufacturer": p.manufacturer, "category": p.category,
        "stock_status": stock_status.value,
        "in_stock": stock_status is not StockStatus.OUT_OF_STOCK,
        "quantity_available": record.quantity_available if record is not None else 0,
    })


def _active_products(db: Session):
    return (
        db.query(Product)
        .join(Category, Product.category_id == Category.id)
        .filter(Product.is_active.is_(True), Category.is_active.is_(True))
        .options(joinedload(Product.category), joinedload(Product.inventory))
    )


@router.get("/products", response_model=product_schemas.CatalogPage)
def browse_products(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None, description="Category slug"),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = _active_products(db)
    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.manufacturer.ilike(like)))
    if category:
        query = query.filter(Category.slug == category)

    total = query.count()
    items = query.order_by(Product.name.asc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_catalog_item(p) for p in items], "total": total, "page": page, "page_size": page_size}


@router.get("/products/featured", response_model=List[product_schemas.CatalogProduct])
def featured_products(
    limit: int = Query(8, ge=1, le=50),
    db: Session = Depends(get_db),
):
    items = (
        _active_products(db)
        .filter(Product.is_featured.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
        .all()
    )
    return [_catalog_item(p) for p in items]


@router.get("/products/{product_id}", response_model=product_schemas.CatalogProduct)
def product_details(product_id: int, db: Session = Depends(get_db)):
    product = _active_products(db).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return _catalog_item(product)


@router.get("/categories", response_model=List[category_schemas.CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return (
        db.query(Category)
        .filter(Category.is_active.is_(True))
        .order_by(Category.sort_order.asc(), Category.name.asc())
        .all()
    )
