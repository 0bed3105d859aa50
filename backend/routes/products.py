# backend/routes/products.py
from typing import Optional, Literal
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.admin import AdminUser
from models.product import Product
from utils.tokenJWT import permission_required
from utils.audit import write_log, client_ip
from services.catalog import create_product, ensure_category, ensure_unique_product, norm_sku, slugify
from services.stock_ledger import StockLedger
from routes.inventory import get_stock_ledger
import schemas.product as product_schemas

router = APIRouter(prefix="/admin/products", tags=["Products"])

can_manage_products = permission_required("can_manage_products")


def _get_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# =========================
# PRODUCT LIST
# =========================
@router.get("", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name or SKU"),
    category_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: Literal["id", "name", "sku", "price", "created_at"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_products),
):
    query = db.query(Product).options(joinedload(Product.category))

    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.sku.ilike(like)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if is_active is not None:
        query = query.filter(Product.is_active.is_(is_active))

    sort_col = {
        "id": Product.id, "name": Product.name, "sku": Product.sku,
        "price": Product.price, "created_at": Product.created_at,
    }[sort_by]
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": items, "total": total, "page": page, "page_size": page_size}


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_products),
):
    return _get_or_404(db, product_id)


# =========================
# CREATE PRODUCT
# =========================
@router.post("", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_products),
    ledger: StockLedger = Depends(get_stock_ledger),
):
    # Starts with an empty stock record and default thresholds
    product = create_product(db, ledger, payload, created_by=admin.id)

    write_log(
        db, user_id=admin.user_id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "sku": product.sku},
    )
    return product


# =========================
# PARTIAL UPDATE
# =========================
@router.patch("/{product_id}", response_model=product_schemas.ProductOut)
def edit_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_products),
):
    product = _get_or_404(db, product_id)
    changes = payload.model_dump(exclude_unset=True)

    if "sku" in changes:
        changes["sku"] = norm_sku(changes["sku"])
        if changes["sku"] != product.sku:
            ensure_unique_product(db, sku=changes["sku"], exclude_id=product.id)
    if changes.get("name") and changes["name"] != product.name:
        slug = slugify(changes["name"])
        ensure_unique_product(db, slug=slug, exclude_id=product.id)
        changes["slug"] = slug
    if changes.get("category_id") is not None:
        ensure_category(db, changes["category_id"])

    for key, value in changes.items():
        if value is None and key in {"name", "sku", "category_id", "price", "images"}:
            continue
        setattr(product, key, value)

    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=admin.user_id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "fields": sorted(changes)},
    )
    return product


# =========================
# DELETE
# =========================
@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_products),
):
    product = _get_or_404(db, product_id)
    pid, pname = product.id, product.name
    # Stock record and movement history go with the product
    db.delete(product)
    db.commit()
    write_log(
        db, user_id=admin.user_id, action="PRODUCT_DELETE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": pid},
    )
    return {"message": f"Product '{pname}' deleted"}
