# backend/routes/categories.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.admin import AdminUser
from models.category import Category
from models.product import Product
from utils.tokenJWT import permission_required
from utils.audit import write_log, client_ip
from services.catalog import slugify
import schemas.category as category_schemas

router = APIRouter(prefix="/admin/categories", tags=["Categories"])

can_manage_categories = permission_required("can_manage_categories")


def _ensure_unique(db: Session, name: str, slug: str, exclude_id: int = None):
    q = db.query(Category).filter((Category.name == name) | (Category.slug == slug))
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=400, detail="Category with this name or slug already exists")


@router.get("", response_model=category_schemas.CategoryPage)
def list_categories(
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_categories),
):
    items = db.query(Category).order_by(Category.sort_order.asc(), Category.name.asc()).all()
    return {"items": items, "total": len(items)}


@router.post("", response_model=category_schemas.CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: category_schemas.CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_categories),
):
    name = payload.name.strip()
    slug = slugify(payload.slug or name)
    _ensure_unique(db, name, slug)

    category = Category(**payload.model_dump(exclude={"name", "slug"}), name=name, slug=slug, created_by=admin.id)
    db.add(category)
    db.commit()
    db.refresh(category)

    write_log(
        db, user_id=admin.user_id, action="CATEGORY_CREATE", resource="categories",
        status="SUCCESS", ip=client_ip(request), meta={"id": category.id, "slug": category.slug},
    )
    return category


@router.patch("/{category_id}", response_model=category_schemas.CategoryOut)
def update_category(
    category_id: int,
    payload: category_schemas.CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_categories),
):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        if "slug" not in changes:
            changes["slug"] = changes["name"]
    if "slug" in changes:
        changes["slug"] = slugify(changes["slug"])
    _ensure_unique(db, changes.get("name", category.name), changes.get("slug", category.slug), exclude_id=category.id)

    for key, value in changes.items():
        setattr(category, key, value)
    db.commit()
    db.refresh(category)

    write_log(
        db, user_id=admin.user_id, action="CATEGORY_UPDATE", resource="categories",
        status="SUCCESS", ip=client_ip(request), meta={"id": category.id},
    )
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_categories),
):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    in_use = db.query(Product).filter(Product.category_id == category.id).count()
    if in_use:
        raise HTTPException(status_code=400, detail=f"Category is used by {in_use} products")

    db.delete(category)
    db.commit()
    write_log(
        db, user_id=admin.user_id, action="CATEGORY_DELETE", resource="categories",
        status="SUCCESS", ip=client_ip(request), meta={"id": category_id},
    )
    return {"message": "Category deleted successfully"}
