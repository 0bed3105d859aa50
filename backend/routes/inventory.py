# backend/routes/inventory.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session, joinedload
from typing import Optional, Literal

from database import get_db
from models.admin import AdminUser
from models.category import Category
from models.product import Product
from models.stock import StockRecord, StockMovement
from utils.tokenJWT import permission_required
from utils.audit import write_log, client_ip
from services.catalog import create_product
from services.stock_repository import StockRepository
from services.stock_ledger import (
    KNOWN_REASONS, MovementKind, StockLedger, StockStatus, StockThresholds, classify_status, needs_reorder,
)
from services.errors import ValidationError
import schemas.stock as stock_schemas

router = APIRouter(prefix="/admin/inventory", tags=["Inventory"])

can_manage_inventory = permission_required("can_manage_inventory")


def get_stock_ledger(db: Session = Depends(get_db)) -> StockLedger:
    return StockLedger(StockRepository(db))


# ---- SERIALIZATION ----
def record_out(record: StockRecord) -> dict:
    return {
        "product_id": record.product_id,
        "quantity_on_hand": record.quantity_on_hand,
        "quantity_reserved": record.quantity_reserved,
        "quantity_available": record.quantity_available,
        "low_stock_threshold": record.low_stock_threshold,
        "reorder_point": record.reorder_point,
        "reorder_quantity": record.reorder_quantity,
        "last_restocked_at": record.last_restocked_at,
        "last_counted_at": record.last_counted_at,
        "notes": record.notes,
        "status": classify_status(record).value,
        "needs_reorder": needs_reorder(record),
    }


def movement_out(m: StockMovement) -> dict:
    return {
        "id": m.id,
        "product_id": m.product_id,
        "kind": m.kind,
        "quantity": m.quantity,
        "quantity_before": m.quantity_before,
        "quantity_after": m.quantity_after,
        "reason": m.reason,
        "reference": m.reference,
        "notes": m.notes,
        "performed_by": m.performed_by,
        "created_at": m.created_at,
        "product_name": m.product.name if m.product else None,
        "product_sku": m.product.sku if m.product else None,
    }


def _thresholds(payload: stock_schemas.CreateProductRequest) -> StockThresholds:
    defaults = StockThresholds.defaults()
    return StockThresholds(
        low_stock_threshold=payload.low_stock_threshold if payload.low_stock_threshold is not None else defaults.low_stock_threshold,
        reorder_point=payload.reorder_point if payload.reorder_point is not None else defaults.reorder_point,
        reorder_quantity=payload.reorder_quantity if payload.reorder_quantity is not None else defaults.reorder_quantity,
    )


# =========================
# OVERVIEW
# =========================
@router.get("", response_model=stock_schemas.InventoryOverview)
def inventory_overview(
    filter: Optional[Literal["low-stock", "out-of-stock", "reorder"]] = Query(None),
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_inventory),
):
    query = (
        db.query(StockRecord)
        .join(Product, StockRecord.product_id == Product.id)
        .options(joinedload(StockRecord.product).joinedload(Product.category))
    )
    if filter == "low-stock":
        query = query.filter(StockRecord.quantity_on_hand <= StockRecord.low_stock_threshold)
    elif filter == "out-of-stock":
        query = query.filter(StockRecord.quantity_on_hand == 0)
    elif filter == "reorder":
        query = query.filter(StockRecord.quantity_on_hand <= StockRecord.reorder_point)

    records = query.order_by(StockRecord.quantity_on_hand.asc(), StockRecord.id.asc()).all()

    recent = (
        db.query(StockMovement)
        .options(joinedload(StockMovement.product))
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(20)
        .all()
    )

    items = []
    for r in records:
        p = r.product
        items.append({
            "product": {
                "id": p.id, "name": p.name, "sku": p.sku, "is_active": p.is_active,
                "category_name": p.category.name if p.category else None,
            },
            "inventory": record_out(r),
        })

    # Low stock counts every record at or under its threshold, empty ones included
    stats = {
        "total_products": len(records),
        "low_stock_items": sum(1 for r in records if r.quantity_on_hand <= r.low_stock_threshold),
        "out_of_stock_items": sum(1 for r in records if classify_status(r) is StockStatus.OUT_OF_STOCK),
        "reorder_items": sum(1 for r in records if needs_reorder(r)),
    }

    return {"inventory": items, "recent_transactions": [movement_out(m) for m in recent], "stats": stats}


# =========================
# ADJUST / CREATE
# =========================
@router.post("")
def inventory_action(
    payload: stock_schemas.InventoryActionRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_inventory),
    ledger: StockLedger = Depends(get_stock_ledger),
):
    action = payload.root

    if isinstance(action, stock_schemas.AdjustInventoryRequest):
        product = db.query(Product).filter(Product.id == action.product_id).first()
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")

        result = ledger.apply_movement(
            product_id=product.id,
            kind=action.type,
            quantity=action.quantity,
            reason=action.reason,
            performed_by=admin.id,
            reference=action.reference,
            notes=action.notes,
        )
        write_log(
            db, user_id=admin.user_id, action="STOCK_ADJUSTMENT", resource="inventory",
            status="SUCCESS", ip=client_ip(request),
            meta={"movement_id": result.movement.id, "product_id": product.id,
                  "kind": result.movement.kind, "quantity": result.movement.quantity},
        )
        return stock_schemas.AdjustInventoryResponse.model_validate({
            "message": "Inventory adjustment successful",
            "transaction": movement_out(result.movement),
            "inventory": record_out(result.record),
        })

    product = create_product(
        db, ledger, action, created_by=admin.id,
        initial_stock=action.initial_stock, thresholds=_thresholds(action),
    )
    write_log(
        db, user_id=admin.user_id, action="PRODUCT_CREATE", resource="inventory",
        status="SUCCESS", ip=client_ip(request),
        meta={"product_id": product.id, "sku": product.sku, "initial_stock": product.inventory.quantity_on_hand},
    )
    response.status_code = 201
    return {
        "message": "Product created successfully",
        "product": {"id": product.id, "name": product.name, "sku": product.sku, "slug": product.slug},
        "inventory": stock_schemas.StockRecordOut.model_validate(record_out(product.inventory)),
    }


# =========================
# DELIVERY
# =========================
@router.post("/delivery", response_model=stock_schemas.DeliveryResult)
def receive_delivery(
    payload: stock_schemas.DeliveryCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_inventory),
    ledger: StockLedger = Depends(get_stock_ledger),
):
    if not payload.items:
        raise ValidationError("Delivery has no items")

    applied, skipped = [], []
    for item in payload.items:
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if item.quantity <= 0 or product is None:
            skipped.append(item.product_id)
            continue
        # One transaction per line; a failed line does not undo earlier ones
        result = ledger.apply_movement(
            product_id=product.id, kind="in", quantity=item.quantity,
            reason=payload.reason, performed_by=admin.id,
            reference=payload.reference, notes=payload.notes,
        )
        applied.append(movement_out(result.movement))

    write_log(
        db, user_id=admin.user_id, action="STOCK_DELIVERY", resource="inventory",
        status="SUCCESS", ip=client_ip(request),
        meta={"applied": len(applied), "skipped": skipped, "reference": payload.reference},
    )
    return {"message": f"Received {len(applied)} items", "applied": applied, "skipped": skipped}


# =========================
# MOVEMENT HISTORY
# =========================
@router.get("/movements", response_model=stock_schemas.StockMovementPage)
def list_movements(
    q: Optional[str] = Query(None),
    type: Optional[stock_schemas.StockMovementType] = Query(None),
    product_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_inventory),
):
    query = db.query(StockMovement).join(Product, StockMovement.product_id == Product.id)

    # Filter by product name or SKU
    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.sku.ilike(like)))
    if type:
        query = query.filter(StockMovement.kind == type)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)

    if order == "desc":
        query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    else:
        query = query.order_by(StockMovement.created_at.asc(), StockMovement.id.asc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": [movement_out(m) for m in items], "total": total, "page": page, "page_size": page_size}


# Choices for the adjustment form
@router.get("/reasons")
def movement_choices(admin: AdminUser = Depends(can_manage_inventory)):
    return {"types": [k.value for k in MovementKind], "reasons": list(KNOWN_REASONS)}


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}")
def get_product_inventory(
    product_id: int,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_inventory),
):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    inventory = None
    if product.inventory is not None:
        inventory = stock_schemas.StockRecordOut.model_validate(record_out(product.inventory))
    category: Optional[Category] = product.category
    return {
        "product": stock_schemas.InventoryProduct.model_validate({
            "id": product.id, "name": product.name, "sku": product.sku,
            "is_active": product.is_active, "category_name": category.name if category else None,
        }),
        "inventory": inventory,
    }


@router.patch("/{product_id}", response_model=stock_schemas.StockRecordOut)
def update_thresholds(
    product_id: int,
    payload: stock_schemas.ThresholdUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_inventory),
):
    record = StockRepository(db).get(product_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No inventory record for this product")

    # Thresholds are NOT NULL; an explicit null only clears notes
    changes = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k == "notes"
    }
    for key, value in changes.items():
        setattr(record, key, value)
    db.commit()
    db.refresh(record)

    write_log(
        db, user_id=admin.user_id, action="INVENTORY_SETTINGS", resource="inventory",
        status="SUCCESS", ip=client_ip(request), meta={"product_id": product_id, **changes},
    )
    return record_out(record)
