# backend/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional, Literal
from sqlalchemy.orm import Session
from database import get_db
from models.users import User
from models.admin import AdminUser, AdminRole
from utils.tokenJWT import get_current_admin, permission_required
from utils.audit import write_log, client_ip
from schemas.user import AdminResponse, AdminRoleResponse, PaginatedUsersResponse, RoleUpdate

router = APIRouter(prefix="/admin", tags=["Admin"])

can_manage_admins = permission_required("can_manage_admins")


# Current admin with role and permissions; used by the console to shape its menus
@router.get("/status", response_model=AdminResponse)
def admin_status(admin: AdminUser = Depends(get_current_admin)):
    return admin


@router.get("/roles", response_model=List[AdminRoleResponse])
def list_roles(db: Session = Depends(get_db), admin: AdminUser = Depends(can_manage_admins)):
    return db.query(AdminRole).order_by(AdminRole.id.asc()).all()


# Retrieve a list of users with their admin role, filtered and paginated
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail or name"),
    admins_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "name"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_admins),
):
    query = db.query(User)

    if q:
        like = f"%{q.lower()}%"
        query = query.filter(User.email.ilike(like) | User.name.ilike(like))
    if admins_only:
        query = query.join(AdminUser, AdminUser.user_id == User.id)

    sort_map = {"id": User.id, "email": User.email, "name": User.name}
    col = sort_map[sort_by]
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    items = []
    for u in users:
        items.append({
            "id": u.id, "email": u.email, "name": u.name, "role": u.role,
            "admin_role": u.admin.role.name if u.admin else None,
            "admin_active": u.admin.is_active if u.admin else None,
        })

    return {"items": items, "total": total, "page": page, "page_size": page_size}


# Grant an admin role to a user or change the role of an existing admin
@router.put("/users/{user_id}/role", response_model=AdminResponse)
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_admins),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    role = db.query(AdminRole).filter(AdminRole.name == payload.role).first()
    if not role:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown admin role '{payload.role}'")

    target = user.admin
    if target is None:
        target = AdminUser(user_id=user.id, role_id=role.id, is_active=True, created_by=admin.user_id)
        db.add(target)
    else:
        target.role_id = role.id
        target.is_active = True
    user.role = "admin"
    db.commit()
    db.refresh(target)

    write_log(
        db, user_id=admin.user_id, action="ADMIN_ROLE_SET", resource="admin_users",
        status="SUCCESS", ip=client_ip(request), meta={"user_id": user.id, "role": role.name},
    )
    return target


# Revoke back-office access; the storefront account stays
@router.delete("/users/{user_id}/role")
def revoke_admin(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(can_manage_admins),
):
    target = db.query(AdminUser).filter(AdminUser.user_id == user_id).first()
    if not target or not target.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    if target.id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot revoke your own admin access")

    target.is_active = False
    db.commit()

    write_log(
        db, user_id=admin.user_id, action="ADMIN_REVOKE", resource="admin_users",
        status="SUCCESS", ip=client_ip(request), meta={"user_id": user_id},
    )
    return {"message": "Admin access revoked"}
