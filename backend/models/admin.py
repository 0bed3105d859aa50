# backend/models/admin.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Every permission flag a role can grant
PERMISSIONS = (
    "can_manage_products",
    "can_manage_categories",
    "can_manage_inventory",
    "can_manage_admins",
    "can_view_analytics",
    "can_manage_orders",
    "can_manage_customers",
    "can_manage_settings",
)

# Built-in roles created by populate_db.py
DEFAULT_ROLE_PERMISSIONS = {
    "super_admin": {name: True for name in PERMISSIONS},
    "admin": {
        "can_manage_products": True,
        "can_manage_categories": True,
        "can_manage_inventory": True,
        "can_manage_admins": False,
        "can_view_analytics": False,
        "can_manage_orders": True,
        "can_manage_customers": False,
        "can_manage_settings": False,
    },
}


# Named set of permission flags shared by admin accounts
class AdminRole(Base):
    __tablename__ = "admin_roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String, nullable=True)
    permissions = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def grants(self, permission: str) -> bool:
        return bool((self.permissions or {}).get(permission))


# Back-office identity attached to a storefront user
class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    role_id = Column(Integer, ForeignKey("admin_roles.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="admin", foreign_keys=[user_id])
    role = relationship("AdminRole", lazy="joined")

    def has_permission(self, permission: str) -> bool:
        return bool(self.is_active and self.role and self.role.grants(permission))
