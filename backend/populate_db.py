"""Seeds roles, the first super admin, pharmacy categories and sample stock.

Safe to run repeatedly: existing rows are left untouched.

    python backend/populate_db.py [--no-samples]
"""
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from config import settings
from database import SessionLocal, init_db
from models.users import User
from models.admin import AdminRole, AdminUser, DEFAULT_ROLE_PERMISSIONS
from models.category import Category
from models.product import Product
from schemas.product import ProductCreate
from services.catalog import create_product, slugify
from services.stock_repository import StockRepository
from services.stock_ledger import StockLedger
from utils.hashing import get_password_hash

CATEGORIES = [
    ("Pain Relief", "Analgesics and anti-inflammatories"),
    ("Cold & Flu", "Decongestants, cough syrups and lozenges"),
    ("Vitamins & Supplements", "Daily vitamins, minerals and supplements"),
    ("First Aid", "Bandages, antiseptics and wound care"),
    ("Personal Care", "Skin, hair and oral care"),
    ("Prescription Medicines", "Dispensed against a valid prescription"),
]

# (name, sku, category, price, initial stock, requires prescription)
SAMPLE_PRODUCTS = [
    ("Paracetamol 500mg Tablets", "PARA-500", "Pain Relief", 4.50, 120, False),
    ("Ibuprofen 200mg Tablets", "IBU-200", "Pain Relief", 5.20, 8, False),
    ("Vitamin C 1000mg", "VITC-1000", "Vitamins & Supplements", 9.99, 60, False),
    ("Cough Syrup 100ml", "COUGH-100", "Cold & Flu", 6.75, 0, False),
    ("Adhesive Bandages x40", "BAND-40", "First Aid", 3.10, 200, False),
    ("Amoxicillin 500mg Capsules", "AMOX-500", "Prescription Medicines", 12.00, 35, True),
]


def seed_roles(session):
    roles = {}
    for name, permissions in DEFAULT_ROLE_PERMISSIONS.items():
        role = session.query(AdminRole).filter(AdminRole.name == name).first()
        if role is None:
            role = AdminRole(name=name, description=name.replace("_", " ").title(), permissions=permissions)
            session.add(role)
            print(f"Created role {name}")
        roles[name] = role
    session.commit()
    return roles


def seed_super_admin(session, email=None, password=None):
    email = (email or settings.SEED_ADMIN_EMAIL).strip().lower()
    role = session.query(AdminRole).filter(AdminRole.name == "super_admin").one()

    user = session.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, password_hash=get_password_hash(password or settings.SEED_ADMIN_PASSWORD),
                    name="Super Admin", role="admin")
        session.add(user)
        session.flush()
        print(f"Created user {email}")

    admin = session.query(AdminUser).filter(AdminUser.user_id == user.id).first()
    if admin is None:
        admin = AdminUser(user_id=user.id, role_id=role.id, is_active=True)
        session.add(admin)
        print(f"Granted super_admin to {email}")
    session.commit()
    return admin


def seed_categories(session, admin):
    categories = {}
    for order, (name, description) in enumerate(CATEGORIES):
        category = session.query(Category).filter(Category.name == name).first()
        if category is None:
            category = Category(name=name, slug=slugify(name), description=description,
                                sort_order=order, created_by=admin.id)
            session.add(category)
        categories[name] = category
    session.commit()
    return categories


def seed_sample_products(session, admin, categories):
    ledger = StockLedger(StockRepository(session))
    created = 0
    for name, sku, category_name, price, stock, prescription in SAMPLE_PRODUCTS:
        if session.query(Product).filter(Product.sku == sku).first():
            continue
        payload = ProductCreate(
            name=name, sku=sku, category_id=categories[category_name].id,
            price=price, requires_prescription=prescription,
        )
        create_product(session, ledger, payload, created_by=admin.id, initial_stock=stock)
        created += 1
    print(f"Inserted {created} sample products.")
    return created


def populate_database(session=None, with_samples=True):
    """Main execution function to populate database."""
    own_session = session is None
    session = session or SessionLocal()
    try:
        seed_roles(session)
        admin = seed_super_admin(session)
        categories = seed_categories(session, admin)
        if with_samples:
            seed_sample_products(session, admin, categories)
    finally:
        if own_session:
            session.close()


if __name__ == "__main__":
    init_db()
    populate_database(with_samples="--no-samples" not in sys.argv)
