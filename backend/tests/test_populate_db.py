from models.admin import AdminRole, AdminUser
from models.category import Category
from models.product import Product
from models.stock import StockMovement, StockRecord
from populate_db import SAMPLE_PRODUCTS, populate_database


def test_seeding_is_idempotent(db):
    populate_database(session=db)
    populate_database(session=db)

    assert db.query(AdminRole).count() == 2
    assert db.query(AdminUser).count() == 1
    assert db.query(Category).count() == 6
    assert db.query(Product).count() == len(SAMPLE_PRODUCTS)
    assert db.query(StockRecord).count() == len(SAMPLE_PRODUCTS)
    # Opening stock is set on the record, not booked as a movement
    assert db.query(StockMovement).count() == 0


def test_sample_stock_levels(db):
    populate_database(session=db)

    cough = db.query(Product).filter(Product.sku == "COUGH-100").one()
    assert cough.inventory.quantity_on_hand == 0
    amox = db.query(Product).filter(Product.sku == "AMOX-500").one()
    assert amox.requires_prescription is True
    assert amox.inventory.quantity_available == 35


def test_without_samples(db):
    populate_database(session=db, with_samples=False)

    assert db.query(Product).count() == 0
    admin = db.query(AdminUser).one()
    assert admin.has_permission("can_manage_admins")
