import os

# Keep imports of database.py away from the on-disk development database
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.admin import AdminRole, AdminUser
from models.category import Category
from models.product import Product
from models.users import User
from populate_db import seed_roles
from services.stock_ledger import StockLedger
from services.stock_repository import StockRepository
from utils.tokenJWT import create_access_token


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def ledger(db):
    return StockLedger(StockRepository(db))


@pytest.fixture()
def roles(db):
    roles = seed_roles(db)
    editor = AdminRole(name="catalog_editor", permissions={"can_manage_products": True})
    db.add(editor)
    db.commit()
    roles["catalog_editor"] = editor
    return roles


def _make_admin(db, email, role):
    user = User(email=email, password_hash="not-used", name=email.split("@")[0], role="admin")
    db.add(user)
    db.flush()
    admin = AdminUser(user_id=user.id, role_id=role.id, is_active=True)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def _headers(admin):
    token = create_access_token({"sub": admin.user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def super_admin(db, roles):
    return _make_admin(db, "root@pharmacy.com", roles["super_admin"])


@pytest.fixture()
def editor_admin(db, roles):
    return _make_admin(db, "editor@pharmacy.com", roles["catalog_editor"])


@pytest.fixture()
def auth_headers(super_admin):
    return _headers(super_admin)


@pytest.fixture()
def editor_headers(editor_admin):
    return _headers(editor_admin)


@pytest.fixture()
def category(db, super_admin):
    category = Category(name="Pain Relief", slug="pain-relief", created_by=super_admin.id)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture()
def make_product(db, category, ledger):
    """Product factory; ``on_hand=None`` leaves the product without a stock record."""
    counter = {"n": 0}

    def _make(on_hand=None, reserved=0, low_stock_threshold=10, **fields):
        counter["n"] += 1
        n = counter["n"]
        data = dict(
            name=f"Product {n}", slug=f"product-{n}", sku=f"SKU-{n}",
            category_id=category.id, price=10, images=[],
        )
        data.update(fields)
        product = Product(**data)
        db.add(product)
        db.flush()
        if on_hand is not None:
            record = ledger.create_stock_record(product.id, on_hand)
            record.quantity_reserved = reserved
            record.quantity_available = max(0, on_hand - reserved)
            record.low_stock_threshold = low_stock_threshold
        db.commit()
        db.refresh(product)
        return product

    return _make
