# backend/database.py
import importlib

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv

from config import settings

load_dotenv()

# Modules declaring tables on Base.metadata; init_db and alembic/env.py load them all
MODEL_MODULES = (
    "models.users",
    "models.admin",
    "models.category",
    "models.product",
    "models.stock",
    "models.log",
)


def normalize_database_url(url: str) -> str:
    # Heroku/Azure style URLs use the postgres:// scheme, SQLAlchemy needs postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


SQLALCHEMY_DATABASE_URL = normalize_database_url(settings.DATABASE_URL)

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def import_models():
    for module in MODEL_MODULES:
        importlib.import_module(module)


def init_db():
    import_models()
    Base.metadata.create_all(bind=engine)
