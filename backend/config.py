# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_pharmacy.db"

    FRONTEND_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Defaults applied to every new stock record unless overridden per product
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10
    DEFAULT_REORDER_POINT: int = 5
    DEFAULT_REORDER_QUANTITY: int = 50

    # Used by populate_db.py to bootstrap the first super admin
    SEED_ADMIN_EMAIL: str = "admin@pharmacy.com"
    SEED_ADMIN_PASSWORD: str = "change-me"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
