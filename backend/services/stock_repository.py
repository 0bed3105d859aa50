# backend/services/stock_repository.py
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.stock import StockRecord, StockMovement
from services.errors import PersistenceError

logger = logging.getLogger(__name__)


class StockRepository:
    """Storage handle used by the ledger, backed by one SQLAlchemy session.

    All reads and writes of a single movement happen inside ``transaction()``,
    so the stock record update and the movement insert commit together.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_for_update(self, product_id: int) -> Optional[StockRecord]:
        # Row lock on PostgreSQL; SQLite serializes writers on its own
        return (
            self.db.query(StockRecord)
            .filter(StockRecord.product_id == product_id)
            .with_for_update()
            .first()
        )

    def get(self, product_id: int) -> Optional[StockRecord]:
        return self.db.query(StockRecord).filter(StockRecord.product_id == product_id).first()

    def add_record(self, record: StockRecord) -> StockRecord:
        self.db.add(record)
        self.db.flush()
        return record

    def add_movement(self, movement: StockMovement) -> StockMovement:
        self.db.add(movement)
        self.db.flush()
        return movement

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Stock transaction rolled back")
            raise PersistenceError("Failed to persist inventory change") from e
        except Exception:
            self.db.rollback()
            raise
