# backend/services/stock_ledger.py
"""
Stock ledger: per-product stock counters plus an append-only movement log.

Invariants kept on every write:
  - quantity_on_hand never drops below zero (over-withdrawals are floored)
  - quantity_available == max(0, quantity_on_hand - quantity_reserved)

Every movement updates the StockRecord and inserts one StockMovement inside a
single repository transaction.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from config import settings
from models.stock import MAX_QUANTITY, StockRecord, StockMovement
from services.errors import ValidationError, NotFoundError
from services.stock_repository import StockRepository

logger = logging.getLogger(__name__)

# Reasons offered by the admin console; the ledger itself accepts any text
KNOWN_REASONS = ("purchase", "sale", "return", "damage", "expired", "adjustment", "transfer")


class MovementKind(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class StockStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


class LookupOutcome(str, Enum):
    FOUND = "found"
    CREATED = "created"


@dataclass(frozen=True)
class StockThresholds:
    low_stock_threshold: int
    reorder_point: int
    reorder_quantity: int

    @classmethod
    def defaults(cls) -> "StockThresholds":
        return cls(
            low_stock_threshold=settings.DEFAULT_LOW_STOCK_THRESHOLD,
            reorder_point=settings.DEFAULT_REORDER_POINT,
            reorder_quantity=settings.DEFAULT_REORDER_QUANTITY,
        )


@dataclass(frozen=True)
class RecordLookup:
    record: StockRecord
    outcome: LookupOutcome


@dataclass(frozen=True)
class MovementResult:
    movement: StockMovement
    record: StockRecord
    outcome: LookupOutcome


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def available_quantity(on_hand: int, reserved: int) -> int:
    return max(0, on_hand - reserved)


def classify_status(record: StockRecord) -> StockStatus:
    on_hand = record.quantity_on_hand or 0
    if on_hand == 0:
        return StockStatus.OUT_OF_STOCK
    if on_hand <= (record.low_stock_threshold or 0):
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def needs_reorder(record: StockRecord) -> bool:
    return (record.quantity_on_hand or 0) <= (record.reorder_point or 0)


def parse_kind(kind) -> MovementKind:
    try:
        return MovementKind(kind)
    except ValueError:
        raise ValidationError("Invalid adjustment type. Must be 'in', 'out', or 'adjustment'")


def parse_quantity(quantity) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise ValidationError("Quantity must be a finite number")
    if not math.isfinite(quantity):
        raise ValidationError("Quantity must be a finite number")
    if abs(quantity) > MAX_QUANTITY:
        raise ValidationError(f"Quantity must not exceed {MAX_QUANTITY} units")
    if quantity != int(quantity):
        raise ValidationError("Quantity must be a whole number of units")
    return int(quantity)


def signed_delta(kind: MovementKind, quantity: int) -> int:
    if kind is MovementKind.IN:
        return abs(quantity)
    if kind is MovementKind.OUT:
        return -abs(quantity)
    return quantity


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


class StockLedger:
    def __init__(self, repository: StockRepository, clock: Callable[[], datetime] = _utcnow):
        self.repository = repository
        self.clock = clock

    def create_stock_record(
        self,
        product_id: int,
        initial_on_hand: int = 0,
        thresholds: Optional[StockThresholds] = None,
    ) -> StockRecord:
        """Insert the stock record for a new product.

        Runs inside the caller's transaction, so the product and its record
        are committed together.
        """
        thresholds = thresholds or StockThresholds.defaults()
        on_hand = max(0, int(initial_on_hand or 0))
        if on_hand > MAX_QUANTITY:
            raise ValidationError(f"Initial stock must not exceed {MAX_QUANTITY} units")
        record = StockRecord(
            product_id=product_id,
            quantity_on_hand=on_hand,
            quantity_reserved=0,
            quantity_available=on_hand,
            low_stock_threshold=max(0, thresholds.low_stock_threshold),
            reorder_point=max(0, thresholds.reorder_point),
            reorder_quantity=max(0, thresholds.reorder_quantity),
        )
        return self.repository.add_record(record)

    def apply_movement(
        self,
        product_id: int,
        kind,
        quantity,
        reason: Optional[str],
        performed_by: int,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> MovementResult:
        movement_kind = parse_kind(kind)
        units = parse_quantity(quantity)
        reason = _clean(reason)
        if not reason:
            raise ValidationError("Reason is required")
        delta = signed_delta(movement_kind, units)

        with self.repository.transaction():
            lookup = self._find_or_create(product_id, movement_kind)
            record = lookup.record
            now = self.clock()

            before = record.quantity_on_hand
            if before + delta > MAX_QUANTITY:
                raise ValidationError(f"Stock on hand would exceed {MAX_QUANTITY} units")
            after = max(0, before + delta)
            if before + delta < 0:
                logger.warning(
                    f"Stock for product {product_id} floored at 0 "
                    f"(on hand {before}, requested {delta})"
                )

            record.quantity_on_hand = after
            record.quantity_available = available_quantity(after, record.quantity_reserved)
            record.last_counted_at = now
            if movement_kind is MovementKind.IN:
                record.last_restocked_at = now

            movement = self.repository.add_movement(StockMovement(
                product_id=product_id,
                kind=movement_kind.value,
                quantity=delta,
                quantity_before=before,
                quantity_after=after,
                reason=reason,
                reference=_clean(reference),
                notes=_clean(notes),
                performed_by=performed_by,
                created_at=now,
            ))

        logger.info(
            f"Stock movement {movement.id}: product {product_id} {movement_kind.value} "
            f"{delta:+d} -> on hand {record.quantity_on_hand}, available {record.quantity_available}"
        )
        return MovementResult(movement=movement, record=record, outcome=lookup.outcome)

    def _find_or_create(self, product_id: int, kind: MovementKind) -> RecordLookup:
        record = self.repository.get_for_update(product_id)
        if record is not None:
            return RecordLookup(record=record, outcome=LookupOutcome.FOUND)

        if kind is MovementKind.OUT:
            raise NotFoundError("Cannot decrease stock for a product with no existing inventory")

        # Starts empty; the movement itself brings it to the requested level
        record = self.create_stock_record(product_id, 0)
        return RecordLookup(record=record, outcome=LookupOutcome.CREATED)
