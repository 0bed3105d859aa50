"""Stock ledger behaviour against a real SQLAlchemy session."""
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from models.stock import MAX_QUANTITY, StockRecord, StockMovement
from services.errors import ValidationError, NotFoundError, PersistenceError
from services.stock_ledger import (
    LookupOutcome, StockLedger, StockStatus, StockThresholds, classify_status, needs_reorder,
)
from services.stock_repository import StockRepository


def _movements(db, product_id):
    return db.query(StockMovement).filter(StockMovement.product_id == product_id).all()


class TestApplyMovement:
    def test_out_reduces_on_hand_and_available(self, db, ledger, make_product, super_admin):
        product = make_product(on_hand=20, reserved=5)

        result = ledger.apply_movement(product.id, "out", 8, "sale", super_admin.id)

        assert result.outcome is LookupOutcome.FOUND
        assert result.record.quantity_on_hand == 12
        assert result.record.quantity_available == 7
        movements = _movements(db, product.id)
        assert len(movements) == 1
        assert movements[0].quantity == -8
        assert movements[0].kind == "out"

    def test_over_withdrawal_is_floored_at_zero(self, db, ledger, make_product, super_admin):
        product = make_product(on_hand=5)

        result = ledger.apply_movement(product.id, "out", 20, "sale", super_admin.id)

        assert result.record.quantity_on_hand == 0
        assert result.record.quantity_available == 0
        assert result.movement.quantity == -20
        assert result.movement.quantity_before == 5
        assert result.movement.quantity_after == 0

    def test_out_without_record_fails_and_writes_nothing(self, db, ledger, make_product, super_admin):
        product = make_product()

        with pytest.raises(NotFoundError):
            ledger.apply_movement(product.id, "out", 5, "sale", super_admin.id)

        assert db.query(StockRecord).filter(StockRecord.product_id == product.id).count() == 0
        assert _movements(db, product.id) == []

    def test_in_without_record_creates_it(self, db, ledger, make_product, super_admin):
        product = make_product()

        result = ledger.apply_movement(product.id, "in", 15, "purchase", super_admin.id)

        assert result.outcome is LookupOutcome.CREATED
        record = result.record
        assert (record.quantity_on_hand, record.quantity_reserved, record.quantity_available) == (15, 0, 15)
        assert (record.low_stock_threshold, record.reorder_point, record.reorder_quantity) == (10, 5, 50)
        assert [m.quantity for m in _movements(db, product.id)] == [15]

    def test_negative_adjustment_without_record_starts_at_zero(self, ledger, make_product, super_admin):
        product = make_product()

        result = ledger.apply_movement(product.id, "adjustment", -4, "damage", super_admin.id)

        assert result.outcome is LookupOutcome.CREATED
        assert result.record.quantity_on_hand == 0
        assert result.movement.quantity == -4

    def test_adjustments_apply_signed_delta_and_clamp(self, ledger, make_product, super_admin):
        product = make_product(on_hand=10)

        first = ledger.apply_movement(product.id, "adjustment", -3, "damage", super_admin.id)
        assert first.record.quantity_on_hand == 7

        second = ledger.apply_movement(product.id, "adjustment", -20, "adjustment", super_admin.id)
        assert second.record.quantity_on_hand == 0

    @pytest.mark.parametrize("kind,quantity,expected", [
        ("in", 5, 5),
        ("in", -5, 5),
        ("out", 5, -5),
        ("out", -5, -5),
        ("adjustment", 5, 5),
        ("adjustment", -5, -5),
    ])
    def test_sign_coercion(self, ledger, make_product, super_admin, kind, quantity, expected):
        product = make_product(on_hand=10)

        result = ledger.apply_movement(product.id, kind, quantity, "adjustment", super_admin.id)

        assert result.movement.quantity == expected
        assert result.record.quantity_on_hand == 10 + expected

    @pytest.mark.parametrize("kind,quantity", [
        ("out", 1), ("out", 10_000), ("adjustment", -999), ("adjustment", 3), ("in", -7),
    ])
    def test_invariants_hold_after_every_movement(self, ledger, make_product, super_admin, kind, quantity):
        product = make_product(on_hand=4, reserved=3)

        record = ledger.apply_movement(product.id, kind, quantity, "adjustment", super_admin.id).record

        assert record.quantity_on_hand >= 0
        assert record.quantity_available == max(0, record.quantity_on_hand - record.quantity_reserved)

    def test_reserved_above_on_hand_leaves_nothing_available(self, ledger, make_product, super_admin):
        product = make_product(on_hand=10, reserved=8)

        record = ledger.apply_movement(product.id, "out", 5, "sale", super_admin.id).record

        assert record.quantity_on_hand == 5
        assert record.quantity_available == 0

    def test_timestamps_use_injected_clock(self, db, make_product, super_admin):
        fixed = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
        ledger = StockLedger(StockRepository(db), clock=lambda: fixed)
        product = make_product(on_hand=1)

        record = ledger.apply_movement(product.id, "in", 2, "purchase", super_admin.id).record

        assert record.last_counted_at.replace(tzinfo=None) == fixed.replace(tzinfo=None)
        assert record.last_restocked_at.replace(tzinfo=None) == fixed.replace(tzinfo=None)
        movement = db.query(StockMovement).filter(StockMovement.product_id == product.id).one()
        assert movement.created_at.replace(tzinfo=None) == fixed.replace(tzinfo=None)

    def test_out_does_not_touch_last_restocked(self, ledger, make_product, super_admin):
        product = make_product(on_hand=3)

        record = ledger.apply_movement(product.id, "out", 1, "sale", super_admin.id).record

        assert record.last_restocked_at is None
        assert record.last_counted_at is not None

    def test_optional_text_is_trimmed(self, ledger, make_product, super_admin):
        product = make_product(on_hand=3)

        movement = ledger.apply_movement(
            product.id, "in", 1, "  purchase ", super_admin.id, reference="   ", notes=" PO-77 ",
        ).movement

        assert movement.reason == "purchase"
        assert movement.reference is None
        assert movement.notes == "PO-77"
        assert movement.performed_by == super_admin.id


class TestValidation:
    @pytest.mark.parametrize("kind", ["transfer", "IN", "", None])
    def test_rejects_unknown_kind(self, ledger, make_product, super_admin, kind):
        product = make_product(on_hand=1)
        with pytest.raises(ValidationError):
            ledger.apply_movement(product.id, kind, 1, "sale", super_admin.id)

    @pytest.mark.parametrize("quantity", [float("nan"), float("inf"), float("-inf"), "5", None, True, 2.5])
    def test_rejects_bad_quantity(self, ledger, make_product, super_admin, quantity):
        product = make_product(on_hand=1)
        with pytest.raises(ValidationError):
            ledger.apply_movement(product.id, "in", quantity, "purchase", super_admin.id)

    @pytest.mark.parametrize("kind,quantity", [
        ("out", 10**20), ("in", 1e300), ("adjustment", -(MAX_QUANTITY + 1)),
    ])
    def test_rejects_quantity_beyond_column_range(self, db, ledger, make_product, super_admin, kind, quantity):
        product = make_product(on_hand=5)
        with pytest.raises(ValidationError):
            ledger.apply_movement(product.id, kind, quantity, "sale", super_admin.id)
        db.expire_all()
        assert db.query(StockRecord).filter(StockRecord.product_id == product.id).one().quantity_on_hand == 5
        assert _movements(db, product.id) == []

    def test_accepts_column_maximum(self, ledger, make_product, super_admin):
        product = make_product(on_hand=5)
        result = ledger.apply_movement(product.id, "out", MAX_QUANTITY, "sale", super_admin.id)
        assert result.record.quantity_on_hand == 0
        assert result.movement.quantity == -MAX_QUANTITY

    def test_rejects_receipt_that_overflows_on_hand(self, db, ledger, make_product, super_admin):
        product = make_product(on_hand=MAX_QUANTITY - 1)
        with pytest.raises(ValidationError):
            ledger.apply_movement(product.id, "in", 2, "purchase", super_admin.id)
        db.expire_all()
        assert db.query(StockRecord).filter(StockRecord.product_id == product.id).one().quantity_on_hand == MAX_QUANTITY - 1
        assert _movements(db, product.id) == []

    def test_rejected_quantity_does_not_create_record(self, db, ledger, make_product, super_admin):
        product = make_product()
        with pytest.raises(ValidationError):
            ledger.apply_movement(product.id, "in", MAX_QUANTITY + 1, "purchase", super_admin.id)
        assert db.query(StockRecord).filter(StockRecord.product_id == product.id).count() == 0

    def test_accepts_integral_float(self, ledger, make_product, super_admin):
        product = make_product(on_hand=1)
        result = ledger.apply_movement(product.id, "in", 4.0, "purchase", super_admin.id)
        assert result.movement.quantity == 4

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_requires_reason(self, db, ledger, make_product, super_admin, reason):
        product = make_product(on_hand=1)
        with pytest.raises(ValidationError):
            ledger.apply_movement(product.id, "in", 1, reason, super_admin.id)
        assert _movements(db, product.id) == []


class TestAtomicity:
    def test_failed_insert_rolls_back_record_update(self, db, ledger, make_product, super_admin, monkeypatch):
        product = make_product(on_hand=10)

        def broken_insert(movement):
            raise OperationalError("INSERT INTO inventory_transactions", {}, Exception("disk I/O error"))

        monkeypatch.setattr(ledger.repository, "add_movement", broken_insert)

        with pytest.raises(PersistenceError):
            ledger.apply_movement(product.id, "out", 3, "sale", super_admin.id)

        record = db.query(StockRecord).filter(StockRecord.product_id == product.id).one()
        assert record.quantity_on_hand == 10
        assert _movements(db, product.id) == []

    def test_failed_insert_does_not_leave_created_record(self, db, ledger, make_product, super_admin, monkeypatch):
        product = make_product()

        def broken_insert(movement):
            raise OperationalError("INSERT INTO inventory_transactions", {}, Exception("locked"))

        monkeypatch.setattr(ledger.repository, "add_movement", broken_insert)

        with pytest.raises(PersistenceError):
            ledger.apply_movement(product.id, "in", 3, "purchase", super_admin.id)

        assert db.query(StockRecord).filter(StockRecord.product_id == product.id).count() == 0


class TestCreateStockRecord:
    def test_negative_initial_stock_is_clamped(self, db, ledger, make_product):
        product = make_product()

        record = ledger.create_stock_record(product.id, -12)
        db.commit()

        assert (record.quantity_on_hand, record.quantity_reserved, record.quantity_available) == (0, 0, 0)

    def test_thresholds_override_defaults(self, db, ledger, make_product):
        product = make_product()

        record = ledger.create_stock_record(product.id, 30, StockThresholds(3, 2, 100))
        db.commit()

        assert record.quantity_available == 30
        assert (record.low_stock_threshold, record.reorder_point, record.reorder_quantity) == (3, 2, 100)


    def test_initial_stock_beyond_column_range(self, ledger, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            ledger.create_stock_record(product.id, MAX_QUANTITY + 1)


class TestClassifyStatus:
    @pytest.mark.parametrize("on_hand,expected", [
        (0, StockStatus.OUT_OF_STOCK),
        (1, StockStatus.LOW_STOCK),
        (10, StockStatus.LOW_STOCK),
        (11, StockStatus.IN_STOCK),
    ])
    def test_status_boundaries(self, on_hand, expected):
        record = StockRecord(quantity_on_hand=on_hand, low_stock_threshold=10)
        assert classify_status(record) is expected
        assert classify_status(record) is classify_status(record)

    def test_needs_reorder(self):
        assert needs_reorder(StockRecord(quantity_on_hand=5, reorder_point=5))
        assert not needs_reorder(StockRecord(quantity_on_hand=6, reorder_point=5))
