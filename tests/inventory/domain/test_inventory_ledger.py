"""Tests for InventoryLedger stock, reserve, release and reads."""

from datetime import datetime

import pytest
from inventory.ledger import (
    ContentionTimeout,
    InsufficientStock,
    InventoryLedger,
    InventoryRecord,
    LedgerError,
    Reservation,
)
from protean.exceptions import ValidationError


class TestStock:
    def test_stock_creates_record_on_first_use(self, ledger):
        assert ledger.record_of("s1", "p1") is None

        assert ledger.stock("s1", "p1", 5) == 5

        record = ledger.record_of("s1", "p1")
        assert isinstance(record, InventoryRecord)
        assert record.quantity_on_hand == 5
        assert isinstance(record.updated_at, datetime)

    def test_stock_adds_to_existing_quantity(self, ledger):
        ledger.stock("s1", "p1", 5)
        assert ledger.stock("s1", "p1", 3) == 8

    def test_keys_are_independent_per_store(self, ledger):
        ledger.stock("s1", "p1", 5)
        ledger.stock("s2", "p1", 2)

        assert ledger.quantity_of("s1", "p1") == 5
        assert ledger.quantity_of("s2", "p1") == 2

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "3", True, None])
    def test_stock_rejects_invalid_quantities(self, ledger, quantity):
        with pytest.raises(ValidationError) as exc:
            ledger.stock("s1", "p1", quantity)
        assert "quantity" in exc.value.messages


class TestReserve:
    def test_reserve_decrements_quantity(self, ledger):
        ledger.stock("s1", "p1", 5)

        reservation = ledger.reserve("s1", "p1", 2)

        assert isinstance(reservation, Reservation)
        assert reservation.quantity == 2
        assert reservation.remaining == 3
        assert ledger.quantity_of("s1", "p1") == 3

    def test_reserve_can_take_everything_on_hand(self, ledger):
        ledger.stock("s1", "p1", 2)

        ledger.reserve("s1", "p1", 2)

        assert ledger.quantity_of("s1", "p1") == 0

    def test_reserve_more_than_on_hand_raises_without_change(self, ledger):
        ledger.stock("s1", "p1", 1)

        with pytest.raises(InsufficientStock) as exc:
            ledger.reserve("s1", "p1", 2)

        assert exc.value.product_id == "p1"
        assert exc.value.requested == 2
        assert exc.value.available == 1
        assert ledger.quantity_of("s1", "p1") == 1

    def test_reserve_unknown_record_is_insufficient_stock(self, ledger):
        with pytest.raises(InsufficientStock) as exc:
            ledger.reserve("s1", "missing", 1)

        assert exc.value.available == 0
        assert ledger.record_of("s1", "missing") is None

    def test_reserve_rejects_non_positive_quantity(self, ledger):
        ledger.stock("s1", "p1", 5)

        with pytest.raises(ValidationError):
            ledger.reserve("s1", "p1", 0)

        assert ledger.quantity_of("s1", "p1") == 5

    def test_identifiers_are_normalized_to_strings(self, ledger):
        ledger.stock(1, 42, 3)

        ledger.reserve("1", "42", 1)

        assert ledger.quantity_of(1, 42) == 2

    def test_reserve_times_out_when_key_is_held(self, ledger):
        ledger.stock("s1", "p1", 5)
        lock = ledger._lock_for(("s1", "p1"))
        lock.acquire()
        try:
            with pytest.raises(ContentionTimeout) as exc:
                ledger.reserve("s1", "p1", 1, timeout=0.05)
        finally:
            lock.release()

        assert exc.value.timeout == 0.05
        assert ledger.quantity_of("s1", "p1") == 5

    def test_ledger_errors_share_a_base_class(self):
        assert issubclass(InsufficientStock, LedgerError)
        assert issubclass(ContentionTimeout, LedgerError)


class TestRelease:
    def test_release_is_the_inverse_of_reserve(self, ledger):
        ledger.stock("s1", "p1", 5)
        reservation = ledger.reserve("s1", "p1", 4)

        ledger.release(reservation.store_id, reservation.product_id, reservation.quantity)

        assert ledger.quantity_of("s1", "p1") == 5

    def test_release_creates_missing_record(self, ledger):
        assert ledger.release("s1", "p1", 2) == 2

    def test_release_rejects_non_positive_quantity(self, ledger):
        with pytest.raises(ValidationError):
            ledger.release("s1", "p1", -3)


class TestReads:
    def test_quantity_of_unknown_record_is_zero(self, ledger):
        assert ledger.quantity_of("s1", "nope") == 0

    def test_records_are_sorted_and_filterable_by_store(self):
        ledger = InventoryLedger()
        ledger.stock("s2", "p1", 1)
        ledger.stock("s1", "p2", 2)
        ledger.stock("s1", "p1", 3)

        assert [(r.store_id, r.product_id) for r in ledger.records()] == [
            ("s1", "p1"),
            ("s1", "p2"),
            ("s2", "p1"),
        ]
        assert [r.quantity_on_hand for r in ledger.records(store_id="s1")] == [3, 2]

    def test_reads_of_unknown_keys_leave_no_trace(self, ledger):
        assert ledger.quantity_of("s1", "ghost") == 0
        assert ledger.record_of("s1", "ghost") is None
        with pytest.raises(InsufficientStock) as exc:
            ledger.reserve("s1", "ghost", 1)

        assert exc.value.available == 0
        assert ledger.records() == []
        assert ledger._locks == {}
