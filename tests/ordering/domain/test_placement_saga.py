"""Unit tests for PlacementSaga state and compensation log."""

import pytest
from ordering.placement.errors import FailureReason
from ordering.placement.saga import PlacementSaga, PlacementState


class TestTransitions:
    def test_starts_received(self):
        saga = PlacementSaga("store-001", "cust-001")
        assert saga.state == PlacementState.RECEIVED
        assert saga.history == [PlacementState.RECEIVED]

    def test_happy_path_history(self):
        saga = PlacementSaga("store-001", "cust-001")
        saga.transition(PlacementState.ASSEMBLED)
        saga.transition(PlacementState.RESERVED)
        saga.transition(PlacementState.PERSISTED)

        assert saga.history == [
            PlacementState.RECEIVED,
            PlacementState.ASSEMBLED,
            PlacementState.RESERVED,
            PlacementState.PERSISTED,
        ]

    def test_cannot_skip_reservation(self):
        saga = PlacementSaga("store-001", "cust-001")
        saga.transition(PlacementState.ASSEMBLED)
        with pytest.raises(ValueError):
            saga.transition(PlacementState.PERSISTED)

    @pytest.mark.parametrize("terminal", [PlacementState.PERSISTED, PlacementState.FAILED])
    def test_terminal_states_have_no_exit(self, terminal):
        saga = PlacementSaga("store-001", "cust-001")
        saga.state = terminal
        with pytest.raises(ValueError):
            saga.transition(PlacementState.FAILED)


class TestCompensation:
    def test_compensations_run_newest_first(self):
        saga = PlacementSaga("store-001", "cust-001")
        undone = []
        saga.register("first", lambda: undone.append("first"))
        saga.register("second", lambda: undone.append("second"))

        assert saga.compensate() == 2
        assert undone == ["second", "first"]
        assert saga.pending_compensations == 0

    def test_compensate_with_nothing_registered(self):
        assert PlacementSaga("store-001", "cust-001").compensate() == 0

    def test_fail_compensates_and_records_reason(self):
        saga = PlacementSaga("store-001", "cust-001")
        undone = []
        saga.register("release", lambda: undone.append("release"))
        saga.transition(PlacementState.ASSEMBLED)

        saga.fail(FailureReason.INSUFFICIENT_STOCK)

        assert undone == ["release"]
        assert saga.state == PlacementState.FAILED
        assert saga.failure_reason == FailureReason.INSUFFICIENT_STOCK
