"""Order placement saga: assemble, reserve and persist as one all-or-nothing unit.

Flow:
    RECEIVED  → ASSEMBLED  price and validate the lines, build a PENDING order
    ASSEMBLED → RESERVED   reserve every product in ascending product-id order
    RESERVED  → PERSISTED  confirm the order and write header + items together
    any step  → FAILED     run the registered compensations, newest first

Every forward step that changes shared state registers its inverse with the
saga the moment it succeeds, so a failure at any later point releases exactly
what was reserved and nothing more. Callers see either a CONFIRMED order or a
PlacementError, never a lingering reservation or a partial order.

A placement that fails on lock contention is retried from scratch, after its
own rollback, up to ``PlacementSettings.max_attempts`` times.
"""

import threading
import time
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from catalogue.lookup.port import CatalogLookup
from inventory.ledger import ContentionTimeout, InsufficientStock, InventoryLedger
from ordering.order.order import Order
from ordering.placement.assembler import OrderAssembler
from ordering.placement.errors import FailureReason, PlacementError
from ordering.placement.settings import PlacementSettings
from ordering.store.port import OrderStore, PersistenceError

logger = structlog.get_logger(__name__)

# Cancellations of one order never run side by side
_CANCEL_LOCK_STRIPES = 64


class PlacementState(Enum):
    RECEIVED = "Received"
    ASSEMBLED = "Assembled"
    RESERVED = "Reserved"
    PERSISTED = "Persisted"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    PlacementState.RECEIVED: {PlacementState.ASSEMBLED, PlacementState.FAILED},
    PlacementState.ASSEMBLED: {PlacementState.RESERVED, PlacementState.FAILED},
    PlacementState.RESERVED: {PlacementState.PERSISTED, PlacementState.FAILED},
    PlacementState.PERSISTED: set(),  # Terminal
    PlacementState.FAILED: set(),  # Terminal
}


class PlacementSaga:
    """State and compensation log of a single placement attempt."""

    def __init__(self, store_id, customer_id):
        self.store_id = str(store_id)
        self.customer_id = str(customer_id)
        self.state = PlacementState.RECEIVED
        self.history = [PlacementState.RECEIVED]
        self.failure_reason = None
        self._compensations = []

    def transition(self, target):
        if target not in _VALID_TRANSITIONS[self.state]:
            raise ValueError(f"Cannot transition placement from {self.state.value} to {target.value}")
        self.state = target
        self.history.append(target)

    def register(self, description, undo):
        """Record the inverse of a forward step that just succeeded."""
        self._compensations.append((description, undo))

    @property
    def pending_compensations(self) -> int:
        return len(self._compensations)

    def compensate(self) -> int:
        """Undo every registered step, newest first. Returns how many were undone."""
        undone = 0
        while self._compensations:
            description, undo = self._compensations.pop()
            undo()
            undone += 1
            logger.info(
                "Compensated placement step",
                step=description,
                store_id=self.store_id,
                customer_id=self.customer_id,
            )
        return undone

    def fail(self, reason):
        """Compensate, then mark the attempt FAILED."""
        self.compensate()
        self.failure_reason = reason
        self.transition(PlacementState.FAILED)


class OrderPlacement:
    """Places orders against an explicit ledger, catalog and order store."""

    def __init__(
        self,
        ledger: InventoryLedger,
        catalog: CatalogLookup,
        store: OrderStore,
        settings: PlacementSettings | None = None,
    ) -> None:
        self.ledger = ledger
        self.catalog = catalog
        self.store = store
        self.settings = settings or PlacementSettings()
        self.assembler = OrderAssembler(catalog)
        self._cancel_locks = [threading.Lock() for _ in range(_CANCEL_LOCK_STRIPES)]

    # -------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------
    def place_order(self, store_id, customer_id, items, cancel_event: threading.Event | None = None) -> Order:
        """Place an order and return it CONFIRMED, or raise PlacementError."""
        # Read once: every retry assembles from the same lines
        items = list(items or [])
        attempts = self.settings.max_attempts
        with structlog.contextvars.bound_contextvars(store_id=str(store_id), customer_id=str(customer_id)):
            for attempt in range(1, attempts + 1):
                try:
                    return self._attempt(store_id, customer_id, items, cancel_event)
                except PlacementError as exc:
                    if exc.reason != FailureReason.CONTENTION_TIMEOUT or attempt == attempts:
                        raise
                    logger.warning(
                        "Retrying placement after contention",
                        product_id=exc.product_id,
                        attempt=attempt,
                        max_attempts=attempts,
                    )
                    time.sleep(self.settings.retry_backoff * attempt)

    def _attempt(self, store_id, customer_id, items, cancel_event) -> Order:
        saga = PlacementSaga(store_id, customer_id)

        # RECEIVED → ASSEMBLED
        self._check_cancelled(saga, cancel_event)
        try:
            assembled = self.assembler.assemble(store_id, items)
            order = Order.create(store_id=store_id, customer_id=customer_id, lines=assembled.lines)
        except ValidationError as exc:
            saga.fail(FailureReason.VALIDATION)
            raise PlacementError(
                FailureReason.VALIDATION,
                "Order request is invalid",
                messages=exc.messages,
            ) from exc
        saga.transition(PlacementState.ASSEMBLED)

        # ASSEMBLED → RESERVED
        self._check_cancelled(saga, cancel_event)
        try:
            self._reserve_all(saga, assembled.store_id, assembled.reservation_plan())
        except InsufficientStock as exc:
            saga.fail(FailureReason.INSUFFICIENT_STOCK)
            logger.info(
                "Placement failed on insufficient stock",
                store_id=exc.store_id,
                product_id=exc.product_id,
                requested=exc.requested,
                available=exc.available,
            )
            raise PlacementError(
                FailureReason.INSUFFICIENT_STOCK,
                str(exc),
                product_id=exc.product_id,
            ) from exc
        except ContentionTimeout as exc:
            saga.fail(FailureReason.CONTENTION_TIMEOUT)
            raise PlacementError(
                FailureReason.CONTENTION_TIMEOUT,
                str(exc),
                product_id=exc.product_id,
                retryable=True,
            ) from exc
        except BaseException:
            saga.compensate()
            raise
        saga.transition(PlacementState.RESERVED)

        # RESERVED → PERSISTED
        try:
            order.confirm()
            self.store.persist_order(order)
        except PersistenceError as exc:
            saga.fail(FailureReason.PERSISTENCE_ERROR)
            logger.error(
                "Placement failed to persist order",
                order_id=str(order.id),
                store_id=saga.store_id,
                error=str(exc),
            )
            raise PlacementError(
                FailureReason.PERSISTENCE_ERROR,
                str(exc),
                retryable=exc.retryable,
            ) from exc
        except BaseException:
            saga.compensate()
            raise
        saga.transition(PlacementState.PERSISTED)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            store_id=saga.store_id,
            customer_id=saga.customer_id,
            item_count=len(order.items),
            total_amount=order.total_amount,
        )
        return order

    def _reserve_all(self, saga, store_id, plan):
        for product_id, quantity in plan:
            reservation = self.ledger.reserve(store_id, product_id, quantity, timeout=self.settings.lock_timeout)
            saga.register(
                f"release {reservation.quantity} x {reservation.product_id}",
                lambda r=reservation: self.ledger.release(r.store_id, r.product_id, r.quantity),
            )

    @staticmethod
    def _check_cancelled(saga, cancel_event):
        """Honour caller cancellation; only ever called before the first reservation."""
        if cancel_event is not None and cancel_event.is_set():
            saga.fail(FailureReason.CANCELLED)
            raise PlacementError(FailureReason.CANCELLED, "Placement was cancelled by the caller")

    # -------------------------------------------------------------------
    # Cancellation of confirmed orders
    # -------------------------------------------------------------------
    def _cancel_lock_for(self, order_id) -> threading.Lock:
        return self._cancel_locks[hash(str(order_id)) % _CANCEL_LOCK_STRIPES]

    def cancel_order(self, order_id, reason) -> Order:
        """Cancel a stored order and put its quantities back on the shelf.

        The cancelled order is persisted before any stock is released, so a
        failed write leaves both order and inventory exactly as they were.
        Cancellations of the same order are serialized, so its stock is
        released at most once.
        """
        with self._cancel_lock_for(order_id):
            order = self.store.get_order(order_id)
            order.cancel(reason)
            self.store.persist_order(order)

            for product_id, quantity in sorted(order.quantities_by_product().items()):
                self.ledger.release(order.store_id, product_id, quantity)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            store_id=str(order.store_id),
            reason=reason,
        )
        return order
