"""Inventory ledger: quantity on hand per (store, product), safe under concurrency.

The ledger is the only shared mutable resource of the placement core. Every
change to a quantity goes through ``reserve``, ``release`` or ``stock``, and
each of those runs under the lock of its own (store, product) key:

    reserve:  check quantity >= requested, then decrement  (bounded wait)
    release:  increment                                     (waits for the key)
    stock:    increment, creating the record on first use   (waits for the key)

Operations on one key are therefore linearizable, and the quantity of a
record can never drop below zero. Operations on different keys never wait for
each other.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_LOCK_TIMEOUT = 2.0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class LedgerError(Exception):
    """Base class for recoverable ledger conditions."""


class InsufficientStock(LedgerError):
    """Not enough quantity on hand to satisfy a reservation."""

    def __init__(self, store_id, product_id, requested, available):
        self.store_id = str(store_id)
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {self.product_id} at store {self.store_id}: "
            f"{available} available, {requested} requested"
        )


class ContentionTimeout(LedgerError):
    """The key could not be acquired within the allowed interval. Safe to retry."""

    def __init__(self, store_id, product_id, timeout):
        self.store_id = str(store_id)
        self.product_id = str(product_id)
        self.timeout = timeout
        super().__init__(
            f"Timed out after {timeout}s waiting for product {self.product_id} at store {self.store_id}"
        )


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class InventoryRecord:
    """Point-in-time view of one (store, product) record."""

    store_id: str
    product_id: str
    quantity_on_hand: int
    updated_at: datetime


@dataclass(frozen=True)
class Reservation:
    """Proof of a successful reservation; releasing it is its exact inverse."""

    store_id: str
    product_id: str
    quantity: int
    remaining: int
    reserved_at: datetime


def _validate_quantity(quantity):
    # bool is an int subclass but never a meaningful quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError({"quantity": [f"Quantity must be a positive integer, got {quantity!r}"]})


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class InventoryLedger:
    """Keyed store of on-hand quantities with per-key serialization."""

    def __init__(self, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self.lock_timeout = lock_timeout
        self._quantities: dict[tuple[str, str], int] = {}
        self._updated_at: dict[tuple[str, str], datetime] = {}
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @staticmethod
    def _key(store_id, product_id) -> tuple[str, str]:
        return (str(store_id), str(product_id))

    def _lock_for(self, key) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def _existing_lock(self, key) -> "threading.Lock | None":
        """The key's lock, or None for a key that was never stocked."""
        with self._registry_lock:
            return self._locks.get(key)

    def _serialized(self, key, timeout=None):
        return self._holding(self._lock_for(key), key, timeout=timeout)

    @contextmanager
    def _holding(self, lock, key, timeout=None):
        """Hold ``lock`` for ``key``. ``timeout=None`` waits as long as it takes."""
        acquired = lock.acquire() if timeout is None else lock.acquire(timeout=timeout)
        if not acquired:
            raise ContentionTimeout(key[0], key[1], timeout)
        try:
            yield
        finally:
            lock.release()

    def _increment(self, key, quantity) -> int:
        new_quantity = self._quantities.get(key, 0) + quantity
        self._quantities[key] = new_quantity
        self._updated_at[key] = datetime.now(UTC)
        return new_quantity

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def stock(self, store_id, product_id, quantity) -> int:
        """Receive stock for a product at a store. Creates the record on first use."""
        _validate_quantity(quantity)
        key = self._key(store_id, product_id)
        with self._serialized(key):
            new_quantity = self._increment(key, quantity)

        logger.info(
            "Stock received",
            store_id=key[0],
            product_id=key[1],
            quantity=quantity,
            quantity_on_hand=new_quantity,
        )
        return new_quantity

    def reserve(self, store_id, product_id, quantity, timeout=None) -> Reservation:
        """Atomically take ``quantity`` units off hand.

        Raises ``InsufficientStock`` when fewer units are on hand, and
        ``ContentionTimeout`` when the key stays busy longer than ``timeout``
        (the ledger's ``lock_timeout`` by default). Neither mutates state.
        """
        _validate_quantity(quantity)
        key = self._key(store_id, product_id)
        wait = self.lock_timeout if timeout is None else timeout

        # Keys are only ever created by stock
        lock = self._existing_lock(key)
        if lock is None:
            raise InsufficientStock(key[0], key[1], quantity, 0)

        try:
            with self._holding(lock, key, timeout=wait):
                available = self._quantities.get(key, 0)
                if available < quantity:
                    raise InsufficientStock(key[0], key[1], quantity, available)

                remaining = available - quantity
                self._quantities[key] = remaining
                reserved_at = datetime.now(UTC)
                self._updated_at[key] = reserved_at
        except ContentionTimeout:
            logger.warning(
                "Reservation timed out waiting for stock record",
                store_id=key[0],
                product_id=key[1],
                quantity=quantity,
                timeout=wait,
            )
            raise

        logger.debug(
            "Stock reserved",
            store_id=key[0],
            product_id=key[1],
            quantity=quantity,
            remaining=remaining,
        )
        return Reservation(
            store_id=key[0],
            product_id=key[1],
            quantity=quantity,
            remaining=remaining,
            reserved_at=reserved_at,
        )

    def release(self, store_id, product_id, quantity) -> int:
        """Return ``quantity`` units to the shelf. Never fails for lack of room."""
        _validate_quantity(quantity)
        key = self._key(store_id, product_id)
        with self._serialized(key):
            new_quantity = self._increment(key, quantity)

        logger.debug(
            "Stock released",
            store_id=key[0],
            product_id=key[1],
            quantity=quantity,
            quantity_on_hand=new_quantity,
        )
        return new_quantity

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def quantity_of(self, store_id, product_id) -> int:
        key = self._key(store_id, product_id)
        lock = self._existing_lock(key)
        if lock is None:
            return 0
        with self._holding(lock, key):
            return self._quantities.get(key, 0)

    def record_of(self, store_id, product_id) -> InventoryRecord | None:
        key = self._key(store_id, product_id)
        lock = self._existing_lock(key)
        if lock is None:
            return None
        with self._holding(lock, key):
            if key not in self._quantities:
                return None
            return InventoryRecord(
                store_id=key[0],
                product_id=key[1],
                quantity_on_hand=self._quantities[key],
                updated_at=self._updated_at[key],
            )

    def records(self, store_id=None) -> list[InventoryRecord]:
        """Snapshot every record, optionally limited to one store, ordered by key."""
        with self._registry_lock:
            keys = sorted(self._locks)

        snapshots = []
        for store, product in keys:
            if store_id is not None and store != str(store_id):
                continue
            record = self.record_of(store, product)
            if record is not None:
                snapshots.append(record)
        return snapshots
