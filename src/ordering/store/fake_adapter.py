"""Configurable in-memory order store for development and testing.

Can be told to fail the next writes, which is how tests drive the saga's
persistence-failure path. Orders go in and come out as copies, so a caller
mutating what it read never touches the stored state.
"""

import copy
import threading

from ordering.order.order import Order
from ordering.store.port import OrderNotFound, OrderStore, PersistenceError


class FakeOrderStore(OrderStore):
    """Configurable fake order store."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Database unavailable"
        self.retryable: bool = True
        self.orders: dict[str, Order] = {}
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def configure(self, should_succeed: bool, failure_reason: str = "Database unavailable", retryable=True) -> None:
        """Configure store behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.retryable = retryable

    def persist_order(self, order: Order) -> None:
        with self._lock:
            self.calls.append({"method": "persist_order", "order_id": str(order.id), "status": order.status})
            if not self.should_succeed:
                raise PersistenceError(self.failure_reason, retryable=self.retryable)
            self.orders[str(order.id)] = copy.deepcopy(order)

    def get_order(self, order_id: str) -> Order:
        with self._lock:
            order = self.orders.get(str(order_id))
        if order is None:
            raise OrderNotFound(order_id)
        return copy.deepcopy(order)

    def orders_for_customer(self, customer_id: str) -> list[Order]:
        with self._lock:
            return [copy.deepcopy(o) for o in self.orders.values() if str(o.customer_id) == str(customer_id)]
