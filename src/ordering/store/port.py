"""Order store port (abstract interface).

Defines the durable-store contract of the placement saga. An adapter must
write the order header and all of its line items as one atomic unit.
Adapters: FakeOrderStore (dev/test) and RepositoryOrderStore (protean
repository inside a unit of work).
"""

from abc import ABC, abstractmethod

from ordering.order.order import Order


class PersistenceError(Exception):
    """The durable write did not happen. Nothing of the order was stored."""

    def __init__(self, message, retryable=False):
        self.retryable = retryable
        super().__init__(message)


class OrderNotFound(Exception):
    def __init__(self, order_id):
        self.order_id = str(order_id)
        super().__init__(f"Order {self.order_id} does not exist")


class OrderStore(ABC):
    """Abstract durable order store."""

    @abstractmethod
    def persist_order(self, order: Order) -> None:
        """Atomically write the order and its items, or raise PersistenceError."""
        ...

    @abstractmethod
    def get_order(self, order_id: str) -> Order:
        """Return a stored order or raise OrderNotFound."""
        ...

    @abstractmethod
    def orders_for_customer(self, customer_id: str) -> list[Order]:
        """Return every stored order of a customer."""
        ...
