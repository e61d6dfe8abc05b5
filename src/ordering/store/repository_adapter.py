"""Order store backed by the ordering domain's Order repository."""

import structlog
from protean import UnitOfWork
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.order.order import Order
from ordering.order.repository import OrderRepository  # noqa: F401  (registers find_by_customer)
from ordering.store.port import OrderNotFound, OrderStore, PersistenceError

logger = structlog.get_logger(__name__)


class RepositoryOrderStore(OrderStore):
    """Writes orders through the Order repository inside a UnitOfWork.

    The aggregate and its HasMany items are committed together when the unit
    of work exits; any failure rolls the whole write back and surfaces as
    PersistenceError. Runs against ``current_domain``, so callers on worker
    threads push the ordering domain context first.
    """

    def persist_order(self, order: Order) -> None:
        try:
            with UnitOfWork():
                current_domain.repository_for(Order).add(order)
        except ValidationError as exc:
            raise PersistenceError(f"Order {order.id} was rejected by the store: {exc.messages}") from exc
        except Exception as exc:
            logger.error("Order persistence failed", order_id=str(order.id), error=str(exc))
            raise PersistenceError(f"Order {order.id} could not be stored: {exc}", retryable=True) from exc

    def get_order(self, order_id: str) -> Order:
        try:
            return current_domain.repository_for(Order).get(str(order_id))
        except ObjectNotFoundError:
            raise OrderNotFound(order_id) from None

    def orders_for_customer(self, customer_id: str) -> list[Order]:
        return current_domain.repository_for(Order).find_by_customer(customer_id)
