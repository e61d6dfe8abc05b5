"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    """Order repository with the read queries the placement core needs."""

    def find_by_customer(self, customer_id) -> list[Order]:
        return self._dao.query.filter(customer_id=str(customer_id)).all().items

    def find_by_store(self, store_id) -> list[Order]:
        return self._dao.query.filter(store_id=str(store_id)).all().items
