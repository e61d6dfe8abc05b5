"""In-memory catalog for development and testing.

Products are registered directly on the adapter; prices and status can be
changed at runtime to exercise snapshot behaviour, and every lookup is
recorded in ``calls``.
"""

import threading

from protean.exceptions import ValidationError

from catalogue.lookup.port import CatalogLookup, ProductNotFound, ProductReference
from catalogue.product.product import is_whole_cents


def _check_price(unit_price) -> None:
    if not is_whole_cents(unit_price):
        raise ValidationError({"unit_price": [f"Price {unit_price} is not a whole number of cents"]})


class FakeCatalog(CatalogLookup):
    """Configurable in-memory catalog."""

    def __init__(self) -> None:
        self._products: dict[str, ProductReference] = {}
        self._lock = threading.Lock()
        self.calls: list[str] = []

    def add_product(self, product_id, unit_price, active=True, sku=None, name=None) -> ProductReference:
        _check_price(unit_price)
        reference = ProductReference(
            product_id=str(product_id),
            unit_price=unit_price,
            active=active,
            sku=sku,
            name=name,
        )
        with self._lock:
            self._products[reference.product_id] = reference
        return reference

    def set_price(self, product_id, unit_price) -> None:
        _check_price(unit_price)
        self._replace(product_id, unit_price=unit_price)

    def deactivate(self, product_id) -> None:
        self._replace(product_id, active=False)

    def _replace(self, product_id, **changes) -> None:
        with self._lock:
            current = self._products.get(str(product_id))
            if current is None:
                raise ProductNotFound(product_id)
            self._products[current.product_id] = ProductReference(
                product_id=current.product_id,
                unit_price=changes.get("unit_price", current.unit_price),
                active=changes.get("active", current.active),
                sku=current.sku,
                name=current.name,
            )

    def get_product(self, product_id: str) -> ProductReference:
        with self._lock:
            self.calls.append(str(product_id))
            reference = self._products.get(str(product_id))
        if reference is None:
            raise ProductNotFound(product_id)
        return reference
