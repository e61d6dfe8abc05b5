"""Catalog lookup port (abstract interface).

Defines the read-only contract the ordering core uses to price line items.
Adapters: FakeCatalog (dev/test) and RepositoryCatalog (catalogue repository).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class ProductNotFound(Exception):
    """No product exists for the requested identifier."""

    def __init__(self, product_id):
        self.product_id = str(product_id)
        super().__init__(f"Product {self.product_id} does not exist")


@dataclass(frozen=True)
class ProductReference:
    """Snapshot of a product at lookup time.

    A price captured for an order stays fixed when the catalogue changes
    afterwards.
    """

    product_id: str
    unit_price: float
    active: bool
    sku: str | None = None
    name: str | None = None


class CatalogLookup(ABC):
    """Abstract catalog lookup interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductReference:
        """Return the current snapshot for a product or raise ProductNotFound."""
        ...
