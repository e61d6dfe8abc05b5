"""Catalog lookup backed by the catalogue domain's Product repository."""

from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError

from catalogue.lookup.port import CatalogLookup, ProductNotFound, ProductReference
from catalogue.product.product import Product


class RepositoryCatalog(CatalogLookup):
    """Reads Product aggregates and turns them into ProductReference snapshots.

    The catalogue domain context is pushed around every read so the adapter
    can be used from any worker thread, regardless of which domain the caller
    is running in.
    """

    def __init__(self, domain: Domain) -> None:
        self.domain = domain

    def get_product(self, product_id: str) -> ProductReference:
        with self.domain.domain_context():
            try:
                product = self.domain.repository_for(Product).get(str(product_id))
            except ObjectNotFoundError:
                raise ProductNotFound(product_id) from None

            return ProductReference(
                product_id=str(product.id),
                unit_price=product.price,
                active=product.is_sellable,
                sku=product.sku,
                name=product.title,
            )
