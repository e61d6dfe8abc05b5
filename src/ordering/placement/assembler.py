"""Order assembler: validates requested lines and prices them from the catalog.

The assembler is side-effect free: it reads the catalog, never the inventory
ledger, and persists nothing. Each distinct product is looked up exactly once
per assembly, so every line of one product is priced from the same snapshot.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from catalogue.lookup.port import CatalogLookup, ProductNotFound, ProductReference
from ordering.order.order import line_total_for

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LineRequest:
    """One requested line: a product and how many units of it."""

    product_id: str
    quantity: int

    @classmethod
    def from_value(cls, value) -> "LineRequest":
        if isinstance(value, LineRequest):
            return value
        if isinstance(value, Mapping):
            return cls(product_id=value.get("product_id"), quantity=value.get("quantity"))
        raise ValidationError({"items": [f"Cannot read a line item from {type(value).__name__}"]})


@dataclass(frozen=True)
class AssembledLine:
    product_id: str
    quantity: int
    unit_price: float
    line_total: float
    sku: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class AssembledOrder:
    """Validated, priced lines in request order, with their total."""

    store_id: str
    lines: tuple[AssembledLine, ...]
    total_amount: float

    def reservation_plan(self) -> list[tuple[str, int]]:
        """(product_id, quantity) pairs to reserve, ascending by product id.

        Lines of the same product are merged so each product is reserved
        exactly once. The fixed order keeps concurrent placements touching
        overlapping products from acquiring keys in conflicting orders.
        """
        quantities: dict[str, int] = {}
        for line in self.lines:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity
        return sorted(quantities.items())


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class OrderAssembler:
    def __init__(self, catalog: CatalogLookup) -> None:
        self.catalog = catalog

    def assemble(self, store_id, items: Iterable) -> AssembledOrder:
        """Price ``items`` for ``store_id`` or raise ValidationError listing every bad line."""
        requests = [LineRequest.from_value(item) for item in (items or [])]
        if not requests:
            raise ValidationError({"items": ["An order needs at least one line item"]})

        errors: dict[str, list[str]] = {}
        snapshots: dict[str, ProductReference] = {}
        lines = []

        for index, request in enumerate(requests):
            key = f"items.{index}"

            if not request.product_id:
                errors.setdefault(key, []).append("Product id is required")
                continue
            product_id = str(request.product_id)

            if not _is_positive_int(request.quantity):
                errors.setdefault(key, []).append(
                    f"Quantity for product {product_id} must be a positive integer, got {request.quantity!r}"
                )

            if product_id not in snapshots:
                try:
                    snapshots[product_id] = self.catalog.get_product(product_id)
                except ProductNotFound:
                    errors.setdefault(key, []).append(f"Product {product_id} does not exist")
                    continue
            product = snapshots[product_id]

            if not product.active:
                errors.setdefault(key, []).append(f"Product {product_id} is not active")

            if key in errors:
                continue

            lines.append(
                AssembledLine(
                    product_id=product_id,
                    quantity=request.quantity,
                    unit_price=product.unit_price,
                    line_total=line_total_for(request.quantity, product.unit_price),
                    sku=product.sku,
                    title=product.name,
                )
            )

        if errors:
            logger.info("Order assembly rejected", store_id=str(store_id), errors=errors)
            raise ValidationError(errors)

        total_amount = round(sum(line.line_total for line in lines), 2)
        return AssembledOrder(store_id=str(store_id), lines=tuple(lines), total_amount=total_amount)
