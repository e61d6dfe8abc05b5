"""Order aggregate: the order header and its line items.

Orders are never persisted half-built: the placement saga creates an order
in PENDING, reserves stock for every line, confirms it, and only then writes
header and items together.

State Machine:
    PENDING → CONFIRMED → CANCELLED
    PENDING → CANCELLED

Line items carry a snapshot of the product (id, sku, title) and the unit
price at the time the order was placed. They can only change while the order
is PENDING; once CONFIRMED they are immutable.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.order.events import OrderCancelled, OrderConfirmed

# Totals are kept in currency units rounded to cents
_CENTS = 2


def line_total_for(quantity, unit_price) -> float:
    return round(quantity * unit_price, _CENTS)


def is_whole_cents(amount) -> bool:
    return round(amount, _CENTS) == amount


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of an order: which product, how many, and at what price."""

    product_id = Identifier(required=True)
    sku = String(max_length=50)
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    store_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    items = HasMany(OrderItem)
    total_amount = Float(default=0.0)
    ordered_at = DateTime()
    confirmed_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)

    @invariant.post
    def lines_are_frozen_once_placed(self):
        if self.status == OrderStatus.PENDING.value or not self.items:
            return
        repriced = [item for item in self.items if item.line_total != line_total_for(item.quantity, item.unit_price)]
        if repriced or round(sum(item.line_total for item in self.items), _CENTS) != self.total_amount:
            raise ValidationError({"items": ["Line items cannot change once the order is placed"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, store_id, customer_id, lines):
        """Create a PENDING order from priced lines.

        Args:
            store_id: The store fulfilling the order.
            customer_id: The customer placing the order.
            lines: Iterable of objects or dicts with product_id, quantity and
                unit_price; sku and title are optional.
        """
        order = cls(
            store_id=store_id,
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            ordered_at=datetime.now(UTC),
        )
        for line in lines:
            data = line if isinstance(line, dict) else vars(line)
            order._append_item(
                product_id=data["product_id"],
                quantity=data["quantity"],
                unit_price=data["unit_price"],
                sku=data.get("sku"),
                title=data.get("title"),
            )

        if not order.items:
            raise ValidationError({"items": ["An order needs at least one line item"]})
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _append_item(self, product_id, quantity, unit_price, sku=None, title=None):
        if unit_price is not None and not is_whole_cents(unit_price):
            raise ValidationError({"unit_price": [f"Price {unit_price} of product {product_id} is not in whole cents"]})
        item = OrderItem(
            product_id=product_id,
            sku=sku,
            title=title,
            quantity=quantity,
            unit_price=unit_price,
            line_total=line_total_for(quantity, unit_price),
        )
        self.add_items(item)
        self._recalculate_total()
        return item

    def _recalculate_total(self):
        self.total_amount = round(sum(item.line_total for item in self.items), _CENTS)

    def _assert_totals_reconcile(self):
        for item in self.items:
            if item.line_total != line_total_for(item.quantity, item.unit_price):
                raise ValidationError({"items": [f"Line total for product {item.product_id} does not match"]})

        expected = round(sum(item.line_total for item in self.items), _CENTS)
        if self.total_amount != expected:
            raise ValidationError({"total_amount": [f"Total {self.total_amount} does not equal line sum {expected}"]})

    def _items_payload(self, with_prices=True):
        payload = []
        for item in self.items:
            entry = {"product_id": str(item.product_id), "quantity": item.quantity}
            if with_prices:
                entry["unit_price"] = item.unit_price
                entry["line_total"] = item.line_total
            payload.append(entry)
        return json.dumps(payload)

    # -------------------------------------------------------------------
    # Line items (only while PENDING)
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, unit_price, sku=None, title=None):
        """Add a priced line. Only allowed in PENDING state."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": ["Line items can only be added to a pending order"]})
        return self._append_item(product_id, quantity, unit_price, sku=sku, title=title)

    def quantities_by_product(self) -> dict[str, int]:
        """Total quantity per product across all lines."""
        quantities: dict[str, int] = {}
        for item in self.items:
            key = str(item.product_id)
            quantities[key] = quantities.get(key, 0) + item.quantity
        return quantities

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self):
        """Confirm the order once every line has been reserved."""
        self._assert_can_transition(OrderStatus.CONFIRMED)
        self._assert_totals_reconcile()

        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.confirmed_at = now

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                store_id=str(self.store_id),
                customer_id=str(self.customer_id),
                items=self._items_payload(),
                item_count=len(self.items),
                total_amount=self.total_amount,
                confirmed_at=now,
            )
        )

    def cancel(self, reason):
        """Cancel the order."""
        if not reason:
            raise ValidationError({"reason": ["A cancellation reason is required"]})

        current = OrderStatus(self.status)
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.cancellation_reason = reason

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                store_id=str(self.store_id),
                customer_id=str(self.customer_id),
                previous_status=current.value,
                reason=reason,
                items=self._items_payload(with_prices=False),
                cancelled_at=now,
            )
        )
