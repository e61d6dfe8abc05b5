"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
They are written to the event store when the order is persisted and carry
enough data for downstream consumers (fulfilment, reporting) to act without
reading the order back.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderConfirmed:
    """Every line of the order was reserved and the order was committed."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity, unit_price, line_total}
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled; its reserved quantities go back on the shelf."""

    __version__ = 1

    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    cancelled_at = DateTime(required=True)
