"""Shared BDD fixtures and step definitions for order placement."""

import pytest
from ordering.order.order import OrderStatus
from ordering.placement.errors import PlacementError
from ordering.store import PersistenceError
from pytest_bdd import given, parsers, then, when


def _parse_lines(text):
    """'P1:2, P2:1' -> [{"product_id": "P1", "quantity": 2}, ...]"""
    lines = []
    for chunk in text.split(","):
        product_id, quantity = chunk.strip().split(":")
        lines.append({"product_id": product_id.strip(), "quantity": int(quantity)})
    return lines


@pytest.fixture()
def outcome():
    """Container for what the When step produced."""
    return {"order": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('product "{product_id}" sells for {price:f}'))
def _(catalog, product_id, price):
    catalog.add_product(product_id, price)


@given(parsers.cfparse('product "{product_id}" is discontinued'))
def _(catalog, product_id):
    catalog.deactivate(product_id)


@given(parsers.cfparse('store "{store_id}" has {quantity:d} of "{product_id}"'))
def _(ledger, store_id, quantity, product_id):
    if quantity:
        ledger.stock(store_id, product_id, quantity)


@given("the order store is unavailable")
def _(order_store):
    order_store.configure(should_succeed=False)


@given(
    parsers.cfparse('customer "{customer_id}" placed an order for "{lines}" at store "{store_id}"'),
    target_fixture="order",
)
def _(placement, customer_id, lines, store_id):
    return placement.place_order(store_id, customer_id, _parse_lines(lines))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('customer "{customer_id}" orders "{lines}" from store "{store_id}"'))
def _(placement, outcome, customer_id, lines, store_id):
    try:
        outcome["order"] = placement.place_order(store_id, customer_id, _parse_lines(lines))
    except PlacementError as exc:
        outcome["error"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('store "{store_id}" has {quantity:d} of "{product_id}" on hand'))
def _(ledger, store_id, quantity, product_id):
    assert ledger.quantity_of(store_id, product_id) == quantity


@then(parsers.cfparse("the order is confirmed with total {total:f}"))
def _(outcome, total):
    assert outcome["error"] is None
    assert outcome["order"].status == OrderStatus.CONFIRMED.value
    assert outcome["order"].total_amount == pytest.approx(total)


@then(parsers.cfparse('the placement fails with "{reason}"'))
def _(outcome, reason):
    assert isinstance(outcome["error"], PlacementError)
    assert outcome["error"].reason.value == reason


@then(parsers.cfparse('the failure names product "{product_id}"'))
def _(outcome, product_id):
    assert outcome["error"].product_id == product_id


@then("no order was stored")
def _(order_store):
    assert order_store.orders == {}


@then("the order is cancelled")
def _(outcome):
    assert outcome["error"] is None
    assert outcome["order"].status == OrderStatus.CANCELLED.value


@then("the cancellation fails")
def _(outcome):
    assert isinstance(outcome["error"], PersistenceError)
