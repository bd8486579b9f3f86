"""Shared BDD fixtures and step definitions for the Returns domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from returns.order.events import (
    OrderPlaced,
    OrderStatusAdvanced,
    ReplacementRequested,
    ReplacementStatusChanged,
)
from returns.order.order import Order

_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderStatusAdvanced": OrderStatusAdvanced,
    "ReplacementRequested": ReplacementRequested,
    "ReplacementStatusChanged": ReplacementStatusChanged,
}

_DEFAULT_ITEMS = [
    {"product_ref": "prod-tee", "name": "Cotton Tee", "price": 499.0, "quantity": 1, "size": "M"},
    {"product_ref": "prod-cap", "name": "Denim Cap", "price": 299.0, "quantity": 1},
]


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a delivered order", target_fixture="order")
def delivered_order():
    order = Order.place(customer_id="cust-bdd", items_data=_DEFAULT_ITEMS)
    order.advance_status("delivered")
    order._events.clear()
    return order


@given("an order with a pending replacement request", target_fixture="order")
def pending_replacement_order():
    order = Order.place(customer_id="cust-bdd", items_data=_DEFAULT_ITEMS)
    order.advance_status("delivered")
    order.request_replacement(0, "Stitching came apart at the seam")
    order._events.clear()
    return order


@given("an order whose replacement was delivered", target_fixture="order")
def delivered_replacement_order():
    order = Order.place(customer_id="cust-bdd", items_data=_DEFAULT_ITEMS)
    order.advance_status("delivered")
    order.request_replacement(0, "Stitching came apart at the seam")
    for status in (
        "approved",
        "pickup_completed",
        "replacement_processing",
        "replacement_shipped",
        "replacement_delivered",
    ):
        order.transition_replacement(status)
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the replacement status is "{status}"'))
def replacement_status_is(order, status):
    assert order.replacement_status.value == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse("the history has {count:d} entries"))
def history_has_n_entries(order, count):
    assert len(order.replacement_history or []) == count


@then(parsers.cfparse('the latest history note is "{note}"'))
def latest_history_note(order, note):
    assert order.ordered_history()[-1].note == note


@then(parsers.cfparse('the replacement shipment is "{courier}" / "{tracking_id}"'))
def replacement_shipment_is(order, courier, tracking_id):
    assert order.replacement_shipment.courier == courier
    assert order.replacement_shipment.tracking_id == tracking_id


@then("the order has no replacement request")
def no_replacement_request(order):
    assert order.replacement_request is None


@then("the replacement action fails with a validation error")
def replacement_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"
