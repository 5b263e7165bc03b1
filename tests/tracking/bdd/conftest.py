"""Shared BDD fixtures and step definitions for the Tracking domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from tracking.order.events import InternalNoteAdded, OrderPlaced, OrderStatusChanged
from tracking.order.order import Order

_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderStatusChanged": OrderStatusChanged,
    "InternalNoteAdded": InternalNoteAdded,
}

_DEFAULT_ITEMS = [
    {"product_id": "prod-lamp", "name": "Desk Lamp", "price": 45.0, "quantity": 1},
    {"product_id": "prod-bulb", "name": "LED Bulb", "price": 4.0, "quantity": 3},
]


def _new_order(*statuses):
    order = Order.place(
        order_number="ORD-1715333400000-0042",
        tracking_code="TRK-1715333400000-BDD042",
        customer={"name": "Katherine Johnson", "email": "katherine@example.com", "city": "Hampton"},
        items_data=_DEFAULT_ITEMS,
    )
    for status in statuses:
        order.change_status(status)
    order._events.clear()
    return order


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending order", target_fixture="order")
def pending_order():
    return _new_order()


@given("a confirmed order", target_fixture="order")
def confirmed_order():
    return _new_order("confirmed")


@given("an order in processing", target_fixture="order")
def processing_order():
    return _new_order("confirmed", "processing")


@given("a shipped order", target_fixture="order")
def shipped_order():
    return _new_order("confirmed", "processing", "shipped")


@given("a delivered order", target_fixture="order")
def delivered_order():
    return _new_order("confirmed", "processing", "shipped", "delivered")


@given("a cancelled order", target_fixture="order")
def cancelled_order():
    return _new_order("cancelled")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then("the status change fails with a validation error")
def status_change_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the rejection reason is "{reason}"'))
def rejection_reason_is(error, reason):
    assert error["exc"].reason == reason


@then(parsers.cfparse("a {event_type} event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"


@then(parsers.cfparse("the order has {count:d} timeline events"))
def order_has_n_timeline_events(order, count):
    assert len(order.timeline) == count


@then("the latest timeline event matches the order status")
def latest_event_matches_status(order):
    assert order.timeline_events()[-1].status == order.status
