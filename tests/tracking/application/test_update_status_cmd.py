"""Application tests for UpdateOrderStatus via domain.process()."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError
from tracking.errors import ConcurrentModification, InvalidTransition, NoChange
from tracking.order.order import Order
from tracking.order.status import UpdateOrderStatus


def _update(order_number, status, **kwargs):
    return current_domain.process(
        UpdateOrderStatus(order_number=order_number, status=status, **kwargs),
        asynchronous=False,
    )


class TestUpdateOrderStatus:
    def test_returns_timeline_event_id(self, place_order):
        order_number = place_order()
        event_id = _update(order_number, "confirmed")
        order = current_domain.repository_for(Order).get(order_number)
        assert event_id == str(order.timeline_events()[-1].id)

    def test_persists_status_and_timeline_together(self, place_order):
        order_number = place_order()
        _update(order_number, "confirmed")
        _update(order_number, "processing", note="Picked from aisle 4", location="Warehouse B")
        order = current_domain.repository_for(Order).get(order_number)
        assert order.status == "processing"
        assert [e.status for e in order.timeline_events()] == ["pending", "confirmed", "processing"]
        assert order.timeline_events()[-1].location == "Warehouse B"

    def test_invalid_transition_is_not_persisted(self, place_order):
        order_number = place_order()
        with pytest.raises(InvalidTransition):
            _update(order_number, "delivered")
        order = current_domain.repository_for(Order).get(order_number)
        assert order.status == "pending"
        assert len(order.timeline) == 1

    def test_repeated_status_never_double_appends(self, place_order):
        order_number = place_order()
        _update(order_number, "confirmed")
        with pytest.raises(NoChange):
            _update(order_number, "confirmed")
        order = current_domain.repository_for(Order).get(order_number)
        assert [e.status for e in order.timeline].count("confirmed") == 1

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _update("ORD-1700000000000-9999", "confirmed")

    def test_expected_revision_match(self, place_order):
        order_number = place_order()
        _update(order_number, "confirmed", expected_revision=0)
        _update(order_number, "processing", expected_revision=1)
        assert current_domain.repository_for(Order).get(order_number).revision == 2

    def test_stale_expected_revision(self, place_order):
        order_number = place_order()
        _update(order_number, "confirmed")
        with pytest.raises(ConcurrentModification) as exc:
            _update(order_number, "processing", expected_revision=0)
        assert exc.value.retryable is True
        assert current_domain.repository_for(Order).get(order_number).status == "confirmed"
