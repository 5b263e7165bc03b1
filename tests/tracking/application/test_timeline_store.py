"""Application tests for the timeline store."""

from datetime import timedelta

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError
from tracking.delivery.estimator import as_utc
from tracking.errors import InvalidTransition
from tracking.order.order import Order
from tracking.order.timeline import TimelineStore


class TestAppend:
    def test_append_then_list(self, place_order):
        order_number = place_order()
        store = TimelineStore()
        store.append(order_number, "confirmed", actor="admin")
        store.append(order_number, "processing")

        events = store.list_for(order_number)
        assert [e.status for e in events] == ["pending", "confirmed", "processing"]
        assert events[1].actor == "admin"
        assert events[2].actor == "system"

    def test_list_is_ordered_by_time(self, place_order):
        order_number = place_order()
        store = TimelineStore()
        for status in ("confirmed", "processing", "shipped", "delivered"):
            store.append(order_number, status)
        stamps = [e.occurred_at for e in store.list_for(order_number)]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)

    def test_last_event_matches_order_status(self, place_order):
        order_number = place_order()
        store = TimelineStore()
        store.append(order_number, "confirmed")
        store.append(order_number, "cancelled", note="Customer request")
        order = current_domain.repository_for(Order).get(order_number)
        assert store.list_for(order_number)[-1].status == order.status == "cancelled"

    def test_rejected_append_leaves_history(self, place_order):
        order_number = place_order()
        store = TimelineStore()
        store.append(order_number, "cancelled")
        with pytest.raises(InvalidTransition):
            store.append(order_number, "confirmed")
        assert [e.status for e in store.list_for(order_number)] == ["pending", "cancelled"]

    def test_override_records_correction(self, place_order):
        order_number = place_order()
        store = TimelineStore()
        store.append(order_number, "confirmed")
        store.append(order_number, "shipped", override=True, actor="ops-lead")
        last = store.list_for(order_number)[-1]
        assert last.is_correction is True
        assert last.actor == "ops-lead"

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            TimelineStore().append("ORD-1700000000000-4242", "confirmed")


class TestConfiguredDeliveryDays:
    def test_confirmation_estimate_uses_configured_days(self, place_order, monkeypatch):
        settings = {"STANDARD_DELIVERY_DAYS": 9, "URGENT_DELIVERY_DAYS": 3}
        monkeypatch.setattr("tracking.order.timeline.setting", settings.__getitem__)

        order_number = place_order()
        repo = current_domain.repository_for(Order)
        order = repo.get(order_number)
        order.estimated_delivery = None
        repo.add(order)

        TimelineStore().append(order_number, "confirmed")
        order = repo.get(order_number)
        confirmed = order.timeline_events()[-1]
        assert as_utc(order.estimated_delivery) - as_utc(confirmed.occurred_at) == timedelta(days=9)
