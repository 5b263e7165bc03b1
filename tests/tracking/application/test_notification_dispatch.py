"""Application tests for the status change notification dispatcher."""

from protean import current_domain
from structlog.testing import capture_logs
from tracking.order.order import Order
from tracking.services.tracking import TrackingService


class TestNotificationSent:
    def test_status_change_notifies_customer(self, notifier, place_order):
        order_number = place_order(email="notify@example.com")
        TrackingService().update_status(order_number, "confirmed")

        assert len(notifier.sent) == 1
        message = notifier.sent[0]
        assert message["to"] == "notify@example.com"
        assert message["subject"] == "Your order is confirmed"
        assert order_number in message["body"]
        assert message["context"]["previous_status"] == "pending"

    def test_placement_sends_nothing(self, notifier, place_order):
        place_order()
        assert notifier.sent == []

    def test_one_message_per_transition(self, notifier, place_order):
        order_number = place_order()
        service = TrackingService()
        for status in ("confirmed", "processing", "shipped"):
            service.update_status(order_number, status)
        assert [m["context"]["new_status"] for m in notifier.sent] == ["confirmed", "processing", "shipped"]

    def test_shipped_message_carries_tracking_code(self, notifier, place_order):
        order_number = place_order()
        service = TrackingService()
        service.update_status(order_number, "confirmed")
        service.update_status(order_number, "processing")
        service.update_status(order_number, "shipped")
        code = current_domain.repository_for(Order).get(order_number).tracking_code
        assert code in notifier.sent[-1]["body"]


class TestNotificationSkipped:
    def test_notify_false(self, notifier, place_order):
        order_number = place_order()
        with capture_logs() as logs:
            TrackingService().update_status(order_number, "confirmed", notify=False)
        assert notifier.sent == []
        assert any(log["event"] == "Status change notification skipped" for log in logs)

    def test_customer_opted_out(self, notifier, place_order):
        order_number = place_order(notifications_enabled=False)
        TrackingService().update_status(order_number, "confirmed")
        assert notifier.sent == []


class TestNotificationFailure:
    def test_failure_does_not_roll_back_transition(self, notifier, place_order):
        notifier.configure(should_succeed=False, failure_reason="SMTP relay down")
        order_number = place_order()

        with capture_logs() as logs:
            view = TrackingService().update_status(order_number, "confirmed")

        assert view.status == "confirmed"
        assert current_domain.repository_for(Order).get(order_number).status == "confirmed"
        failures = [log for log in logs if log["event"] == "Status change notification failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "error"
        assert "SMTP relay down" in failures[0]["error"]

    def test_adapter_exception_is_contained(self, notifier, place_order, monkeypatch):
        def _explode(*args, **kwargs):
            raise ConnectionError("socket closed")

        monkeypatch.setattr(notifier, "notify", _explode)
        order_number = place_order()
        view = TrackingService().update_status(order_number, "confirmed")
        assert view.status == "confirmed"
