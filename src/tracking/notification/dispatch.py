"""Status change dispatcher — tells the customer their order moved.

Reacts to OrderStatusChanged after the transition is committed. Delivery
failures are logged and never undo the transition.
"""

import structlog
from protean.utils.mixins import handle

from tracking.domain import tracking
from tracking.errors import NotificationDeliveryFailed
from tracking.notification import get_notifier
from tracking.notification.templates import StatusUpdateTemplate
from tracking.order.events import OrderStatusChanged
from tracking.order.order import Order

logger = structlog.get_logger(__name__)


@tracking.event_handler(part_of=Order)
class StatusChangeDispatcher:
    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged) -> None:
        if not event.notify:
            logger.info(
                "Status change notification skipped",
                order_number=event.order_number,
                new_status=event.new_status,
            )
            return

        context = {
            "order_number": event.order_number,
            "tracking_code": event.tracking_code,
            "customer_name": event.customer_name,
            "previous_status": event.previous_status,
            "new_status": event.new_status,
            "note": event.note,
            "location": event.location,
            "estimated_delivery": event.estimated_delivery.date().isoformat() if event.estimated_delivery else None,
        }
        message = StatusUpdateTemplate.render(context)

        try:
            result = get_notifier().notify(event.customer_email, message["subject"], message["body"], context)
        except Exception as e:
            result = {"status": "failed", "error": str(e)}

        if result.get("status") != "sent":
            failure = NotificationDeliveryFailed(
                event.order_number, event.new_status, result.get("error", "Unknown dispatch error")
            )
            logger.error(
                "Status change notification failed",
                order_number=event.order_number,
                new_status=event.new_status,
                error=str(failure),
                retryable=failure.retryable,
            )
            return

        logger.info(
            "Status change notification sent",
            order_number=event.order_number,
            new_status=event.new_status,
            message_id=result.get("message_id"),
        )
