"""Timeline store — appends status changes to an order's history.

``append`` is the only write path for status: it loads the order, lets the
aggregate validate the move and record the event, and persists both in one
aggregate write. A rejected transition leaves the stored order untouched.
"""

from protean.utils.globals import current_domain

from tracking.config import setting
from tracking.errors import ConcurrentModification
from tracking.order.order import Order, TimelineEvent


class TimelineStore:
    def append(
        self,
        order_number: str,
        status: str,
        note: str | None = None,
        location: str | None = None,
        actor: str | None = None,
        override: bool = False,
        notify: bool = True,
        carrier_tracking_number: str | None = None,
        expected_revision: int | None = None,
    ) -> str:
        """Record a transition and return the new timeline event's id."""
        repo = current_domain.repository_for(Order)
        order = repo.get(order_number)

        if expected_revision is not None and (order.revision or 0) != expected_revision:
            raise ConcurrentModification(
                order_number,
                f"Order {order_number} is at revision {order.revision}, expected {expected_revision}",
            )

        event = order.change_status(
            status,
            note=note,
            location=location,
            actor=actor,
            override=override,
            notify=notify,
            carrier_tracking_number=carrier_tracking_number,
            standard_days=setting("STANDARD_DELIVERY_DAYS"),
            urgent_days=setting("URGENT_DELIVERY_DAYS"),
        )
        repo.add(order)
        return str(event.id)

    def list_for(self, order_number: str) -> list[TimelineEvent]:
        """Timeline of the order, oldest first."""
        return current_domain.repository_for(Order).get(order_number).timeline_events()
