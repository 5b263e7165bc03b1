"""Delivery estimator — expected delivery dates and delivery outcome classification.

Every function here is pure: the caller supplies ``now``. Naive datetimes
(as returned by some SQL drivers) are read as UTC.

Classification:
    delivered      → DELIVERED (on_time = actual <= estimated)
    cancelled      → CANCELLED
    no estimate    → UNSCHEDULED
    now > estimate → DELAYED (days_late, rounded up)
    ≤ 1 day left   → ARRIVING_SOON
    otherwise      → ON_TRACK (days_remaining, rounded up)
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from tracking.order.status_machine import STATUS_META, OrderStatus, coerce_status

ONE_DAY = timedelta(days=1)
STANDARD_DELIVERY_DAYS = 4
URGENT_DELIVERY_DAYS = 2


class DeliveryState(Enum):
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    DELAYED = "delayed"
    ARRIVING_SOON = "arriving_soon"
    ON_TRACK = "on_track"
    UNSCHEDULED = "unscheduled"


@dataclass(frozen=True)
class DeliveryStatus:
    state: DeliveryState
    on_time: bool | None = None
    days_late: int | None = None
    days_remaining: int | None = None

    @property
    def message(self) -> str:
        if self.state == DeliveryState.DELIVERED:
            return "Delivered on time" if self.on_time else "Delivered late"
        if self.state == DeliveryState.CANCELLED:
            return "Order cancelled"
        if self.state == DeliveryState.DELAYED:
            return f"Delayed by {self.days_late} day{'s' if self.days_late != 1 else ''}"
        if self.state == DeliveryState.ARRIVING_SOON:
            return "Arriving soon"
        if self.state == DeliveryState.ON_TRACK:
            return f"Arriving in {self.days_remaining} days"
        return "Delivery date not yet scheduled"


def as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _whole_days(delta: timedelta) -> int:
    return math.ceil(delta / ONE_DAY)


def classify(status, estimated_delivery: datetime | None, actual_delivery: datetime | None, now: datetime):
    status = coerce_status(status)
    estimated_delivery = as_utc(estimated_delivery)
    now = as_utc(now)

    if status == OrderStatus.DELIVERED:
        actual_delivery = as_utc(actual_delivery)
        on_time = estimated_delivery is None or (actual_delivery is not None and actual_delivery <= estimated_delivery)
        return DeliveryStatus(DeliveryState.DELIVERED, on_time=on_time)
    if status == OrderStatus.CANCELLED:
        return DeliveryStatus(DeliveryState.CANCELLED)
    if estimated_delivery is None:
        return DeliveryStatus(DeliveryState.UNSCHEDULED)

    if now > estimated_delivery:
        return DeliveryStatus(DeliveryState.DELAYED, days_late=_whole_days(now - estimated_delivery))

    remaining = estimated_delivery - now
    if remaining <= ONE_DAY:
        return DeliveryStatus(DeliveryState.ARRIVING_SOON, days_remaining=_whole_days(remaining))
    return DeliveryStatus(DeliveryState.ON_TRACK, days_remaining=_whole_days(remaining))


def classify_order(order, now: datetime) -> DeliveryStatus:
    return classify(order.status, order.estimated_delivery, order.actual_delivery, now)


def progress_percentage(status) -> int:
    return STATUS_META[coerce_status(status)].weight


def estimate_delivery(
    start: datetime,
    is_urgent: bool = False,
    standard_days: int = STANDARD_DELIVERY_DAYS,
    urgent_days: int = URGENT_DELIVERY_DAYS,
) -> datetime:
    """Expected delivery for an order placed or confirmed at ``start``."""
    return as_utc(start) + timedelta(days=urgent_days if is_urgent else standard_days)


def is_overdue(status, estimated_delivery: datetime | None, now: datetime) -> bool:
    return classify(status, estimated_delivery, None, now).state == DeliveryState.DELAYED


def needs_delivery_update(status, estimated_delivery: datetime | None, now: datetime) -> bool:
    """Processing or shipped orders expected within the next day (or already past due)."""
    status = coerce_status(status)
    if status not in (OrderStatus.PROCESSING, OrderStatus.SHIPPED) or estimated_delivery is None:
        return False
    return as_utc(estimated_delivery) <= as_utc(now) + ONE_DAY
