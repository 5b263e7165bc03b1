"""Read models returned by the tracking service.

Plain frozen dataclasses holding primitives only, so the API layer can
validate them straight into response schemas.
"""

from dataclasses import dataclass
from datetime import datetime

from tracking.delivery.estimator import DeliveryStatus, as_utc, classify, progress_percentage
from tracking.order.status_machine import STATUS_META, coerce_status


@dataclass(frozen=True)
class DeliveryView:
    state: str
    message: str
    on_time: bool | None = None
    days_late: int | None = None
    days_remaining: int | None = None

    @classmethod
    def from_status(cls, status: DeliveryStatus) -> "DeliveryView":
        return cls(
            state=status.state.value,
            message=status.message,
            on_time=status.on_time,
            days_late=status.days_late,
            days_remaining=status.days_remaining,
        )


@dataclass(frozen=True)
class TimelineEntry:
    event_id: str
    status: str
    label: str
    occurred_at: datetime
    note: str | None
    location: str | None
    actor: str | None
    is_correction: bool


@dataclass(frozen=True)
class TimelineStep:
    status: str
    label: str
    state: str  # completed | current | pending
    color: str
    icon: str
    progress: int
    timestamp: datetime | None = None
    note: str | None = None
    location: str | None = None
    is_correction: bool = False


@dataclass(frozen=True)
class ItemView:
    product_id: str
    name: str
    price: float
    quantity: int
    image: str | None = None


@dataclass(frozen=True)
class OrderView:
    order_number: str
    tracking_code: str
    status: str
    status_label: str
    progress_percentage: int
    is_urgent: bool
    customer_name: str
    customer_city: str | None
    total_amount: float
    total_items: int
    currency: str
    shipping_provider: str | None
    carrier_tracking_number: str | None
    delivery_instructions: str | None
    revision: int
    created_at: datetime | None
    estimated_delivery: datetime | None
    actual_delivery: datetime | None
    delivery: DeliveryView
    items: tuple[ItemView, ...]
    timeline: tuple[TimelineEntry, ...]
    steps: tuple[TimelineStep, ...]


@dataclass(frozen=True)
class OrderSummary:
    order_number: str
    tracking_code: str
    status: str
    status_label: str
    progress_percentage: int
    is_urgent: bool
    total_amount: float
    total_items: int
    currency: str
    created_at: datetime | None
    estimated_delivery: datetime | None
    delivery: DeliveryView

    @classmethod
    def from_view(cls, view, now: datetime) -> "OrderSummary":
        status = coerce_status(view.status)
        return cls(
            order_number=view.order_number,
            tracking_code=view.tracking_code,
            status=status.value,
            status_label=STATUS_META[status].label,
            progress_percentage=progress_percentage(status),
            is_urgent=bool(view.is_urgent),
            total_amount=view.total_amount or 0.0,
            total_items=view.total_items or 0,
            currency=view.currency or "USD",
            created_at=as_utc(view.created_at),
            estimated_delivery=as_utc(view.estimated_delivery),
            delivery=DeliveryView.from_status(classify(status, view.estimated_delivery, view.actual_delivery, now)),
        )


@dataclass(frozen=True)
class SearchResults:
    orders: tuple[OrderSummary, ...]
    total: int
    page: int
    per_page: int
    has_next: bool


@dataclass(frozen=True)
class CustomerStats:
    customer_email: str
    total_orders: int
    active_orders: int
    delivered_count: int
    cancelled_count: int
    on_time_percentage: int
    total_spent: float
    status_breakdown: dict


@dataclass(frozen=True)
class InternalNoteView:
    note_id: str
    note: str
    added_by: str
    is_private: bool
    added_at: datetime
