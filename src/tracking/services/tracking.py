"""Tracking service — the entry point for admins, carrier feeds and customers.

Writes go through ``UpdateOrderStatus`` under a per-order lock; storage and
version conflicts come back as ``ConcurrentModification`` or
``PersistenceUnavailable``. Reads resolve an identifier by prefix and build
views from the aggregate (single order) or from projections (lists).
"""

import json
from datetime import UTC, datetime

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from tracking.config import setting
from tracking.delivery.estimator import ONE_DAY, DeliveryStatus, as_utc, classify_order, progress_percentage
from tracking.errors import ConcurrentModification, PersistenceUnavailable
from tracking.order.codes import IdentifierKind, identifier_kind, normalize_identifier
from tracking.order.notes import AddInternalNote
from tracking.order.order import Order, normalize_email
from tracking.order.status import UpdateOrderStatus
from tracking.order.status_machine import (
    ACTIVE_STATUSES,
    HAPPY_PATH,
    STATUS_META,
    OrderStatus,
    assert_customer_can_cancel,
)
from tracking.projections.customer_stats import CustomerDeliveryStats
from tracking.projections.order_summary import OrderSummaryView
from tracking.services.locks import OrderLocks
from tracking.services.views import (
    CustomerStats,
    DeliveryView,
    InternalNoteView,
    ItemView,
    OrderSummary,
    OrderView,
    SearchResults,
    TimelineEntry,
    TimelineStep,
)

logger = structlog.get_logger(__name__)

CUSTOMER_ACTOR = "customer"


def _step(status: OrderStatus, state: str, event=None) -> TimelineStep:
    meta = STATUS_META[status]
    return TimelineStep(
        status=status.value,
        label=meta.label,
        state=state,
        color=meta.color,
        icon=meta.icon,
        progress=meta.weight,
        timestamp=as_utc(event.occurred_at) if event else None,
        note=event.note if event else None,
        location=event.location if event else None,
        is_correction=bool(event.is_correction) if event else False,
    )


def timeline_steps(order: Order) -> list[TimelineStep]:
    """Display steps for an order.

    Happy-path steps before the current one are ``completed`` (with no
    timestamp when a correction skipped them); later ones are ``pending``.
    A cancelled order shows the steps it reached followed by ``cancelled``.
    """
    events = {OrderStatus(e.status): e for e in order.timeline_events()}
    current = OrderStatus(order.status)

    if current == OrderStatus.CANCELLED:
        steps = [_step(s, "completed", events[s]) for s in HAPPY_PATH if s in events]
        steps.append(_step(OrderStatus.CANCELLED, "current", events.get(OrderStatus.CANCELLED)))
        return steps

    current_index = HAPPY_PATH.index(current)
    steps = []
    for index, status in enumerate(HAPPY_PATH):
        if index < current_index:
            steps.append(_step(status, "completed", events.get(status)))
        elif index == current_index:
            steps.append(_step(status, "current", events.get(status)))
        else:
            steps.append(_step(status, "pending"))
    return steps


def order_view(order: Order, now: datetime) -> OrderView:
    status = OrderStatus(order.status)
    return OrderView(
        order_number=order.order_number,
        tracking_code=order.tracking_code,
        status=status.value,
        status_label=STATUS_META[status].label,
        progress_percentage=progress_percentage(status),
        is_urgent=bool(order.is_urgent),
        customer_name=order.customer.name if order.customer else "",
        customer_city=order.customer.city if order.customer else None,
        total_amount=order.total_amount or 0.0,
        total_items=order.total_items or 0,
        currency=order.currency or "USD",
        shipping_provider=order.shipping_provider,
        carrier_tracking_number=order.carrier_tracking_number,
        delivery_instructions=order.delivery_instructions,
        revision=order.revision or 0,
        created_at=as_utc(order.created_at),
        estimated_delivery=as_utc(order.estimated_delivery),
        actual_delivery=as_utc(order.actual_delivery),
        delivery=DeliveryView.from_status(classify_order(order, now)),
        items=tuple(
            ItemView(
                product_id=str(item.product_id),
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                image=item.image,
            )
            for item in order.items or []
        ),
        timeline=tuple(
            TimelineEntry(
                event_id=str(e.id),
                status=e.status,
                label=STATUS_META[OrderStatus(e.status)].label,
                occurred_at=as_utc(e.occurred_at),
                note=e.note,
                location=e.location,
                actor=e.actor,
                is_correction=bool(e.is_correction),
            )
            for e in order.timeline_events()
        ),
        steps=tuple(timeline_steps(order)),
    )


class TrackingService:
    def __init__(self, locks: OrderLocks | None = None, lock_timeout: float | None = None):
        self._locks = locks or OrderLocks()
        self._lock_timeout = lock_timeout

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def update_status(
        self,
        order_number: str,
        new_status: str,
        note: str | None = None,
        location: str | None = None,
        actor: str | None = None,
        override: bool = False,
        notify: bool = True,
        carrier_tracking_number: str | None = None,
        expected_revision: int | None = None,
    ) -> OrderView:
        """Apply one status transition and return the refreshed order view."""
        order_number = normalize_identifier(order_number)
        command = UpdateOrderStatus(
            order_number=order_number,
            status=new_status,
            note=note,
            location=location,
            actor=actor,
            override=override,
            notify=notify,
            carrier_tracking_number=carrier_tracking_number,
            expected_revision=expected_revision,
        )

        timeout = self._lock_timeout or setting("PERSISTENCE_TIMEOUT_SECONDS")
        try:
            with self._locks.hold(order_number, timeout=timeout):
                current_domain.process(command, asynchronous=False)
        except ConcurrentModification:
            logger.warning("Concurrent status update rejected", order_number=order_number, new_status=new_status)
            raise
        except ExpectedVersionError as e:
            logger.warning("Concurrent status update rejected", order_number=order_number, new_status=new_status)
            raise ConcurrentModification(order_number) from e
        except (OperationalError, PoolTimeoutError) as e:
            logger.error("Order store unavailable", order_number=order_number, error=str(e))
            raise PersistenceUnavailable(f"Could not persist status of order {order_number}", order_number) from e

        logger.info(
            "Order status changed",
            order_number=order_number,
            new_status=new_status,
            actor=actor,
            override=override,
        )
        return self.get_order_view(order_number)

    def add_internal_note(self, order_number: str, note: str, added_by: str, is_private: bool = True) -> str:
        command = AddInternalNote(
            order_number=normalize_identifier(order_number),
            note=note,
            added_by=added_by,
            is_private=is_private,
        )
        return current_domain.process(command, asynchronous=False)

    def cancel_by_customer(self, identifier: str, email: str, reason: str | None = None) -> OrderView:
        """Customer self-service cancellation, allowed while pending or confirmed.

        The email must match the order's customer snapshot; a mismatch is
        reported as not found so order existence is not leaked.
        """
        order = self._load(identifier)
        if order.customer.email != normalize_email(email):
            raise ObjectNotFoundError(f"No order `{identifier}` for this customer")
        assert_customer_can_cancel(order.status)

        reason = (reason or "").strip()
        note = f"Cancelled by customer: {reason}" if reason else "Cancelled by customer"
        view = self.update_status(
            order.order_number,
            OrderStatus.CANCELLED.value,
            note=note[:200],
            actor=CUSTOMER_ACTOR,
            expected_revision=order.revision or 0,
        )
        logger.info("Order cancelled by customer", order_number=order.order_number, reason=reason or None)
        return view

    # -------------------------------------------------------------------
    # Single-order reads
    # -------------------------------------------------------------------
    def _load(self, identifier: str) -> Order:
        repo = current_domain.repository_for(Order)
        kind = identifier_kind(identifier)
        value = normalize_identifier(identifier)
        if kind == IdentifierKind.ORDER_NUMBER:
            return repo.get(value)
        if kind == IdentifierKind.TRACKING_CODE:
            return repo.find_by_tracking_code(value)
        raise ObjectNotFoundError(f"`{identifier}` is neither an order number nor a tracking code")

    def get_order_view(self, order_number: str, now: datetime | None = None) -> OrderView:
        order = current_domain.repository_for(Order).get(normalize_identifier(order_number))
        return order_view(order, now or datetime.now(UTC))

    def lookup_by_identifier(self, identifier: str, now: datetime | None = None) -> OrderView:
        """Resolve an ``ORD-`` order number or ``TRK-`` tracking code."""
        return order_view(self._load(identifier), now or datetime.now(UTC))

    def build_timeline_view(self, order_number: str) -> list[TimelineStep]:
        return timeline_steps(self._load(order_number))

    def progress_percentage(self, status) -> int:
        return progress_percentage(status)

    def classify(self, order: Order, now: datetime | None = None) -> DeliveryStatus:
        return classify_order(order, now or datetime.now(UTC))

    def internal_notes(self, order_number: str) -> list[InternalNoteView]:
        order = self._load(order_number)
        notes = sorted(order.internal_notes or [], key=lambda n: as_utc(n.added_at))
        return [
            InternalNoteView(
                note_id=str(n.id),
                note=n.note,
                added_by=n.added_by,
                is_private=bool(n.is_private),
                added_at=as_utc(n.added_at),
            )
            for n in notes
        ]

    # -------------------------------------------------------------------
    # List reads (projections)
    # -------------------------------------------------------------------
    def search_by_email(
        self,
        email: str,
        order_number: str | None = None,
        page: int = 1,
        per_page: int | None = None,
        now: datetime | None = None,
    ) -> SearchResults:
        """Orders of a customer, most recent first."""
        email = normalize_email(email)
        if page < 1:
            raise ValidationError({"page": ["Page must be 1 or greater"]})
        per_page = min(per_page or setting("SEARCH_PAGE_SIZE"), setting("MAX_PAGE_SIZE"))
        if per_page < 1:
            raise ValidationError({"per_page": ["Page size must be 1 or greater"]})

        query = current_domain.repository_for(OrderSummaryView)._dao.query.filter(customer_email=email)
        if order_number:
            query = query.filter(order_number=normalize_identifier(order_number))
        results = query.order_by("-created_at").offset((page - 1) * per_page).limit(per_page).all()

        now = now or datetime.now(UTC)
        return SearchResults(
            orders=tuple(OrderSummary.from_view(view, now) for view in results.items),
            total=results.total,
            page=page,
            per_page=per_page,
            has_next=page * per_page < results.total,
        )

    def customer_stats(self, email: str) -> CustomerStats:
        email = normalize_email(email)
        try:
            stats = current_domain.repository_for(CustomerDeliveryStats).get(email)
        except ObjectNotFoundError:
            return CustomerStats(
                customer_email=email,
                total_orders=0,
                active_orders=0,
                delivered_count=0,
                cancelled_count=0,
                on_time_percentage=0,
                total_spent=0.0,
                status_breakdown={},
            )

        delivered = stats.delivered_count or 0
        breakdown = {status: count for status, count in json.loads(stats.status_counts or "{}").items() if count}
        return CustomerStats(
            customer_email=email,
            total_orders=stats.total_orders or 0,
            active_orders=stats.active_orders or 0,
            delivered_count=delivered,
            cancelled_count=stats.cancelled_count or 0,
            on_time_percentage=round((stats.on_time_count or 0) * 100 / delivered) if delivered else 0,
            total_spent=stats.total_spent or 0.0,
            status_breakdown=breakdown,
        )

    def _summaries(self, now: datetime, **filters) -> list[OrderSummary]:
        results = (
            current_domain.repository_for(OrderSummaryView)
            ._dao.query.filter(**filters)
            .order_by("estimated_delivery")
            .limit(setting("MAX_PAGE_SIZE"))
            .all()
        )
        return [OrderSummary.from_view(view, now) for view in results.items]

    def overdue_orders(self, now: datetime | None = None) -> list[OrderSummary]:
        """Active orders whose estimated delivery has passed."""
        now = now or datetime.now(UTC)
        return self._summaries(
            now,
            status__in=[s.value for s in ACTIVE_STATUSES],
            estimated_delivery__lt=now,
        )

    def orders_needing_update(self, now: datetime | None = None) -> list[OrderSummary]:
        """Processing or shipped orders due within the next day."""
        now = now or datetime.now(UTC)
        return self._summaries(
            now,
            status__in=[OrderStatus.PROCESSING.value, OrderStatus.SHIPPED.value],
            estimated_delivery__lte=now + ONE_DAY,
        )


_service_instance = None


def get_tracking_service() -> TrackingService:
    """Return the process-wide tracking service (singleton, shares its locks)."""
    global _service_instance
    if _service_instance is None:
        _service_instance = TrackingService()
    return _service_instance
