"""Order aggregate (CQRS) — the tracking view of a customer order.

An Order is placed once at checkout with a ``pending`` timeline event and from
then on changes status only through ``change_status``. The status change and
its timeline event are applied together, so the latest timeline event always
carries the order's current status.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    {PENDING, CONFIRMED, PROCESSING, SHIPPED} → CANCELLED
    forward jumps only as administrative corrections (flagged)
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from tracking.delivery.estimator import (
    STANDARD_DELIVERY_DAYS,
    URGENT_DELIVERY_DAYS,
    as_utc,
    estimate_delivery,
)
from tracking.domain import tracking
from tracking.order.events import InternalNoteAdded, OrderPlaced, OrderStatusChanged
from tracking.order.status_machine import (
    STATUS_META,
    OrderStatus,
    assert_can_transition,
    coerce_status,
)

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "system"


def normalize_email(email: str) -> str:
    value = (email or "").strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValidationError({"email": [f"'{email}' is not a valid email address"]})
    return value


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@tracking.value_object(part_of="Order")
class CustomerSnapshot:
    """Customer details as they were at checkout."""

    name = String(required=True, max_length=150)
    email = String(required=True, max_length=254)
    phone = String(max_length=50)
    street = String(max_length=255)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@tracking.entity(part_of="Order")
class OrderItem:
    """A catalog item snapshot; later catalog edits never reach it."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=500)


@tracking.entity(part_of="Order")
class TimelineEvent:
    """One entry of the order's append-only status history."""

    status = String(required=True, max_length=20, choices=OrderStatus)
    occurred_at = DateTime(required=True)
    note = String(max_length=200)
    location = String(max_length=100)
    actor = String(max_length=100, default=SYSTEM_ACTOR)
    is_correction = Boolean(default=False)
    sequence = Integer(required=True, min_value=1)


@tracking.entity(part_of="Order")
class InternalNote:
    note = String(required=True, max_length=500)
    added_by = String(required=True, max_length=100)
    is_private = Boolean(default=True)
    added_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@tracking.aggregate
class Order:
    order_number = Identifier(identifier=True)
    tracking_code = String(required=True, max_length=40, unique=True)
    status = String(
        max_length=20,
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    customer = ValueObject(CustomerSnapshot)
    items = HasMany(OrderItem)
    timeline = HasMany(TimelineEvent)
    internal_notes = HasMany(InternalNote)
    total_amount = Float(min_value=0.0, default=0.0)
    total_items = Integer(min_value=0, default=0)
    shipping_cost = Float(min_value=0.0, default=0.0)
    currency = String(max_length=3, default="USD")
    is_urgent = Boolean(default=False)
    delivery_instructions = String(max_length=300)
    shipping_provider = String(max_length=100)
    carrier_tracking_number = String(max_length=100)
    notifications_enabled = Boolean(default=True)
    estimated_delivery = DateTime()
    actual_delivery = DateTime()
    revision = Integer(min_value=0, default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        tracking_code: str,
        customer: dict,
        items_data: list[dict],
        estimated_delivery: datetime | None = None,
        is_urgent: bool = False,
        shipping_cost: float = 0.0,
        currency: str = "USD",
        delivery_instructions: str | None = None,
        shipping_provider: str | None = None,
        notifications_enabled: bool = True,
        standard_days: int = STANDARD_DELIVERY_DAYS,
        urgent_days: int = URGENT_DELIVERY_DAYS,
    ):
        """Accept an order from checkout and open its timeline with ``pending``."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        customer_data = dict(customer)
        customer_data["email"] = normalize_email(customer_data.get("email"))
        shipping_cost = shipping_cost or 0.0
        items_total = sum(float(item["price"]) * int(item["quantity"]) for item in items_data)

        order = cls(
            order_number=order_number,
            tracking_code=tracking_code,
            status=OrderStatus.PENDING.value,
            customer=CustomerSnapshot(**customer_data),
            total_amount=round(items_total + shipping_cost, 2),
            total_items=sum(int(item["quantity"]) for item in items_data),
            shipping_cost=shipping_cost,
            currency=currency or "USD",
            is_urgent=bool(is_urgent),
            delivery_instructions=delivery_instructions,
            shipping_provider=shipping_provider,
            notifications_enabled=notifications_enabled,
            estimated_delivery=as_utc(estimated_delivery)
            or estimate_delivery(now, bool(is_urgent), standard_days, urgent_days),
            revision=0,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))

        meta = STATUS_META[OrderStatus.PENDING]
        order.add_timeline(
            TimelineEvent(
                status=OrderStatus.PENDING.value,
                occurred_at=now,
                note=meta.default_note,
                location=meta.default_location,
                actor=SYSTEM_ACTOR,
                sequence=1,
            )
        )
        order.raise_(
            OrderPlaced(
                order_number=order.order_number,
                tracking_code=order.tracking_code,
                customer_email=order.customer.email,
                customer_name=order.customer.name,
                status=order.status,
                total_amount=order.total_amount,
                total_items=order.total_items,
                currency=order.currency,
                is_urgent=order.is_urgent,
                estimated_delivery=order.estimated_delivery,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Timeline
    # -------------------------------------------------------------------
    def timeline_events(self) -> list[TimelineEvent]:
        """Timeline ascending by time; sequence breaks ties left by coarse clocks."""
        return sorted(self.timeline or [], key=lambda e: (as_utc(e.occurred_at), e.sequence))

    def _next_timestamp(self) -> datetime:
        now = datetime.now(UTC)
        events = self.timeline_events()
        if events:
            last = as_utc(events[-1].occurred_at)
            if now <= last:
                now = last + timedelta(microseconds=1)
        return now

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def change_status(
        self,
        new_status,
        note: str | None = None,
        location: str | None = None,
        actor: str | None = None,
        override: bool = False,
        notify: bool = True,
        carrier_tracking_number: str | None = None,
        standard_days: int = STANDARD_DELIVERY_DAYS,
        urgent_days: int = URGENT_DELIVERY_DAYS,
    ) -> TimelineEvent:
        """Move to ``new_status`` and record the matching timeline event."""
        previous = coerce_status(self.status)
        target = coerce_status(new_status)
        check = assert_can_transition(previous, target, override=override)

        now = self._next_timestamp()
        meta = STATUS_META[target]
        event = TimelineEvent(
            status=target.value,
            occurred_at=now,
            note=note or meta.default_note,
            location=location or meta.default_location,
            actor=actor or SYSTEM_ACTOR,
            is_correction=check.is_correction,
            sequence=len(self.timeline or []) + 1,
        )
        self.add_timeline(event)

        self.status = target.value
        if target == OrderStatus.CONFIRMED and self.estimated_delivery is None:
            self.estimated_delivery = estimate_delivery(now, bool(self.is_urgent), standard_days, urgent_days)
        if target == OrderStatus.DELIVERED and self.actual_delivery is None:
            self.actual_delivery = now
        if carrier_tracking_number:
            self.carrier_tracking_number = carrier_tracking_number
        self.revision = (self.revision or 0) + 1
        self.updated_at = now

        if check.is_correction:
            logger.warning(
                "Out-of-order status correction",
                order_number=self.order_number,
                previous_status=previous.value,
                new_status=target.value,
                actor=event.actor,
            )

        self.raise_(
            OrderStatusChanged(
                order_number=self.order_number,
                tracking_code=self.tracking_code,
                previous_status=previous.value,
                new_status=target.value,
                note=event.note,
                location=event.location,
                actor=event.actor,
                is_correction=check.is_correction,
                notify=bool(notify and self.notifications_enabled),
                customer_email=self.customer.email,
                customer_name=self.customer.name,
                estimated_delivery=self.estimated_delivery,
                actual_delivery=self.actual_delivery,
                revision=self.revision,
                changed_at=now,
            )
        )
        return event

    # -------------------------------------------------------------------
    # Internal notes
    # -------------------------------------------------------------------
    def add_internal_note(self, note: str, added_by: str, is_private: bool = True) -> InternalNote:
        """Attach a staff note. Notes never touch status or timeline."""
        if not (note or "").strip():
            raise ValidationError({"note": ["Note cannot be empty"]})

        now = datetime.now(UTC)
        internal_note = InternalNote(note=note.strip(), added_by=added_by, is_private=is_private, added_at=now)
        self.add_internal_notes(internal_note)
        self.updated_at = now
        self.raise_(
            InternalNoteAdded(
                order_number=self.order_number,
                note_id=str(internal_note.id),
                added_by=added_by,
                is_private=is_private,
                added_at=now,
            )
        )
        return internal_note
