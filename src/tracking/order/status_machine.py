"""Order status machine: transition rules and per-status display metadata.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    {PENDING, CONFIRMED, PROCESSING, SHIPPED} → CANCELLED

DELIVERED and CANCELLED are terminal. A forward jump past the immediate
successor is accepted only with an administrative override, and the result
is flagged as a correction.
"""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError

from tracking.errors import InvalidTransition, NoChange


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class TransitionRejection(Enum):
    NO_CHANGE = "no_change"
    TERMINAL_STATE = "terminal_state"
    DISALLOWED_SKIP = "disallowed_skip"
    BACKWARD = "backward"
    TOO_LATE_TO_CANCEL = "too_late_to_cancel"


HAPPY_PATH = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
ACTIVE_STATUSES = tuple(s for s in OrderStatus if s not in TERMINAL_STATUSES)
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


@dataclass(frozen=True)
class StatusMeta:
    label: str
    weight: int
    color: str
    icon: str
    default_note: str
    default_location: str


STATUS_META = {
    OrderStatus.PENDING: StatusMeta(
        "Order received", 0, "yellow", "⏳", "Order received and awaiting confirmation", "Processing center"
    ),
    OrderStatus.CONFIRMED: StatusMeta(
        "Order confirmed", 20, "blue", "✅", "Order confirmed and queued for preparation", "Processing center"
    ),
    OrderStatus.PROCESSING: StatusMeta(
        "In preparation", 40, "purple", "🔄", "Order is being prepared in the warehouse", "Warehouse"
    ),
    OrderStatus.SHIPPED: StatusMeta("Shipped", 70, "indigo", "🚚", "Order handed to the carrier", "In transit"),
    OrderStatus.DELIVERED: StatusMeta(
        "Delivered", 100, "green", "📦", "Order delivered to the customer", "Delivery address"
    ),
    OrderStatus.CANCELLED: StatusMeta("Cancelled", 0, "red", "❌", "Order cancelled", "Processing center"),
}


@dataclass(frozen=True)
class TransitionCheck:
    ok: bool
    reason: TransitionRejection | None = None
    is_correction: bool = False


def coerce_status(value) -> OrderStatus:
    """Accept an OrderStatus or its string value."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status '{value}'"]}) from None


def is_terminal(status) -> bool:
    return coerce_status(status) in TERMINAL_STATUSES


def successor(status) -> OrderStatus | None:
    """Next status on the happy path, or None for terminal states."""
    status = coerce_status(status)
    if status in TERMINAL_STATUSES:
        return None
    return HAPPY_PATH[HAPPY_PATH.index(status) + 1]


def validate(current, requested, override: bool = False) -> TransitionCheck:
    current = coerce_status(current)
    requested = coerce_status(requested)

    if current in TERMINAL_STATUSES:
        return TransitionCheck(ok=False, reason=TransitionRejection.TERMINAL_STATE)
    if requested == current:
        return TransitionCheck(ok=False, reason=TransitionRejection.NO_CHANGE)
    if requested == OrderStatus.CANCELLED or requested == successor(current):
        return TransitionCheck(ok=True)

    if HAPPY_PATH.index(requested) < HAPPY_PATH.index(current):
        return TransitionCheck(ok=False, reason=TransitionRejection.BACKWARD)
    if override:
        return TransitionCheck(ok=True, is_correction=True)
    return TransitionCheck(ok=False, reason=TransitionRejection.DISALLOWED_SKIP)


def assert_can_transition(current, requested, override: bool = False) -> TransitionCheck:
    """Like ``validate`` but raises ``NoChange`` / ``InvalidTransition`` on rejection."""
    check = validate(current, requested, override=override)
    if check.ok:
        return check

    current = coerce_status(current)
    requested = coerce_status(requested)
    if check.reason == TransitionRejection.NO_CHANGE:
        raise NoChange(current.value)

    if check.reason == TransitionRejection.TERMINAL_STATE:
        message = f"Order is already '{current.value}' and can no longer change"
    elif check.reason == TransitionRejection.BACKWARD:
        message = f"Cannot move order back from '{current.value}' to '{requested.value}'"
    else:
        message = (
            f"Cannot skip from '{current.value}' to '{requested.value}'; "
            f"next status is '{successor(current).value}' unless an administrator overrides"
        )
    raise InvalidTransition(current.value, requested.value, check.reason.value, message)


def assert_customer_can_cancel(current) -> None:
    """Customers may cancel only before preparation starts."""
    current = coerce_status(current)
    if current in TERMINAL_STATUSES:
        assert_can_transition(current, OrderStatus.CANCELLED)
    if current not in CUSTOMER_CANCELLABLE:
        raise InvalidTransition(
            current.value,
            OrderStatus.CANCELLED.value,
            TransitionRejection.TOO_LATE_TO_CANCEL.value,
            f"Order is already '{current.value}'; contact support to cancel it",
        )


def label_for(status) -> str:
    return STATUS_META[coerce_status(status)].label


def weight_for(status) -> int:
    return STATUS_META[coerce_status(status)].weight
