"""Order numbers and public tracking codes.

    ORD-<epoch millis>-<sequence, zero-padded to 4>
    TRK-<epoch millis>-<6 random uppercase hex chars>

Generation is pure. Uniqueness is checked where the codes are persisted.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

ORDER_NUMBER_PREFIX = "ORD-"
TRACKING_CODE_PREFIX = "TRK-"


class IdentifierKind(Enum):
    ORDER_NUMBER = "order_number"
    TRACKING_CODE = "tracking_code"


def _epoch_millis(now: datetime | None) -> int:
    return int((now or datetime.now(UTC)).timestamp() * 1000)


def new_tracking_code(now: datetime | None = None) -> str:
    return f"{TRACKING_CODE_PREFIX}{_epoch_millis(now)}-{uuid4().hex[:6].upper()}"


def new_order_number(sequence: int, now: datetime | None = None) -> str:
    if sequence < 1:
        raise ValueError(f"Order sequence must be positive, got {sequence}")
    return f"{ORDER_NUMBER_PREFIX}{_epoch_millis(now)}-{sequence:04d}"


def normalize_identifier(identifier: str) -> str:
    """Strip whitespace and upper-case a customer-typed identifier."""
    return (identifier or "").strip().upper()


def identifier_kind(identifier: str) -> IdentifierKind | None:
    """Recognise an identifier by its prefix. ``None`` means unrecognised."""
    value = normalize_identifier(identifier)
    if value.startswith(ORDER_NUMBER_PREFIX) and len(value) > len(ORDER_NUMBER_PREFIX):
        return IdentifierKind.ORDER_NUMBER
    if value.startswith(TRACKING_CODE_PREFIX) and len(value) > len(TRACKING_CODE_PREFIX):
        return IdentifierKind.TRACKING_CODE
    return None
