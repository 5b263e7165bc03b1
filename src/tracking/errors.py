"""Tracking error taxonomy.

Rule violations are ``ValidationError`` subclasses so the Protean FastAPI
handlers turn them into 400 responses. Infrastructure-level failures derive
from ``TrackingError`` and say whether the caller may retry.
"""

from protean.exceptions import ValidationError


class InvalidTransition(ValidationError):
    """The requested status is not reachable from the current one."""

    retryable = False

    def __init__(self, current: str, requested: str, reason: str, message: str | None = None):
        self.current = current
        self.requested = requested
        self.reason = reason
        super().__init__({"status": [message or f"Cannot move order from '{current}' to '{requested}' ({reason})"]})


class NoChange(InvalidTransition):
    """The requested status equals the current one."""

    def __init__(self, current: str):
        super().__init__(current, current, "no_change", f"Order is already '{current}'")


class TrackingError(Exception):
    retryable = False

    def __init__(self, message: str, order_number: str | None = None):
        self.order_number = order_number
        super().__init__(message)


class ConcurrentModification(TrackingError):
    """Another writer changed the order first. Re-read and try again."""

    retryable = True

    def __init__(self, order_number: str, message: str | None = None):
        super().__init__(message or f"Order {order_number} was modified concurrently", order_number)


class PersistenceUnavailable(TrackingError):
    """The store could not be reached or timed out.

    Retrying is safe for the order itself: a repeated transition is rejected
    with ``NoChange`` if the first attempt was in fact committed.
    """

    retryable = True


class NotificationDeliveryFailed(TrackingError):
    """Raised internally by the notification dispatcher; never reaches API callers."""

    retryable = True

    def __init__(self, order_number: str, status: str, reason: str):
        self.status = status
        self.reason = reason
        super().__init__(f"Could not notify customer of order {order_number} about '{status}': {reason}", order_number)
