"""Order domain events — facts about an order's tracking lifecycle.

Versioned, past tense, and self-contained so the projectors and the
notification dispatcher never have to load the aggregate.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from tracking.domain import tracking


@tracking.event(part_of="Order")
class OrderPlaced:
    """An order was accepted at checkout and starts its tracking history."""

    __version__ = 1

    order_number = Identifier(required=True)
    tracking_code = String(required=True)
    customer_email = String(required=True)
    customer_name = String()
    status = String(required=True)
    total_amount = Float(required=True)
    total_items = Integer(required=True)
    currency = String(default="USD")
    is_urgent = Boolean(default=False)
    estimated_delivery = DateTime()
    placed_at = DateTime(required=True)


@tracking.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a new status and a timeline event was recorded."""

    __version__ = 1

    order_number = Identifier(required=True)
    tracking_code = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    note = String()
    location = String()
    actor = String()
    is_correction = Boolean(default=False)
    notify = Boolean(default=True)
    customer_email = String(required=True)
    customer_name = String()
    estimated_delivery = DateTime()
    actual_delivery = DateTime()
    revision = Integer(required=True)
    changed_at = DateTime(required=True)


@tracking.event(part_of="Order")
class InternalNoteAdded:
    """Staff attached a note to the order."""

    __version__ = 1

    order_number = Identifier(required=True)
    note_id = Identifier(required=True)
    added_by = String(required=True)
    is_private = Boolean(default=True)
    added_at = DateTime(required=True)
