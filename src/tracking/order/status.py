"""Order status updates — command and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String

from tracking.domain import tracking
from tracking.order.order import Order
from tracking.order.timeline import TimelineStore


@tracking.command(part_of="Order")
class UpdateOrderStatus:
    """Move an order to a new status. The only command that touches status."""

    order_number = Identifier(required=True)
    status = String(required=True, max_length=20)
    note = String(max_length=200)
    location = String(max_length=100)
    actor = String(max_length=100)
    override = Boolean(default=False)
    notify = Boolean(default=True)
    carrier_tracking_number = String(max_length=100)
    expected_revision = Integer()


@tracking.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        return TimelineStore().append(
            command.order_number,
            command.status,
            note=command.note,
            location=command.location,
            actor=command.actor,
            override=command.override,
            notify=command.notify,
            carrier_tracking_number=command.carrier_tracking_number,
            expected_revision=command.expected_revision,
        )
