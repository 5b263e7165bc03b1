"""Order placement — intake command and handler.

Stands in for the checkout collaborator: assigns the order number and the
public tracking code and opens the timeline.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String, Text
from protean.utils.globals import current_domain

from tracking.config import setting
from tracking.domain import tracking
from tracking.order.codes import new_order_number, new_tracking_code
from tracking.order.order import Order

logger = structlog.get_logger(__name__)


@tracking.command(part_of="Order")
class PlaceOrder:
    """Accept a checked-out order for tracking."""

    customer = Text(required=True)  # JSON customer snapshot
    items = Text(required=True)  # JSON list of item dicts
    estimated_delivery = DateTime()
    is_urgent = Boolean(default=False)
    shipping_cost = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    delivery_instructions = String(max_length=300)
    shipping_provider = String(max_length=100)
    notifications_enabled = Boolean(default=True)


@tracking.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        customer = json.loads(command.customer) if isinstance(command.customer, str) else command.customer
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items

        repo = current_domain.repository_for(Order)
        order_number = new_order_number(repo.next_sequence())
        if repo.exists(order_number):
            raise ValidationError({"order_number": [f"Order number {order_number} is already taken"]})

        order = Order.place(
            order_number=order_number,
            tracking_code=new_tracking_code(),
            customer=customer,
            items_data=items_data,
            estimated_delivery=command.estimated_delivery,
            is_urgent=command.is_urgent,
            shipping_cost=command.shipping_cost,
            currency=command.currency,
            delivery_instructions=command.delivery_instructions,
            shipping_provider=command.shipping_provider,
            notifications_enabled=command.notifications_enabled,
            standard_days=setting("STANDARD_DELIVERY_DAYS"),
            urgent_days=setting("URGENT_DELIVERY_DAYS"),
        )
        repo.add(order)
        logger.info(
            "Order placed",
            order_number=order.order_number,
            tracking_code=order.tracking_code,
            is_urgent=order.is_urgent,
        )
        return order.order_number
