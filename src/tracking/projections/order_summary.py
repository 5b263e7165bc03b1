"""Order summary — customer-facing order list, searchable by email."""

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from tracking.domain import tracking
from tracking.order.events import OrderPlaced, OrderStatusChanged
from tracking.order.order import Order


@tracking.projection
class OrderSummaryView:
    order_number = Identifier(identifier=True, required=True)
    tracking_code = String(required=True)
    customer_email = String(required=True)
    customer_name = String()
    status = String(required=True)
    total_amount = Float(default=0.0)
    total_items = Integer(default=0)
    currency = String(default="USD")
    is_urgent = Boolean(default=False)
    estimated_delivery = DateTime()
    actual_delivery = DateTime()
    created_at = DateTime()
    updated_at = DateTime()


@tracking.projector(projector_for=OrderSummaryView, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummaryView).add(
            OrderSummaryView(
                order_number=event.order_number,
                tracking_code=event.tracking_code,
                customer_email=event.customer_email,
                customer_name=event.customer_name,
                status=event.status,
                total_amount=event.total_amount,
                total_items=event.total_items,
                currency=event.currency,
                is_urgent=event.is_urgent,
                estimated_delivery=event.estimated_delivery,
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        repo = current_domain.repository_for(OrderSummaryView)
        view = repo.get(event.order_number)
        view.status = event.new_status
        view.estimated_delivery = event.estimated_delivery
        view.actual_delivery = event.actual_delivery
        view.updated_at = event.changed_at
        repo.add(view)
