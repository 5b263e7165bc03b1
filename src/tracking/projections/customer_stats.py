"""Customer delivery stats — per-customer status breakdown and delivery performance."""

import json

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from tracking.delivery.estimator import as_utc
from tracking.domain import tracking
from tracking.order.events import OrderPlaced, OrderStatusChanged
from tracking.order.order import Order
from tracking.order.status_machine import OrderStatus


@tracking.projection
class CustomerDeliveryStats:
    customer_email = String(identifier=True, required=True)
    total_orders = Integer(default=0)
    active_orders = Integer(default=0)
    delivered_count = Integer(default=0)
    on_time_count = Integer(default=0)
    cancelled_count = Integer(default=0)
    total_spent = Float(default=0.0)
    status_counts = Text()  # JSON dict of status -> count
    updated_at = DateTime()


def _get_or_create(email: str) -> CustomerDeliveryStats:
    repo = current_domain.repository_for(CustomerDeliveryStats)
    try:
        return repo.get(email)
    except ObjectNotFoundError:
        return CustomerDeliveryStats(customer_email=email, status_counts=json.dumps({}))


def _bump(stats: CustomerDeliveryStats, status: str, delta: int) -> None:
    counts = json.loads(stats.status_counts or "{}")
    counts[status] = max(counts.get(status, 0) + delta, 0)
    stats.status_counts = json.dumps(counts)


@tracking.projector(projector_for=CustomerDeliveryStats, aggregates=[Order])
class CustomerDeliveryStatsProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        stats = _get_or_create(event.customer_email)
        stats.total_orders = (stats.total_orders or 0) + 1
        stats.active_orders = (stats.active_orders or 0) + 1
        stats.total_spent = round((stats.total_spent or 0.0) + (event.total_amount or 0.0), 2)
        _bump(stats, event.status, 1)
        stats.updated_at = event.placed_at
        current_domain.repository_for(CustomerDeliveryStats).add(stats)

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        stats = _get_or_create(event.customer_email)
        _bump(stats, event.previous_status, -1)
        _bump(stats, event.new_status, 1)

        if event.new_status == OrderStatus.DELIVERED.value:
            stats.delivered_count = (stats.delivered_count or 0) + 1
            stats.active_orders = max((stats.active_orders or 0) - 1, 0)
            estimated = as_utc(event.estimated_delivery)
            if estimated is None or as_utc(event.actual_delivery) <= estimated:
                stats.on_time_count = (stats.on_time_count or 0) + 1
        elif event.new_status == OrderStatus.CANCELLED.value:
            stats.cancelled_count = (stats.cancelled_count or 0) + 1
            stats.active_orders = max((stats.active_orders or 0) - 1, 0)

        stats.updated_at = event.changed_at
        current_domain.repository_for(CustomerDeliveryStats).add(stats)
