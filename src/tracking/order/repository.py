"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError

from tracking.domain import tracking
from tracking.order.order import Order


@tracking.repository(part_of=Order)
class OrderRepository:
    """Order repository with the lookups tracking needs beyond ``get``."""

    def find_by_tracking_code(self, tracking_code: str) -> Order:
        results = self._dao.query.filter(tracking_code=tracking_code).all()
        if not results.items:
            raise ObjectNotFoundError(f"Order with tracking code `{tracking_code}` does not exist")
        return results.first

    def exists(self, order_number: str) -> bool:
        return self._dao.query.filter(order_number=order_number).all().total > 0

    def next_sequence(self) -> int:
        return self._dao.query.all().total + 1
