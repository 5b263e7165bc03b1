"""Status update template — one message shape for every status change."""

from tracking.order.status_machine import STATUS_META, OrderStatus

_SUBJECTS = {
    OrderStatus.CONFIRMED: "Your order is confirmed",
    OrderStatus.PROCESSING: "Your order is being prepared",
    OrderStatus.SHIPPED: "Your order has shipped!",
    OrderStatus.DELIVERED: "Your order has been delivered",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}


class StatusUpdateTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        status = OrderStatus(context["new_status"])
        meta = STATUS_META[status]
        order_number = context.get("order_number", "N/A")
        lines = [
            f"Hello {context.get('customer_name') or 'there'},",
            "",
            f"{meta.icon} Order {order_number}: {meta.label}.",
        ]
        if context.get("note"):
            lines.append(context["note"])
        if context.get("location"):
            lines.append(f"Location: {context['location']}")
        if status not in (OrderStatus.DELIVERED, OrderStatus.CANCELLED) and context.get("estimated_delivery"):
            lines.append(f"Estimated Delivery: {context['estimated_delivery']}")
        lines += ["", f"Track your order any time with code {context.get('tracking_code', 'N/A')}."]
        return {
            "subject": _SUBJECTS.get(status, f"Order update: {meta.label}"),
            "body": "\n".join(lines),
        }
