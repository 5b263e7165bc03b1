"""FastAPI routes for the Tracking domain."""

import hashlib
import hmac
import json
import os

import structlog
from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from tracking.api.schemas import (
    AddNoteRequest,
    AdminTimelineResponse,
    CancelOrderRequest,
    CarrierWebhookRequest,
    CustomerStatsResponse,
    InternalNoteResponse,
    NoteIdResponse,
    OrderCreatedResponse,
    OrderSummaryResponse,
    OrderViewResponse,
    PlaceOrderRequest,
    SearchRequest,
    SearchResponse,
    StatusResponse,
    TimelineEntryResponse,
    TimelineStepResponse,
    UpdateStatusRequest,
)
from tracking.errors import NoChange
from tracking.order.order import Order
from tracking.order.placement import PlaceOrder
from tracking.services.tracking import get_tracking_service

logger = structlog.get_logger(__name__)

# Carrier feed vocabulary → order status
CARRIER_STATUS_MAP = {
    "picked_up": "shipped",
    "in_transit": "shipped",
    "out_for_delivery": "shipped",
    "shipped": "shipped",
    "delivered": "delivered",
}

CARRIER_ACTOR = "carrier"


def _verify_carrier_signature(payload: str, signature: str) -> bool:
    """HMAC-SHA256 of the payload; accepts everything when no secret is set."""
    secret = os.environ.get("CARRIER_WEBHOOK_SECRET")
    if not secret:
        return True
    expected = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature or "")


# ---------------------------------------------------------------------------
# Order Router (intake and admin)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderCreatedResponse)
async def place_order(body: PlaceOrderRequest) -> OrderCreatedResponse:
    """Accept a checked-out order and start tracking it."""
    command = PlaceOrder(
        customer=json.dumps(body.customer.model_dump()),
        items=json.dumps([item.model_dump() for item in body.items]),
        estimated_delivery=body.estimated_delivery,
        is_urgent=body.is_urgent,
        shipping_cost=body.shipping_cost,
        currency=body.currency,
        delivery_instructions=body.delivery_instructions,
        shipping_provider=body.shipping_provider,
        notifications_enabled=body.notifications_enabled,
    )
    order_number = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_number)
    return OrderCreatedResponse(order_number=order.order_number, tracking_code=order.tracking_code)


@order_router.get("/overdue", response_model=list[OrderSummaryResponse])
async def overdue_orders() -> list[OrderSummaryResponse]:
    """Active orders past their estimated delivery."""
    return [OrderSummaryResponse.model_validate(s) for s in get_tracking_service().overdue_orders()]


@order_router.put("/{order_number}/status", response_model=OrderViewResponse)
async def update_status(order_number: str, body: UpdateStatusRequest) -> OrderViewResponse:
    """Move an order to a new status (admin)."""
    view = get_tracking_service().update_status(
        order_number,
        body.status,
        note=body.note,
        location=body.location,
        actor=body.actor or "admin",
        override=body.override,
        notify=body.notify,
        carrier_tracking_number=body.carrier_tracking_number,
        expected_revision=body.expected_revision,
    )
    return OrderViewResponse.model_validate(view)


@order_router.post("/{order_number}/notes", status_code=201, response_model=NoteIdResponse)
async def add_note(order_number: str, body: AddNoteRequest) -> NoteIdResponse:
    """Attach an internal staff note to an order."""
    note_id = get_tracking_service().add_internal_note(
        order_number, body.note, body.added_by, is_private=body.is_private
    )
    return NoteIdResponse(note_id=note_id)


@order_router.get("/{order_number}/timeline", response_model=AdminTimelineResponse)
async def admin_timeline(order_number: str) -> AdminTimelineResponse:
    """Timeline steps, raw history and internal notes of an order."""
    service = get_tracking_service()
    view = service.lookup_by_identifier(order_number)
    return AdminTimelineResponse(
        order_number=view.order_number,
        steps=[TimelineStepResponse.model_validate(s) for s in view.steps],
        history=[TimelineEntryResponse.model_validate(e) for e in view.timeline],
        internal_notes=[InternalNoteResponse.model_validate(n) for n in service.internal_notes(order_number)],
    )


# ---------------------------------------------------------------------------
# Tracking Router (customer-facing and carrier feed)
# ---------------------------------------------------------------------------
tracking_router = APIRouter(prefix="/tracking", tags=["tracking"])


@tracking_router.post("/search", response_model=SearchResponse)
async def search_orders(body: SearchRequest) -> SearchResponse:
    """Find a customer's orders by email, most recent first."""
    results = get_tracking_service().search_by_email(
        body.email, order_number=body.order_number, page=body.page, per_page=body.per_page
    )
    return SearchResponse.model_validate(results)


@tracking_router.get("/stats/{email}", response_model=CustomerStatsResponse)
async def customer_stats(email: str) -> CustomerStatsResponse:
    return CustomerStatsResponse.model_validate(get_tracking_service().customer_stats(email))


@tracking_router.post("/webhook", response_model=StatusResponse)
async def carrier_webhook(
    body: CarrierWebhookRequest,
    x_carrier_signature: str = Header(default=""),
) -> StatusResponse:
    """Process a carrier status callback keyed by tracking code."""
    if not _verify_carrier_signature(json.dumps(body.model_dump()), x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid carrier webhook signature")

    status = CARRIER_STATUS_MAP.get(body.status.strip().lower())
    if status is None:
        logger.info("Ignoring carrier status", tracking_code=body.tracking_code, carrier_status=body.status)
        return StatusResponse(status="ignored")

    service = get_tracking_service()
    view = service.lookup_by_identifier(body.tracking_code)
    try:
        service.update_status(
            view.order_number,
            status,
            note=body.description,
            location=body.location,
            actor=CARRIER_ACTOR,
            carrier_tracking_number=body.carrier_tracking_number,
        )
    except NoChange:
        return StatusResponse(status="unchanged")
    return StatusResponse(status="status_updated")


@tracking_router.post("/{identifier}/cancel", response_model=OrderViewResponse)
async def cancel_order(identifier: str, body: CancelOrderRequest) -> OrderViewResponse:
    """Customer cancellation; only while the order is pending or confirmed."""
    view = get_tracking_service().cancel_by_customer(identifier, body.email, reason=body.reason)
    return OrderViewResponse.model_validate(view)


@tracking_router.get("/{identifier}", response_model=OrderViewResponse)
async def track_order(identifier: str) -> OrderViewResponse:
    """Look up an order by order number (ORD-) or tracking code (TRK-)."""
    return OrderViewResponse.model_validate(get_tracking_service().lookup_by_identifier(identifier))
