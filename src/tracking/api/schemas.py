"""Pydantic API schemas for the Tracking domain.

These are the external API contracts — separate from domain commands and
service views. Response schemas validate straight from the service's view
dataclasses.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class CustomerRequest(BaseModel):
    name: str
    email: str
    phone: str | None = None
    street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderItemRequest(BaseModel):
    product_id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    image: str | None = None


class PlaceOrderRequest(BaseModel):
    customer: CustomerRequest
    items: list[OrderItemRequest]
    estimated_delivery: datetime | None = None
    is_urgent: bool = False
    shipping_cost: float = Field(default=0.0, ge=0)
    currency: str = "USD"
    delivery_instructions: str | None = None
    shipping_provider: str | None = None
    notifications_enabled: bool = True


class UpdateStatusRequest(BaseModel):
    status: str
    note: str | None = None
    location: str | None = None
    actor: str | None = None
    override: bool = False
    notify: bool = True
    carrier_tracking_number: str | None = None
    expected_revision: int | None = None


class AddNoteRequest(BaseModel):
    note: str
    added_by: str
    is_private: bool = True


class CancelOrderRequest(BaseModel):
    email: str
    reason: str | None = Field(default=None, max_length=150)


class SearchRequest(BaseModel):
    email: str
    order_number: str | None = None
    page: int = 1
    per_page: int | None = None


class CarrierWebhookRequest(BaseModel):
    tracking_code: str
    status: str
    location: str | None = None
    description: str | None = None
    carrier_tracking_number: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class _FromView(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class OrderCreatedResponse(BaseModel):
    order_number: str
    tracking_code: str


class NoteIdResponse(BaseModel):
    note_id: str


class StatusResponse(BaseModel):
    status: str


class DeliveryResponse(_FromView):
    state: str
    message: str
    on_time: bool | None = None
    days_late: int | None = None
    days_remaining: int | None = None


class TimelineEntryResponse(_FromView):
    event_id: str
    status: str
    label: str
    occurred_at: datetime
    note: str | None = None
    location: str | None = None
    actor: str | None = None
    is_correction: bool = False


class TimelineStepResponse(_FromView):
    status: str
    label: str
    state: str
    color: str
    icon: str
    progress: int
    timestamp: datetime | None = None
    note: str | None = None
    location: str | None = None
    is_correction: bool = False


class ItemResponse(_FromView):
    product_id: str
    name: str
    price: float
    quantity: int
    image: str | None = None


class OrderViewResponse(_FromView):
    order_number: str
    tracking_code: str
    status: str
    status_label: str
    progress_percentage: int
    is_urgent: bool
    customer_name: str
    customer_city: str | None = None
    total_amount: float
    total_items: int
    currency: str
    shipping_provider: str | None = None
    carrier_tracking_number: str | None = None
    delivery_instructions: str | None = None
    revision: int
    created_at: datetime | None = None
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    delivery: DeliveryResponse
    items: list[ItemResponse]
    timeline: list[TimelineEntryResponse]
    steps: list[TimelineStepResponse]


class OrderSummaryResponse(_FromView):
    order_number: str
    tracking_code: str
    status: str
    status_label: str
    progress_percentage: int
    is_urgent: bool
    total_amount: float
    total_items: int
    currency: str
    created_at: datetime | None = None
    estimated_delivery: datetime | None = None
    delivery: DeliveryResponse


class SearchResponse(_FromView):
    orders: list[OrderSummaryResponse]
    total: int
    page: int
    per_page: int
    has_next: bool


class CustomerStatsResponse(_FromView):
    customer_email: str
    total_orders: int
    active_orders: int
    delivered_count: int
    cancelled_count: int
    on_time_percentage: int
    total_spent: float
    status_breakdown: dict[str, int]


class InternalNoteResponse(_FromView):
    note_id: str
    note: str
    added_by: str
    is_private: bool
    added_at: datetime


class AdminTimelineResponse(BaseModel):
    order_number: str
    steps: list[TimelineStepResponse]
    history: list[TimelineEntryResponse]
    internal_notes: list[InternalNoteResponse]
