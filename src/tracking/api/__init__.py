"""Tracking domain API package."""

from tracking.api.routes import order_router, tracking_router

__all__ = ["order_router", "tracking_router"]
