"""Tracking FastAPI application.

Serves the admin/intake API (``/orders``) and the customer-facing tracking
API (``/tracking``). Commands are processed synchronously per request inside
the tracking domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Logging and domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the domain.toml overlay:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
from tracking.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging()

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from protean.integrations.fastapi import register_exception_handlers  # noqa: E402
from tracking.domain import tracking  # noqa: E402
from tracking.utils.db import apply_persistence_timeouts  # noqa: E402

apply_persistence_timeouts(tracking)
tracking.init()

_DOMAIN_PREFIXES = ("/orders", "/tracking")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Order Tracking API",
    description="Order status lifecycle, timelines and delivery tracking",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the tracking domain context for API requests."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        return await call_next(request)

    bind_request_context(path=request.url.path, method=request.method)
    try:
        with tracking.domain_context():
            return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from tracking.api import order_router, tracking_router  # noqa: E402
from tracking.api.errors import register_tracking_exception_handlers  # noqa: E402

app.include_router(order_router)
app.include_router(tracking_router)

register_exception_handlers(app)
register_tracking_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": tracking.name})
