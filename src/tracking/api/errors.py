"""HTTP mapping for tracking errors Protean's handlers don't cover."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tracking.errors import ConcurrentModification, PersistenceUnavailable


def register_tracking_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ConcurrentModification)
    async def concurrent_modification_handler(request: Request, exc: ConcurrentModification):
        return JSONResponse(status_code=409, content={"error": str(exc), "retryable": exc.retryable})

    @app.exception_handler(PersistenceUnavailable)
    async def persistence_unavailable_handler(request: Request, exc: PersistenceUnavailable):
        return JSONResponse(
            status_code=503,
            content={"error": str(exc), "retryable": exc.retryable},
            headers={"Retry-After": "1"},
        )
