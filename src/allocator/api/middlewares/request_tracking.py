"""Request tracking middleware for graceful shutdown."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint

from src.allocator.core.shutdown import request_tracker

_UNTRACKED_PATHS = frozenset({"/health", "/metrics"})


async def request_tracking_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Count in-flight requests; turn away new ones once draining has started."""
    if request.url.path in _UNTRACKED_PATHS:
        return await call_next(request)

    if request_tracker.is_shutting_down:
        return JSONResponse(
            status_code=503,
            content={"detail": "Server is shutting down"},
            headers={"Retry-After": "1", "Connection": "close"},
        )

    async with request_tracker.track_request():
        return await call_next(request)
