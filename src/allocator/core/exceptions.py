"""Exception handlers. Every error body carries the request_id for support."""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.allocator.core.errors import AllocatorError, StoreUnavailableError
from src.allocator.core.logging import get_logger

logger = get_logger(__name__)


def _error_response(
    status_code: int, detail: object, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "request_id": correlation_id.get()},
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Map HTTP and allocation errors to JSON bodies with request_id."""

    # fastapi.HTTPException subclasses Starlette's, so one handler covers both
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, exc.detail, getattr(exc, "headers", None))

    @app.exception_handler(AllocatorError)
    async def allocator_exception_handler(request: Request, exc: AllocatorError) -> JSONResponse:
        headers = None
        if isinstance(exc, StoreUnavailableError):
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        return _error_response(exc.status_code, exc.detail, headers)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=correlation_id.get(),
            path=request.url.path,
        )
        return _error_response(500, "Internal server error")
