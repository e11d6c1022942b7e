"""Request context middleware.

Initializes the request-scoped context that log lines and folder audit entries
read from: the correlation id and the client address. The authenticated actor
is added later by the auth dependency.
"""

from asgi_correlation_id import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.allocator.core.audit_context import clear_audit_context, set_audit_context
from src.allocator.core.config import get_settings
from src.allocator.core.logging import bind_request_context, clear_request_context


def get_client_ip(forwarded_for: str | None, client_host: str | None) -> str | None:
    """Extract client IP from X-Forwarded-For header or client host.

    Args:
        forwarded_for: Value of X-Forwarded-For header (may contain multiple IPs)
        client_host: Direct client host from the connection

    Returns:
        The client IP address (first IP from X-Forwarded-For, or client host)
    """
    if forwarded_for:
        # First entry is the original client
        return forwarded_for.split(",")[0].strip()
    return client_host


def _client_ip(request: Request) -> str | None:
    """Client address, honoring X-Forwarded-For only from trusted proxies."""
    client_host = request.client.host if request.client else None
    forwarded_for = None
    if client_host and client_host in get_settings().trusted_proxy_ips:
        forwarded_for = request.headers.get("x-forwarded-for")
    return get_client_ip(forwarded_for, client_host)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request_id and client IP to structlog and the audit context.

    Context is cleared before and after the request so nothing leaks between
    requests served by the same worker.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        clear_request_context()
        clear_audit_context()

        request_id = correlation_id.get()
        try:
            bind_request_context(request_id, _client_ip(request))
            set_audit_context(request_id=request_id)
            return await call_next(request)
        finally:
            clear_request_context()
            clear_audit_context()
