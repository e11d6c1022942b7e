"""Structured logging with structlog.

Request id and caller are bound through contextvars, so every line logged while
handling a claim carries them without being passed around.
"""

import logging
import sys
from uuid import UUID

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def setup_logging(debug: bool = False) -> None:
    """Configure structlog for structured logging.

    Args:
        debug: If True, use colored console output. If False, use JSON for production.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    shared_processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for noisy in ("sqlalchemy.engine", "asyncpg", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)


def bind_request_context(request_id: str | None, client_ip: str | None = None) -> None:
    """Bind request-level context to all subsequent log calls.

    Args:
        request_id: The correlation ID for the current request.
        client_ip: Caller address, after trusted-proxy resolution.
    """
    if request_id:
        bind_contextvars(request_id=request_id)
    if client_ip:
        bind_contextvars(client_ip=client_ip)


def bind_user_context(user_id: UUID, roles: frozenset[str] | None = None) -> None:
    """Bind the authenticated caller to all subsequent log calls.

    Args:
        user_id: The user ID from the identity provider token.
        roles: Roles granted by the token, logged only when non-empty.
    """
    bind_contextvars(user_id=str(user_id))
    if roles:
        bind_contextvars(roles=sorted(roles))


def clear_request_context() -> None:
    """Clear all request-scoped context."""
    clear_contextvars()
