"""Async engine for the allocation store."""

import ssl
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.allocator.core.config import get_settings

_engine: AsyncEngine | None = None


def _ssl_context(mode: str) -> ssl.SSLContext | None:
    """Translate a libpq-style sslmode into an SSLContext for asyncpg."""
    if mode == "disable":
        return None
    context = ssl.create_default_context()
    if mode in ("prefer", "require"):
        # Encrypted, but the server certificate is not checked
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    else:
        context.check_hostname = mode == "verify-full"
        context.verify_mode = ssl.CERT_REQUIRED
    return context


def _get_connect_args() -> dict[str, Any]:
    settings = get_settings()
    connect_args: dict[str, Any] = {
        "statement_cache_size": settings.database_statement_cache_size,
    }
    context = _ssl_context(settings.database_ssl_mode)
    if context is not None:
        connect_args["ssl"] = context
    return connect_args


def get_engine() -> AsyncEngine:
    """Get or create the engine singleton.

    pool_pre_ping turns a connection dropped while idle into a reconnect
    instead of a failed claim.
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            connect_args=_get_connect_args(),
        )
    return _engine


async def dispose_engine() -> None:
    """Dispose the engine. Called during shutdown, after requests drain."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
