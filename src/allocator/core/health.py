"""/health readiness check and /metrics exposition.

The database is the only hard dependency: without it no claim can be decided.
Redis only backs rate limiting, so losing it degrades the service instead of
failing it. Results are cached briefly so load balancer probes do not open a
database session each time.
"""

import secrets
import time
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.allocator.core.config import get_settings
from src.allocator.core.db import get_session
from src.allocator.core.redis import get_redis
from src.allocator.core.shutdown import request_tracker

HEALTH_CACHE_TTL = 10  # seconds


@dataclass
class _CachedHealth:
    body: dict[str, Any]
    checked_at: float


_cache: _CachedHealth | None = None


def reset_health_cache() -> None:
    """Forget the cached result (for testing)."""
    global _cache
    _cache = None


async def _check_database() -> str:
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        return f"unhealthy: {e!s}"
    return "healthy"


async def _check_redis() -> str:
    redis = await get_redis()
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()  # type: ignore[misc]
    except Exception as e:
        return f"unhealthy: {e!s}"
    return "healthy"


def _health_response(body: dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=body, status_code=200 if body["status"] == "healthy" else 503)


def setup_health_endpoint(app: FastAPI) -> None:
    """Register GET /health."""

    @app.get("/health")
    async def health() -> JSONResponse:
        global _cache
        now = time.time()

        if request_tracker.is_shutting_down:
            return JSONResponse(
                content={
                    "status": "draining",
                    "in_flight_requests": request_tracker.in_flight_count,
                    "message": "Server is shutting down",
                },
                status_code=503,
            )

        if _cache is not None and now - _cache.checked_at < HEALTH_CACHE_TTL:
            return _health_response(
                {
                    **_cache.body,
                    "cached": True,
                    "cache_age_seconds": round(now - _cache.checked_at, 1),
                }
            )

        database = await _check_database()
        redis = await _check_redis()
        if database != "healthy":
            overall = "unhealthy"
        elif redis.startswith("unhealthy"):
            overall = "degraded"
        else:
            overall = "healthy"

        body: dict[str, Any] = {
            "status": overall,
            "database": database,
            "redis": redis,
            "cached": False,
            "timestamp": now,
        }
        _cache = _CachedHealth(body=body, checked_at=now)
        return _health_response(body)


def setup_metrics(app: FastAPI) -> None:
    """Expose Prometheus metrics, behind X-Metrics-Key when one is configured."""
    settings = get_settings()
    instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app)

    if not settings.metrics_api_key:
        instrumentator.expose(app, endpoint="/metrics")
        return

    api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

    async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
        expected = settings.metrics_api_key
        if api_key is None or expected is None or not secrets.compare_digest(api_key, expected):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing metrics API key",
            )

    instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
