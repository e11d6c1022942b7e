"""Optional Redis client shared by rate limiting and health checks.

Nothing in the allocation path depends on Redis: folder state lives in
PostgreSQL only. When REDIS_URL is unset or the server is down, callers get
None and fall back to per-process behaviour.
"""

from redis.asyncio import ConnectionPool, Redis

from src.allocator.core.config import get_settings
from src.allocator.core.logging import get_logger

logger = get_logger(__name__)

_pool: ConnectionPool | None = None
_redis: Redis | None = None
_connection_attempted: bool = False


async def get_redis() -> Redis | None:
    """Return the shared client, connecting lazily on first use.

    A failed connection is not retried until close_redis() resets the state.
    """
    global _pool, _redis, _connection_attempted

    if _redis is not None:
        return _redis
    if _connection_attempted:
        return None

    _connection_attempted = True
    settings = get_settings()
    if not settings.redis_url:
        logger.info("Redis not configured (REDIS_URL not set)")
        return None

    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_size,
        decode_responses=True,
    )
    client = Redis(connection_pool=pool)
    try:
        await client.ping()  # type: ignore[misc]
    except Exception as e:
        logger.warning("Redis connection failed, continuing without it", error=str(e))
        await client.aclose()
        await pool.disconnect()
        return None

    _pool, _redis = pool, client
    logger.info("Redis connected")
    return _redis


async def close_redis() -> None:
    """Close the connection pool. Called from the application lifespan."""
    global _pool, _redis, _connection_attempted

    if _redis:
        await _redis.aclose()
        logger.info("Redis connection closed")
    if _pool:
        await _pool.disconnect()
    reset_redis_state()


def reset_redis_state() -> None:
    """Forget the client without closing it (tests swap event loops)."""
    global _pool, _redis, _connection_attempted
    _redis = None
    _pool = None
    _connection_attempted = False
