"""Rate limiting with optional Redis backend.

Two layers:
1. Global middleware: token bucket per client IP, applied to every request
   (DoS protection). Redis-backed when configured, in-memory otherwise.
2. slowapi limiter on the claim endpoint, keyed by the authenticated caller so
   one user cannot churn through claim attempts from many addresses.
"""

import asyncio
import time
from collections import defaultdict

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from src.allocator.core.config import get_settings
from src.allocator.core.logging import get_logger
from src.allocator.core.redis import get_redis

logger = get_logger(__name__)

_EXEMPT_PATHS = frozenset({"/health", "/metrics", "/docs", "/openapi.json", "/redoc"})

# In-memory fallback storage for global rate limiting
_rate_limit_buckets: dict[str, dict[str, float]] = defaultdict(dict)
_rate_limit_lock = asyncio.Lock()

# Token bucket, evaluated atomically on the Redis server
_REDIS_TOKEN_BUCKET_SCRIPT = """
local key = KEYS[1]
local rate = tonumber(ARGV[1])
local burst = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local ttl = tonumber(ARGV[4])

local bucket = redis.call('HMGET', key, 'tokens', 'last_update')
local tokens = tonumber(bucket[1]) or burst
local last_update = tonumber(bucket[2]) or now

tokens = math.min(burst, tokens + (now - last_update) * rate)

local allowed = 0
if tokens >= 1 then
    tokens = tokens - 1
    allowed = 1
end
redis.call('HMSET', key, 'tokens', tokens, 'last_update', now)
redis.call('EXPIRE', key, ttl)
return allowed
"""

_script_sha: str | None = None


def get_rate_limit_key(request: Request) -> str:
    """Client IP for the global bucket. Never derived from request headers."""
    return get_remote_address(request) or "unknown"


def get_claim_rate_limit_key(request: Request) -> str:
    """Authenticated caller for claim limits, falling back to client IP.

    The principal is stored on request.state by the auth dependency, which runs
    before slowapi evaluates the limit.
    """
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        return f"user:{principal.user_id}"
    return get_rate_limit_key(request)


def create_limiter() -> Limiter:
    """Create the slowapi limiter; disabled in the testing environment."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    # slowapi talks to Redis synchronously, so the plain redis:// URL is used
    if settings.redis_url:
        logger.info("Rate limiter using Redis backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.redis_url)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


limiter = create_limiter()


async def _check_in_memory_rate_limit(client_ip: str) -> bool:
    """Per-process token bucket. Returns True if the request may proceed."""
    settings = get_settings()
    rate = settings.global_rate_limit_per_second
    burst = settings.global_rate_limit_burst
    now = time.time()

    async with _rate_limit_lock:
        bucket = _rate_limit_buckets.get(client_ip)
        if not bucket:
            bucket = {"tokens": float(burst), "last_update": now}
            _rate_limit_buckets[client_ip] = bucket

        elapsed = now - bucket["last_update"]
        bucket["tokens"] = min(burst, bucket["tokens"] + elapsed * rate)
        bucket["last_update"] = now

        if bucket["tokens"] >= 1:
            bucket["tokens"] -= 1
            return True
        return False


async def _check_redis_rate_limit(redis: object, client_ip: str) -> bool:
    """Distributed token bucket via EVALSHA. Returns True if the request may proceed."""
    global _script_sha
    settings = get_settings()
    rate = settings.global_rate_limit_per_second
    burst = settings.global_rate_limit_burst
    ttl = int(burst / rate) + 60

    if _script_sha is None:
        _script_sha = await redis.script_load(_REDIS_TOKEN_BUCKET_SCRIPT)  # type: ignore[attr-defined]

    result = await redis.evalsha(  # type: ignore[attr-defined]
        _script_sha,
        1,
        f"global_ratelimit:{client_ip}",
        str(rate),
        str(burst),
        str(time.time()),
        str(ttl),
    )
    return bool(result == 1)


async def _check_global_rate_limit(client_ip: str) -> bool:
    """Check the global bucket, preferring Redis and degrading to in-memory."""
    global _script_sha
    settings = get_settings()
    if settings.app_env == "testing":
        return True

    redis = await get_redis()
    if redis is None:
        return await _check_in_memory_rate_limit(client_ip)

    try:
        return await _check_redis_rate_limit(redis, client_ip)
    except Exception as e:
        logger.warning(
            "Redis rate limit check failed, falling back to in-memory",
            error=str(e),
            client_ip=client_ip,
        )
        # Script cache is lost if Redis restarted
        _script_sha = None
        return await _check_in_memory_rate_limit(client_ip)


async def global_rate_limit_middleware(
    request: Request,
    call_next: object,  # type: ignore[type-arg]
) -> JSONResponse:
    """Reject requests over the per-IP budget with 429 and Retry-After."""
    if request.url.path in _EXEMPT_PATHS:
        return await call_next(request)  # type: ignore[misc, operator, no-any-return]

    client_ip = get_rate_limit_key(request)
    if not await _check_global_rate_limit(client_ip):
        logger.warning("Global rate limit exceeded", client_ip=client_ip, path=request.url.path)
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please slow down.", "retry_after": 1},
            headers={"Retry-After": "1"},
        )

    return await call_next(request)  # type: ignore[misc, operator, no-any-return]
