from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.allocator.api.middlewares import setup_middlewares
from src.allocator.api.v1.router import api_router
from src.allocator.core.config import get_settings
from src.allocator.core.db import dispose_engine
from src.allocator.core.exceptions import setup_exception_handlers
from src.allocator.core.health import setup_health_endpoint, setup_metrics
from src.allocator.core.logging import get_logger, setup_logging
from src.allocator.core.rate_limit import limiter
from src.allocator.core.redis import close_redis
from src.allocator.core.shutdown import request_tracker

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting application", app_name=settings.app_name, env=settings.app_env)

    yield

    # Claims that already committed must still get their response out
    logger.info("Shutdown initiated", in_flight=request_tracker.in_flight_count)
    await request_tracker.start_shutdown()
    drained = await request_tracker.wait_for_drain(timeout=settings.shutdown_grace_period)
    if not drained:
        logger.warning(
            "Requests still in flight at shutdown",
            in_flight=request_tracker.in_flight_count,
        )

    await close_redis()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "projects", "description": "Provisioning, folder claims and assignments"},
    {"name": "folders", "description": "Operator folder release"},
    {"name": "audit", "description": "Claim and release history for reconciliation"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Concurrency-safe allocation of pre-provisioned workspace folders",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
