"""Graceful shutdown: drain in-flight requests before closing the engine.

A claim that is cut off mid-transaction rolls back, but one that already
committed must still get its response out, so shutdown waits for requests to
finish before disposing connections.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from src.allocator.core.logging import get_logger

logger = get_logger(__name__)


class RequestTracker:
    """Counts in-flight requests and signals when they reach zero during shutdown."""

    def __init__(self) -> None:
        self._in_flight = 0
        self._shutting_down = False
        self._lock = asyncio.Lock()
        self._drained = asyncio.Event()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def track_request(self) -> AsyncGenerator[None]:
        async with self._lock:
            self._in_flight += 1
        try:
            yield
        finally:
            async with self._lock:
                self._in_flight -= 1
                if self._in_flight == 0 and self._shutting_down:
                    self._drained.set()

    async def start_shutdown(self) -> None:
        """Enter shutdown mode; sets the drain event at once if nothing is in flight."""
        self._shutting_down = True
        async with self._lock:
            logger.info("Request tracker entering shutdown mode", in_flight=self._in_flight)
            if self._in_flight == 0:
                self._drained.set()

    async def wait_for_drain(self, timeout: float) -> bool:
        """Wait up to `timeout` seconds for in-flight requests. Returns True if drained."""
        try:
            await asyncio.wait_for(self._drained.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                "Shutdown drain timed out",
                timeout_seconds=timeout,
                in_flight=self._in_flight,
            )
            return False
        logger.info("All requests drained")
        return True

    def reset(self) -> None:
        """Reset tracker state. For testing only."""
        self._in_flight = 0
        self._shutting_down = False
        self._drained = asyncio.Event()


request_tracker = RequestTracker()
