"""Fixed-window rate limiting for generation calls."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from .logging_config import create_execution_logger

ONE_SECOND = 1.0


class FixedWindowRateLimiter:
    """Allow at most ``max_calls`` calls per fixed one-second window.

    The window restarts when a call arrives at least one second after the
    current window began. A caller that finds the window full sleeps until
    the boundary and then opens a new window counting itself. Bursts of up
    to twice the limit across a boundary are possible.
    """

    def __init__(
        self,
        max_calls: int = 5,
        window: float = ONE_SECOND,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        execution_id: str | None = None,
    ):
        self.max_calls = max_calls
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self.count = 0
        self.window_start = clock()
        self.logger = create_execution_logger("rate_limiter", execution_id)

    async def acquire(self) -> None:
        """Wait, if needed, until a call may proceed."""
        while True:
            now = self._clock()

            if now - self.window_start >= self.window:
                self.count = 0
                self.window_start = now

            if self.count < self.max_calls:
                self.count += 1
                return

            # Re-checked after waking: other waiters may have taken the new window
            wait = self.window - (now - self.window_start)
            self.logger.info(
                f"Rate limit hit. Waiting {int(wait * 1000)}ms...",
                wait_ms=int(wait * 1000),
            )
            await self._sleep(wait)

    async def run(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Acquire a slot, then await ``func(*args, **kwargs)``."""
        await self.acquire()
        return await func(*args, **kwargs)
