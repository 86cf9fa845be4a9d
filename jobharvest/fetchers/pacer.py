"""
Process-wide request pacing.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable


class Pacer:
    """
    Global minimum-interval gate shared by every outbound request.

    Unlike a per-domain throttle, there is a single slot: callers are
    released one at a time, each at least ``min_interval_s`` after the
    previous release, whichever worker they come from.
    """

    def __init__(
        self,
        min_interval_s: float = 1.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval_s = max(0.0, min_interval_s)
        self._clock = clock
        self._sleep = sleep
        self._last_release: float = float("-inf")
        self._lock = asyncio.Lock()

    async def wait(self) -> float:
        """Block until the interval has elapsed; return the release time."""
        # Lock is held across the sleep so releases are strictly serialized
        async with self._lock:
            # Timers may fire a tick early; re-check until the interval really elapsed
            elapsed = self._clock() - self._last_release
            while elapsed < self.min_interval_s:
                await self._sleep(self.min_interval_s - elapsed)
                elapsed = self._clock() - self._last_release
            self._last_release = self._clock()
            return self._last_release
