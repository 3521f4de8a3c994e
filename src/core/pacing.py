"""
Pacing utilities.

Client-side smoothing for the GitHub Contents API. A recursive directory
walk issues one request per listing plus one per proto file, and several
sources walk at once, so requests draw from a token bucket shared by every
concurrent fetch: up to `burst` requests go out immediately, after that
they are spaced at `rate_per_sec`.
Not a replacement for server-side rate limits (see core.rate_limiter).
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from core.logging import get_logger

logger = get_logger("pacing")


class Pacer:
    def __init__(self, *, rate_per_sec: float, burst: int = 1) -> None:
        self._rate = max(0.0, float(rate_per_sec))
        self._burst = float(max(1, int(burst)))
        self._tokens = self._burst
        self._updated: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def burst(self) -> int:
        return int(self._burst)

    async def wait(self) -> None:
        if self._rate <= 0:
            return

        async with self._lock:
            now = time.monotonic()
            if self._updated is not None:
                self._tokens = min(self._burst, self._tokens + (now - self._updated) * self._rate)
            self._updated = now
            # A negative balance is a reservation; later callers queue behind it
            self._tokens -= 1.0
            delay = -self._tokens / self._rate if self._tokens < 0 else 0.0

        if delay > 0:
            logger.debug("pacing GitHub request by %.3fs", delay)
            await asyncio.sleep(delay)
