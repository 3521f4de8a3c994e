"""Interpret GitHub throttling signals and sleep before a retry.

Handled signals:
- 429 with Retry-After.
- 403 with Retry-After (secondary rate limit).
- 403 with X-RateLimit-Remaining == 0, delayed until X-RateLimit-Reset.
Every sleep is bounded by max_sleep_seconds so a cancelled or
deadline-bound run is never parked for an hour-long reset window.
"""

from __future__ import annotations

import asyncio
import time
from typing import Mapping, Optional

import httpx

from core.logging import get_logger

logger = get_logger("rate_limiter")


class RateLimiter:
    def __init__(self, *, max_sleep_seconds: int = 60) -> None:
        self._max_sleep_seconds = max(0, int(max_sleep_seconds))

    def retry_delay(self, response: httpx.Response) -> Optional[int]:
        """Seconds to wait before retrying, or None when the response is not throttled."""
        if response.status_code not in (403, 429):
            return None

        retry_after = _parse_int_header(response.headers, "Retry-After")
        if retry_after is not None:
            return retry_after

        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            reset = _parse_int_header(response.headers, "X-RateLimit-Reset")
            if reset is not None:
                return max(0, reset - int(time.time())) + 1

        return None

    async def maybe_sleep_and_retry(self, response: httpx.Response) -> bool:
        # True means the caller should repeat the request
        delay = self.retry_delay(response)
        if delay is None:
            return False

        bounded = min(delay, self._max_sleep_seconds)
        logger.warning("GitHub throttled the request (HTTP %s); retrying in %ss", response.status_code, bounded)
        await asyncio.sleep(bounded)
        return True


def _parse_int_header(headers: Mapping[str, str], name: str) -> Optional[int]:
    value = (headers.get(name) or "").strip()
    if not value.isdigit():
        return None
    return int(value)
