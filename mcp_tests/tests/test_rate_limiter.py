import pytest
import httpx

import core.rate_limiter as rl_mod
from core.rate_limiter import RateLimiter


def _resp(status: int, headers: dict[str, str]):
    req = httpx.Request("GET", "https://api.github.test/repos/o/r/contents/proto")
    return httpx.Response(status, headers=headers, request=req)


@pytest.fixture
def sleeps(monkeypatch):
    calls = []

    async def fake_sleep(seconds: float):
        calls.append(seconds)

    monkeypatch.setattr(rl_mod.asyncio, "sleep", fake_sleep)
    return calls


@pytest.mark.asyncio
async def test_rate_limiter_429_honors_retry_after(sleeps):
    rl = RateLimiter(max_sleep_seconds=60)
    assert await rl.maybe_sleep_and_retry(_resp(429, {"Retry-After": "10"})) is True
    assert sleeps == [10]


@pytest.mark.asyncio
async def test_rate_limiter_429_missing_retry_after_no_retry(sleeps):
    rl = RateLimiter(max_sleep_seconds=60)
    assert await rl.maybe_sleep_and_retry(_resp(429, {})) is False
    assert sleeps == []


@pytest.mark.asyncio
async def test_rate_limiter_bounded_sleep(sleeps):
    rl = RateLimiter(max_sleep_seconds=5)
    assert await rl.maybe_sleep_and_retry(_resp(429, {"Retry-After": "10"})) is True
    assert sleeps == [5]


@pytest.mark.asyncio
async def test_rate_limiter_403_primary_limit_waits_for_reset(sleeps, monkeypatch):
    monkeypatch.setattr(rl_mod.time, "time", lambda: 100)

    rl = RateLimiter(max_sleep_seconds=60)
    r = _resp(403, {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "120"})

    assert await rl.maybe_sleep_and_retry(r) is True
    assert sleeps == [21]


@pytest.mark.asyncio
async def test_rate_limiter_403_secondary_limit_retry_after(sleeps):
    rl = RateLimiter(max_sleep_seconds=60)
    assert await rl.maybe_sleep_and_retry(_resp(403, {"Retry-After": "7"})) is True
    assert sleeps == [7]


@pytest.mark.asyncio
async def test_rate_limiter_plain_403_is_not_retried(sleeps):
    # e.g. a token without access to a private repository
    rl = RateLimiter(max_sleep_seconds=60)
    assert await rl.maybe_sleep_and_retry(_resp(403, {"X-RateLimit-Remaining": "4999"})) is False
    assert sleeps == []


def test_retry_delay_ignores_success_and_bad_headers():
    rl = RateLimiter()
    assert rl.retry_delay(_resp(200, {"Retry-After": "5"})) is None
    assert rl.retry_delay(_resp(429, {"Retry-After": "soon"})) is None
