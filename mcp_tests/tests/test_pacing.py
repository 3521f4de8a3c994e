import pytest

import core.pacing as pacing_mod
from core.pacing import Pacer


@pytest.fixture
def sleeps(monkeypatch):
    calls = []

    async def fake_sleep(seconds: float):
        calls.append(seconds)

    monkeypatch.setattr(pacing_mod.asyncio, "sleep", fake_sleep)
    return calls


@pytest.mark.asyncio
async def test_pacer_disabled_no_sleep(sleeps):
    p = Pacer(rate_per_sec=0)
    await p.wait()
    await p.wait()

    assert p.rate == 0.0
    assert sleeps == []


@pytest.mark.asyncio
async def test_pacer_refills_between_requests(monkeypatch, sleeps):
    times_iter = iter([0.0, 0.1])
    monkeypatch.setattr(pacing_mod.time, "monotonic", lambda: next(times_iter, 0.1))

    p = Pacer(rate_per_sec=2.0)  # one token per 0.5 sec

    await p.wait()  # bucket full, no wait
    await p.wait()  # 0.1 sec refilled 0.2 tokens -> waits 0.4

    assert sleeps == [pytest.approx(0.4)]


@pytest.mark.asyncio
async def test_pacer_reserves_consecutive_slots(monkeypatch, sleeps):
    monkeypatch.setattr(pacing_mod.time, "monotonic", lambda: 10.0)

    p = Pacer(rate_per_sec=4.0)  # 0.25 sec
    for _ in range(3):
        await p.wait()

    assert sleeps == [pytest.approx(0.25), pytest.approx(0.5)]


@pytest.mark.asyncio
async def test_pacer_burst_goes_out_immediately(monkeypatch, sleeps):
    monkeypatch.setattr(pacing_mod.time, "monotonic", lambda: 10.0)

    p = Pacer(rate_per_sec=4.0, burst=3)
    for _ in range(4):
        await p.wait()

    assert p.burst == 3
    assert sleeps == [pytest.approx(0.25)]


@pytest.mark.asyncio
async def test_pacer_idle_time_never_exceeds_burst(monkeypatch, sleeps):
    times_iter = iter([0.0, 100.0, 100.0, 100.0])
    monkeypatch.setattr(pacing_mod.time, "monotonic", lambda: next(times_iter, 100.0))

    p = Pacer(rate_per_sec=1.0, burst=2)
    for _ in range(4):
        await p.wait()

    # after a long idle the bucket holds 2 tokens, not 100
    assert sleeps == [pytest.approx(1.0)]
