from __future__ import annotations

import asyncio

import pytest

from fleetmotion.scheduler import LoopTickScheduler


@pytest.mark.asyncio
async def test_ticks_until_cancelled() -> None:
    scheduler = LoopTickScheduler()
    calls: list[int] = []

    handle = scheduler.start(0.005, lambda: calls.append(1))
    for _ in range(100):
        if len(calls) >= 3:
            break
        await asyncio.sleep(0.005)
    handle.cancel()
    count = len(calls)
    await asyncio.sleep(0.03)

    assert count >= 3
    assert len(calls) == count


@pytest.mark.asyncio
async def test_failing_callback_stops_ticks() -> None:
    scheduler = LoopTickScheduler()
    calls: list[int] = []

    def _boom() -> None:
        calls.append(1)
        raise RuntimeError("tick failed")

    handle = scheduler.start(0.005, _boom)
    await asyncio.sleep(0.05)

    assert calls == [1]
    assert handle.cancelled


@pytest.mark.asyncio
async def test_cancel_all() -> None:
    scheduler = LoopTickScheduler()
    first = scheduler.start(0.01, lambda: None)
    second = scheduler.start(0.01, lambda: None)

    scheduler.cancel_all()

    assert first.cancelled and second.cancelled


def test_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        LoopTickScheduler().start(0.0, lambda: None)
