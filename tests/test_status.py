"""
Tests for staking status and countdowns.
"""
import asyncio

import pytest
from hypothesis import given, strategies as st

from tokenstake_sdk.status import (
    EXPIRED, ENDS_IN_TITLE, STARTS_IN_TITLE, CountdownTick, CountdownTimer, StakingStatus,
    breakdown, countdown, countdown_plan, derive_status
)

timestamps = st.integers(min_value=0, max_value=4_000_000_000)


class FakeClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.now += seconds
        await asyncio.sleep(0)


def test_derive_status_cases():
    assert derive_status(50, False, 100, 200) == StakingStatus.LOCKED
    assert derive_status(150, False, 100, 200) == StakingStatus.ACTIVE
    assert derive_status(100, False, 100, 200) == StakingStatus.ACTIVE
    assert derive_status(200, False, 100, 200) == StakingStatus.ACTIVE
    assert derive_status(201, False, 100, 200) == StakingStatus.ENDED
    assert derive_status(150, True, 100, 200) == StakingStatus.PAUSED


@given(now=timestamps, start=timestamps, end=timestamps)
def test_paused_always_wins(now, start, end):
    assert derive_status(now, True, start, end) == StakingStatus.PAUSED


@given(now=timestamps, start=timestamps, end=timestamps, paused=st.booleans())
def test_exactly_one_status(now, start, end, paused):
    status = derive_status(now, paused, start, end)
    assert status in set(StakingStatus)
    if not paused:
        assert (status == StakingStatus.LOCKED) == (now < start)


def test_countdown_plan_before_start_targets_end_date():
    plan = countdown_plan(now=100, start_time=500, end_time=900)
    assert plan.title == STARTS_IN_TITLE
    assert plan.target == 900


def test_countdown_plan_while_active():
    plan = countdown_plan(now=600, start_time=500, end_time=900)
    assert plan.title == ENDS_IN_TITLE
    assert plan.target == 900


def test_countdown_plan_after_end():
    assert countdown_plan(now=901, start_time=500, end_time=900) is None


def test_breakdown():
    tick = breakdown(2 * 86400 + 3 * 3600 + 4 * 60 + 5.9)
    assert tick == CountdownTick(days=2, hours=3, minutes=4, seconds=5)
    assert str(tick) == "2d 3h 4m 5s"


@pytest.mark.asyncio
async def test_countdown_ticks_then_expires():
    clock = FakeClock(1000.0)

    items = [item async for item in countdown(1002.5, clock, clock.sleep)]

    assert items == [
        CountdownTick(0, 0, 0, 1),
        CountdownTick(0, 0, 0, 0),
        EXPIRED,
    ]
    assert str(items[-1]) == "Refresh Page"
    assert clock.now == 1003.0


@pytest.mark.asyncio
async def test_countdown_is_restartable():
    clock = FakeClock(0.0)
    first = [item async for item in countdown(1.5, clock, clock.sleep)]
    clock.now = 0.0
    second = [item async for item in countdown(1.5, clock, clock.sleep)]
    assert first == second


@pytest.mark.asyncio
async def test_timer_cancels_previous_countdown():
    clock = FakeClock(0.0)
    timer = CountdownTimer(clock=clock, sleep=clock.sleep)
    first_ticks, second_ticks = [], []

    first = timer.start(100.0, first_ticks.append)
    second = timer.start(2.5, second_ticks.append)
    await second

    assert first.cancelled()
    assert first_ticks == []
    assert second_ticks[-1] is EXPIRED
    assert len(second_ticks) == 3
    assert timer.running is False


@pytest.mark.asyncio
async def test_timer_cancel():
    timer = CountdownTimer()
    task = timer.start(10 ** 10, lambda item: None)
    assert timer.running
    timer.cancel()
    await asyncio.sleep(0)
    assert task.cancelled()
    assert not timer.running
