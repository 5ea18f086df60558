"""
Staking status and countdown derivation.

All timestamps are epoch seconds.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

EXPIRED_TEXT = "Refresh Page"
STARTS_IN_TITLE = "Staking Starts In"
ENDS_IN_TITLE = "Staking Ends In"


class StakingStatus(str, Enum):
    PAUSED = "Paused"
    LOCKED = "Locked"
    ACTIVE = "Active"
    ENDED = "Ended"


def derive_status(now: float, paused: bool, start_time: float, end_time: float) -> StakingStatus:
    """Paused wins over any time-based status"""
    if paused:
        return StakingStatus.PAUSED
    if now < start_time:
        return StakingStatus.LOCKED
    if now > end_time:
        return StakingStatus.ENDED
    return StakingStatus.ACTIVE


@dataclass(frozen=True)
class CountdownPlan:
    title: str
    target: float


def countdown_plan(now: float, start_time: float, end_time: float) -> Optional[CountdownPlan]:
    """
    Pick the countdown to show for a pool.

    Before the start the title announces the start but the countdown runs to
    the end date; this is how the pool page has always behaved.
    """
    if now < start_time:
        return CountdownPlan(STARTS_IN_TITLE, end_time)
    if now < end_time:
        return CountdownPlan(ENDS_IN_TITLE, end_time)
    return None


@dataclass(frozen=True)
class CountdownTick:
    days: int
    hours: int
    minutes: int
    seconds: int

    def __str__(self) -> str:
        return f"{self.days}d {self.hours}h {self.minutes}m {self.seconds}s"


class _Expired:
    def __repr__(self) -> str:
        return "EXPIRED"

    def __str__(self) -> str:
        return EXPIRED_TEXT


EXPIRED = _Expired()

CountdownItem = Union[CountdownTick, _Expired]


def breakdown(remaining: float) -> CountdownTick:
    """Split a duration in seconds into floored days/hours/minutes/seconds"""
    millis = int(remaining * 1000)
    return CountdownTick(
        days=millis // 86_400_000,
        hours=(millis % 86_400_000) // 3_600_000,
        minutes=(millis % 3_600_000) // 60_000,
        seconds=(millis % 60_000) // 1000,
    )


async def countdown(
    target: float,
    clock: Callable[[], float] = time.time,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    interval: float = 1.0
) -> AsyncIterator[CountdownItem]:
    """
    Yield the remaining time to ``target`` once per interval.

    When the remaining time goes negative, EXPIRED is yielded and the
    sequence ends. Each call is an independent timer.
    """
    while True:
        await sleep(interval)
        remaining = target - clock()
        if remaining < 0:
            yield EXPIRED
            return
        yield breakdown(remaining)


class CountdownTimer:
    """Keeps at most one countdown running"""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        interval: float = 1.0
    ):
        self.clock = clock
        self.sleep = sleep
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, target: float, on_tick: Callable[[CountdownItem], None]) -> asyncio.Task:
        """
        Start counting down to ``target``, cancelling any previous countdown.

        Must be called from a running event loop.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(target, on_tick))
        return self._task

    def cancel(self) -> None:
        if self.running:
            logger.debug("Cancelling running countdown")
            self._task.cancel()
        self._task = None

    async def _run(self, target: float, on_tick: Callable[[CountdownItem], None]) -> None:
        async for item in countdown(target, self.clock, self.sleep, self.interval):
            on_tick(item)
