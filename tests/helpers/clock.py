"""Deterministic virtual clock for timing tests.

ManualClock implements the Clock port. Time only moves when a test calls
advance(), which fires due timers in order and lets the event loop run the
tasks they wake, so debounce, settle and poll behaviour can be asserted
without real delays.
"""

import asyncio
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field

# Event loop iterations given to woken tasks after each timer fires
SETTLE_ITERATIONS = 50


@dataclass(order=True)
class ManualTimer:
    """A callback scheduled on a ManualClock."""

    when: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Clock whose time is advanced explicitly by the test."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._timers: list[ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self._now + delay, next(self._seq), callback)
        self._timers.append(timer)
        return timer

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()

        def wake() -> None:
            if not future.done():
                future.set_result(None)

        self.call_later(seconds, wake)
        await future

    @property
    def pending(self) -> list[ManualTimer]:
        """Timers that have neither fired nor been cancelled, soonest first."""
        return sorted(t for t in self._timers if not t.cancelled)

    async def advance(self, seconds: float) -> None:
        """Move time forward, firing every timer that falls due on the way."""
        target = self._now + seconds
        await settle()
        while True:
            due = [t for t in self.pending if t.when <= target]
            if not due:
                break
            timer = due[0]
            self._timers.remove(timer)
            self._now = timer.when
            timer.callback()
            await settle()
        self._now = target
        await settle()


async def settle() -> None:
    """Let ready tasks run until the loop goes quiet."""
    for _ in range(SETTLE_ITERATIONS):
        await asyncio.sleep(0)
