"""Clock adapter backed by the running asyncio event loop."""

import asyncio
import time
from collections.abc import Callable


class LoopClock:
    """Real time: monotonic clock, loop timers and asyncio.sleep."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
