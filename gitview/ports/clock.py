"""Clock port interface.

All timing in the refresh machinery goes through a Clock so that debounce,
settle and poll behaviour can be driven by virtual time in tests.
"""

from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    """Handle of a scheduled callback."""

    def cancel(self) -> None:
        """Cancel the callback. A cancelled callback never runs."""
        ...


class Clock(Protocol):
    """Protocol for time and timers."""

    def now(self) -> float:
        """Current monotonic time in seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds.

        Args:
            delay: Seconds to wait.
            callback: Function to invoke.

        Returns:
            Handle that can cancel the callback before it runs.
        """
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling coroutine for the given number of seconds."""
        ...
