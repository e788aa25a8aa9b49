"""Refresh scheduling: debounce, immediate triggers and coalescing.

The scheduler decides when a refresh cycle starts; the coordinator runs it.

    IDLE --debounced--> PENDING_DEBOUNCE --quiet period--> SETTLING
    IDLE / PENDING_DEBOUNCE --immediate--> SETTLING (debounce timer cancelled)
    SETTLING -> FETCHING -> PARSING -> PUBLISHED | ERROR -> IDLE

While a cycle is active every trigger only sets a single-slot "refresh owed"
flag. When the cycle finishes an owed refresh starts a new cycle at once.
Scheduling is single-threaded, so that flag is the only concurrency control.
"""

import logging
from collections.abc import Callable

from gitview.domain.entities import RefreshPhase, TriggerKind
from gitview.ports.clock import Clock, TimerHandle

logger = logging.getLogger(__name__)

PhaseListener = Callable[[RefreshPhase], None]


class RefreshScheduler:
    """State machine deciding when refresh cycles start.

    Args:
        clock: Clock used for the debounce timer.
        debounce_seconds: Quiet period for debounced triggers.
        start_cycle: Called (synchronously) whenever a cycle should begin.
            The caller reports progress with advance() and completion with
            cycle_finished().
    """

    def __init__(
        self,
        clock: Clock,
        debounce_seconds: float,
        start_cycle: Callable[[], None],
    ) -> None:
        self._clock = clock
        self._debounce_seconds = debounce_seconds
        self._start_cycle = start_cycle

        self._phase = RefreshPhase.IDLE
        self._debounce_handle: TimerHandle | None = None
        self._refresh_owed = False
        self._cycles_started = 0
        self._listeners: list[PhaseListener] = []

    @property
    def phase(self) -> RefreshPhase:
        return self._phase

    @property
    def refresh_owed(self) -> bool:
        return self._refresh_owed

    @property
    def cycles_started(self) -> int:
        return self._cycles_started

    @property
    def debounce_pending(self) -> bool:
        return self._debounce_handle is not None

    def add_listener(self, listener: PhaseListener) -> None:
        """Register a callback invoked on every phase change."""
        self._listeners.append(listener)

    def request(self, kind: TriggerKind) -> None:
        """Handle a refresh trigger.

        Args:
            kind: Trigger class. DEBOUNCED restarts the quiet-period timer;
                IMMEDIATE cancels it and starts a cycle now.
        """
        if self._phase.cycle_active:
            if not self._refresh_owed:
                logger.debug("Refresh requested during %s; one more cycle owed", self._phase.value)
            self._refresh_owed = True
            return

        self._cancel_debounce()
        if kind is TriggerKind.IMMEDIATE:
            self._begin_cycle()
            return

        self._debounce_handle = self._clock.call_later(
            self._debounce_seconds, self._on_debounce_elapsed
        )
        self._set_phase(RefreshPhase.PENDING_DEBOUNCE)

    def advance(self, phase: RefreshPhase) -> None:
        """Record the progress of the active cycle."""
        self._set_phase(phase)

    def cycle_finished(self) -> None:
        """Mark the active cycle complete and start an owed one if needed."""
        self._set_phase(RefreshPhase.IDLE)
        if self._refresh_owed:
            self._refresh_owed = False
            logger.debug("Starting owed refresh cycle")
            self._begin_cycle()

    def cancel(self) -> None:
        """Drop any pending debounce timer and owed refresh.

        An active cycle is not interrupted.
        """
        self._cancel_debounce()
        self._refresh_owed = False
        if self._phase is RefreshPhase.PENDING_DEBOUNCE:
            self._set_phase(RefreshPhase.IDLE)

    def _on_debounce_elapsed(self) -> None:
        self._debounce_handle = None
        if self._phase is not RefreshPhase.PENDING_DEBOUNCE:
            return
        self._begin_cycle()

    def _begin_cycle(self) -> None:
        self._cycles_started += 1
        self._set_phase(RefreshPhase.SETTLING)
        self._start_cycle()

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _set_phase(self, phase: RefreshPhase) -> None:
        if phase is self._phase:
            return
        logger.debug("Refresh phase %s -> %s", self._phase.value, phase.value)
        self._phase = phase
        for listener in list(self._listeners):
            listener(phase)
