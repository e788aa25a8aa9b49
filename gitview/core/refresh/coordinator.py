"""Refresh coordinator: runs refresh cycles and publishes snapshots.

A cycle is: best-effort storage sync, settle delay, the three engine queries
issued concurrently, parsing, and one atomic publication to the snapshot
cell. When a cycle runs is decided by RefreshScheduler.
"""

import asyncio
import logging

from gitview.core.parsing import parse_branches, parse_log, parse_status
from gitview.core.publishing.change_count import ChangeCountPublisher
from gitview.core.refresh.scheduler import RefreshScheduler
from gitview.core.refresh.snapshot_cell import SnapshotCell
from gitview.core.use_case_errors import format_error_message, log_use_case_error
from gitview.domain.config import RefreshConfig
from gitview.domain.entities import (
    UNAVAILABLE,
    FileOperation,
    RefreshPhase,
    RefreshTrigger,
    RepositorySnapshot,
    SnapshotValue,
    TriggerKind,
    Unavailable,
)
from gitview.domain.exceptions import GitviewError
from gitview.ports.clock import Clock, TimerHandle
from gitview.ports.storage import Storage
from gitview.ports.vcs import VersionControlEngine

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """Keeps the snapshot cell in step with the repository.

    The coordinator is the only writer of its SnapshotCell. Readers either
    subscribe to the cell or follow the attached ChangeCountPublisher.

    Args:
        engine: Version-control engine for the current workspace.
        storage: Storage backing the current workspace.
        clock: Clock for the debounce timer, settle delay and fallback poll.
        config: Refresh timing configuration.
        cell: Cell to publish into; a new one is created if omitted.
    """

    def __init__(
        self,
        engine: VersionControlEngine,
        storage: Storage,
        clock: Clock,
        config: RefreshConfig | None = None,
        cell: SnapshotCell | None = None,
    ) -> None:
        self._engine = engine
        self._storage = storage
        self._clock = clock
        self._config = config or RefreshConfig()
        self.cell = cell if cell is not None else SnapshotCell()

        self.change_count = ChangeCountPublisher()
        self.change_count.attach(self.cell)

        self._scheduler = RefreshScheduler(
            clock, self._config.debounce_seconds, self._start_cycle
        )
        self._scheduler.add_listener(self._on_phase_change)
        self._idle = asyncio.Event()
        self._idle.set()

        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._poll_handle: TimerHandle | None = None
        self._closed = False

    @property
    def phase(self) -> RefreshPhase:
        return self._scheduler.phase

    @property
    def refresh_owed(self) -> bool:
        return self._scheduler.refresh_owed

    @property
    def cycles_started(self) -> int:
        return self._scheduler.cycles_started

    @property
    def is_idle(self) -> bool:
        return self._scheduler.phase is RefreshPhase.IDLE and self._task is None

    @property
    def polling(self) -> bool:
        return self._poll_handle is not None

    # Triggers

    def request_refresh(self, trigger: TriggerKind | RefreshTrigger) -> None:
        """Raise a refresh trigger.

        Args:
            trigger: Trigger kind, or a RefreshTrigger carrying it.
        """
        if self._closed:
            logger.debug("Ignoring refresh trigger after close")
            return
        kind = trigger.kind if isinstance(trigger, RefreshTrigger) else trigger
        self._scheduler.request(kind)

    def notify_edit_saved(self) -> None:
        """An editor buffer was saved to storage."""
        self.request_refresh(TriggerKind.DEBOUNCED)

    def notify_terminal_write(self) -> None:
        """A terminal session wrote to the workspace."""
        self.request_refresh(TriggerKind.DEBOUNCED)

    def notify_operation_completed(self) -> None:
        """An explicit repository operation (stage, commit...) finished."""
        self.request_refresh(TriggerKind.IMMEDIATE)

    def on_file_operation(self, operation: FileOperation) -> None:
        """The engine changed a path on disk."""
        logger.debug("Engine %s operation on %s", operation.kind.value, operation.path)
        self.request_refresh(TriggerKind.IMMEDIATE)

    async def refresh_now(self) -> SnapshotValue:
        """Run a refresh cycle now and return what it published.

        Returns:
            The snapshot, or an Unavailable marker if the cycle failed.
        """
        self.request_refresh(TriggerKind.IMMEDIATE)
        await self.wait_until_idle()
        return self.cell.value

    async def wait_until_idle(self) -> None:
        """Wait until no cycle is active, pending or owed."""
        while not self.is_idle:
            await self._idle.wait()

    # Fallback poll

    def start_polling(self) -> None:
        """Issue a debounced trigger every poll_seconds until stopped."""
        if self._poll_handle is not None or self._closed:
            return
        logger.debug("Starting fallback poll every %ss", self._config.poll_seconds)
        self._schedule_poll()

    def stop_polling(self) -> None:
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None

    def _schedule_poll(self) -> None:
        self._poll_handle = self._clock.call_later(self._config.poll_seconds, self._on_poll)

    def _on_poll(self) -> None:
        logger.debug("Fallback poll")
        self.request_refresh(TriggerKind.DEBOUNCED)
        self._schedule_poll()

    # Workspace lifecycle

    def switch_workspace(self, engine: VersionControlEngine, storage: Storage) -> None:
        """Point the coordinator at another repository.

        Pending timers and owed refreshes are dropped and UNAVAILABLE is
        published at once. A cycle still running against the previous
        workspace completes but its result is discarded. A refresh of the
        new workspace is requested immediately.
        """
        logger.info("Switching workspace")
        self._generation += 1
        self._engine = engine
        self._storage = storage
        self._scheduler.cancel()
        self.cell.publish(UNAVAILABLE)
        self.request_refresh(TriggerKind.IMMEDIATE)

    async def close(self) -> None:
        """Stop polling, drop pending triggers and wait for the active cycle."""
        self._closed = True
        self.stop_polling()
        self._scheduler.cancel()
        task = self._task
        if task is not None:
            await asyncio.wait([task])

    # Cycle

    def _start_cycle(self) -> None:
        generation = self._generation
        self._task = asyncio.create_task(
            self._run_cycle(generation, self._engine, self._storage)
        )

    async def _run_cycle(
        self,
        generation: int,
        engine: VersionControlEngine,
        storage: Storage,
    ) -> None:
        try:
            snapshot = await self._collect(engine, storage)
        except Exception as e:
            log_use_case_error(e, "refresh")
            self._scheduler.advance(RefreshPhase.ERROR)
            if generation == self._generation:
                self.cell.publish(Unavailable(format_error_message(e, "refresh")))
        else:
            if generation == self._generation:
                self.cell.publish(snapshot)
            else:
                logger.debug("Discarding snapshot of previous workspace")
            self._scheduler.advance(RefreshPhase.PUBLISHED)
        finally:
            self._task = None
            self._scheduler.cycle_finished()

    async def _collect(
        self, engine: VersionControlEngine, storage: Storage
    ) -> RepositorySnapshot:
        await self._sync_storage(storage)
        await self._clock.sleep(self._config.settle_seconds)

        self._scheduler.advance(RefreshPhase.FETCHING)
        # A failing query cancels and awaits its siblings before the cycle ends
        try:
            async with asyncio.TaskGroup() as group:
                status_task = group.create_task(engine.status())
                log_task = group.create_task(engine.log(self._config.log_depth))
                branch_task = group.create_task(engine.branch())
        except ExceptionGroup as group_error:
            raise _first_failure(group_error) from group_error

        self._scheduler.advance(RefreshPhase.PARSING)
        snapshot = RepositorySnapshot.assemble(
            status=parse_status(status_task.result()),
            commits=parse_log(log_task.result()),
            branches=parse_branches(branch_task.result()),
        )
        logger.debug(
            "Refreshed %s: %d change(s), %d commit(s), %d branch(es)",
            snapshot.current_branch,
            snapshot.change_count,
            len(snapshot.commits),
            len(snapshot.branches),
        )
        return snapshot

    async def _sync_storage(self, storage: Storage) -> None:
        try:
            await storage.sync()
        except Exception as e:
            logger.warning("Storage sync failed, refreshing anyway: %s", e)

    def _on_phase_change(self, phase: RefreshPhase) -> None:
        if phase is RefreshPhase.IDLE:
            self._idle.set()
        else:
            self._idle.clear()


def _first_failure(group_error: ExceptionGroup) -> Exception:
    """Pick the exception to report from a failed set of queries.

    Domain errors carry readable messages, so the first GitviewError wins.
    Otherwise the first leaf exception is returned.
    """
    leaves: list[Exception] = []
    pending: list[BaseException] = [group_error]
    while pending:
        error = pending.pop(0)
        if isinstance(error, BaseExceptionGroup):
            pending[:0] = list(error.exceptions)
        elif isinstance(error, Exception):
            leaves.append(error)
    for error in leaves:
        if isinstance(error, GitviewError):
            return error
    return leaves[0] if leaves else group_error
