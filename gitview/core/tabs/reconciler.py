"""Keeps open editor buffers in step with stored file content.

Clean buffers follow storage; buffers with unsaved edits are never touched.
A clean buffer whose file disappeared is closed after a short grace delay.
"""

import asyncio
import logging
from collections.abc import Callable

from gitview.core.refresh.snapshot_cell import SnapshotCell
from gitview.core.use_case_errors import log_use_case_error
from gitview.domain.entities import (
    FileOperation,
    FileOperationKind,
    ReconcileReport,
    RepositorySnapshot,
    SnapshotValue,
    TabState,
)
from gitview.ports.clock import Clock
from gitview.ports.storage import Storage
from gitview.ports.tabs import TabHost

logger = logging.getLogger(__name__)


class TabContentReconciler:
    """Reconciles TabHost buffers against Storage.

    Args:
        host: Owner of the open buffers.
        storage: Source of stored file content.
        clock: Clock for the close grace delay.
        close_grace_seconds: Delay before closing a buffer whose file is gone.
    """

    def __init__(
        self,
        host: TabHost,
        storage: Storage,
        clock: Clock,
        close_grace_seconds: float = 0.1,
    ) -> None:
        self._host = host
        self._storage = storage
        self._clock = clock
        self._close_grace_seconds = close_grace_seconds

        self._pending_close: dict[str, asyncio.Task[None]] = {}
        self._task: asyncio.Task[None] | None = None
        self._reconcile_owed = False

    @property
    def pending_close(self) -> frozenset[str]:
        """Paths waiting for their grace delay to close."""
        return frozenset(self._pending_close)

    def set_storage(self, storage: Storage) -> None:
        """Read content from another workspace's storage from now on."""
        self._storage = storage
        for task in self._pending_close.values():
            task.cancel()
        self._pending_close.clear()

    async def reconcile(self) -> ReconcileReport:
        """Run one reconciliation pass over every open buffer.

        Returns:
            What was updated, skipped or scheduled for closing.
        """
        report = ReconcileReport()
        for tab in list(self._host.open_tabs()):
            try:
                stored = await self._storage.read_text(tab.path)
            except OSError as e:
                logger.warning("Could not read %s, leaving its buffer alone: %s", tab.path, e)
                continue

            # The buffer may have been edited or closed while storage was read
            current = self._find_tab(tab.path)
            if current is None:
                continue

            if stored is None:
                if current.is_dirty:
                    report.skipped_dirty.append(current.path)
                elif self._schedule_close(current.path):
                    report.scheduled_close.append(current.path)
                continue

            if stored == current.content:
                continue
            if current.is_dirty:
                report.skipped_dirty.append(current.path)
                continue

            self._host.replace_content(current.path, stored)
            report.updated.append(current.path)

        if report.changed or report.skipped_dirty:
            logger.debug(
                "Reconciled tabs: %d updated, %d dirty skipped, %d closing",
                len(report.updated),
                len(report.skipped_dirty),
                len(report.scheduled_close),
            )
        return report

    def attach(self, cell: SnapshotCell) -> Callable[[], None]:
        """Reconcile after every snapshot published to a SnapshotCell.

        Returns:
            Function that detaches the reconciler.
        """
        return cell.subscribe(self.on_publication)

    def on_publication(self, value: SnapshotValue) -> None:
        if isinstance(value, RepositorySnapshot):
            self.request_reconcile()

    def on_file_operation(self, operation: FileOperation) -> None:
        """Bring a buffer in line with a change the engine just made.

        Clean buffers take restored content at once; a clean buffer whose
        file was deleted is scheduled for closing. Dirty buffers are left
        alone.
        """
        tab = self._find_tab(operation.path)
        if tab is None or tab.is_dirty:
            return
        if operation.kind is FileOperationKind.FILE and operation.content is not None:
            if tab.content != operation.content:
                self._host.replace_content(tab.path, operation.content)
        elif operation.kind is FileOperationKind.DELETE:
            self._schedule_close(tab.path)

    def request_reconcile(self) -> None:
        """Start a background pass, or queue one behind the running pass."""
        if self._task is not None:
            self._reconcile_owed = True
            return
        self._task = asyncio.create_task(self._run())

    async def wait_until_idle(self) -> None:
        """Wait for the background pass and pending closes to finish."""
        while self._task is not None or self._pending_close:
            pending = [t for t in (self._task, *self._pending_close.values()) if t is not None]
            await asyncio.wait(pending)

    async def aclose(self) -> None:
        """Cancel pending closes and wait for the running pass."""
        for task in self._pending_close.values():
            task.cancel()
        self._pending_close.clear()
        self._reconcile_owed = False
        if self._task is not None:
            await asyncio.wait([self._task])

    async def _run(self) -> None:
        try:
            while True:
                self._reconcile_owed = False
                try:
                    await self.reconcile()
                except Exception as e:
                    log_use_case_error(e, "tab reconciliation")
                if not self._reconcile_owed:
                    break
        finally:
            self._task = None

    def _schedule_close(self, path: str) -> bool:
        if path in self._pending_close:
            return False
        self._pending_close[path] = asyncio.create_task(self._close_after_grace(path))
        return True

    async def _close_after_grace(self, path: str) -> None:
        try:
            await self._clock.sleep(self._close_grace_seconds)
            current = self._find_tab(path)
            if current is None or current.is_dirty:
                return
            if await self._storage.read_text(path) is not None:
                logger.debug("%s reappeared during close grace, keeping its buffer", path)
                return
            logger.debug("Closing buffer of deleted file %s", path)
            self._host.close_tab(path)
        except OSError as e:
            logger.warning("Could not re-check %s before closing: %s", path, e)
        finally:
            if self._pending_close.get(path) is asyncio.current_task():
                del self._pending_close[path]

    def _find_tab(self, path: str) -> TabState | None:
        for tab in self._host.open_tabs():
            if tab.path == path:
                return tab
        return None
