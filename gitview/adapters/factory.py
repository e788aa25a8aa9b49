"""Factory classes for session and adapter instantiation.

This module centralizes the wiring of the refresh machinery to its
adapters, keeping the CLI and the watch UI free from direct adapter imports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from gitview.adapters.clock.loop_clock import LoopClock
from gitview.adapters.editor.buffers import BufferRegistry
from gitview.adapters.fs.local import LocalStorage
from gitview.adapters.fs.watcher import WorkingTreeWatcher
from gitview.adapters.git_cmd.git_adapter import GitAdapter
from gitview.core.operations.repo_operations import RepositoryOperations
from gitview.core.refresh.coordinator import RefreshCoordinator
from gitview.core.tabs.reconciler import TabContentReconciler

if TYPE_CHECKING:
    from gitview.domain.config import GitviewConfig
    from gitview.ports.clock import Clock
    from gitview.ports.config import ConfigProvider

logger = logging.getLogger(__name__)


@dataclass
class GitviewSession:
    """Everything needed to watch and operate on one repository.

    The coordinator publishes snapshots; the reconciler and the change count
    follow its cell; operations trigger immediate refreshes through it.
    """

    repo_root: Path
    config: GitviewConfig
    engine: GitAdapter
    storage: LocalStorage
    buffers: BufferRegistry
    coordinator: RefreshCoordinator
    reconciler: TabContentReconciler
    operations: RepositoryOperations
    watcher: WorkingTreeWatcher | None = field(default=None, repr=False)

    def start_watching(self) -> None:
        """Raise a debounced refresh for every write under the working tree.

        Must be called from the running event loop.
        """
        if self.watcher is not None:
            return
        self.watcher = WorkingTreeWatcher(
            self.repo_root, self.coordinator.notify_terminal_write
        )
        self.watcher.start()

    def stop_watching(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    def switch_to(self, repo_root: Path) -> None:
        """Point the session at another repository.

        Open buffers belong to the old workspace and are closed. The new
        repository keeps this session's configuration.

        Raises:
            NotARepositoryError: If repo_root is not a git repository.
        """
        engine = GitAdapter(repo_root, self.config.git)
        storage = LocalStorage(engine.repo_root)
        engine.on_file_operation = self.reconciler.on_file_operation

        self.buffers.close_all()
        self.reconciler.set_storage(storage)
        self.operations.set_engine(engine)
        self.coordinator.switch_workspace(engine, storage)

        watching = self.watcher is not None
        self.stop_watching()
        self.repo_root = engine.repo_root
        self.engine = engine
        self.storage = storage
        if watching:
            self.start_watching()
        logger.info("Switched workspace to %s", self.repo_root)

    async def aclose(self) -> None:
        self.stop_watching()
        await self.coordinator.close()
        await self.reconciler.aclose()


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self) -> ConfigProvider:
        """Create the TOML config provider (global and local cascade)."""
        from gitview.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()


class SessionFactory:
    """Factory wiring a GitviewSession for a repository.

    Args:
        config: Configuration applied to every created session.
        clock: Clock for timers; real loop time if omitted.
    """

    def __init__(self, config: GitviewConfig, clock: Clock | None = None) -> None:
        self._config = config
        self._clock = clock

    def create_session(self, repo_root: Path) -> GitviewSession:
        """Create a session for the repository containing repo_root.

        Raises:
            NotARepositoryError: If repo_root is not inside a git repository.
        """
        clock = self._clock or LoopClock()
        engine = GitAdapter(repo_root, self._config.git)
        storage = LocalStorage(engine.repo_root)
        buffers = BufferRegistry()

        coordinator = RefreshCoordinator(engine, storage, clock, self._config.refresh)
        reconciler = TabContentReconciler(
            buffers, storage, clock, self._config.tabs.close_grace_seconds
        )
        reconciler.attach(coordinator.cell)
        engine.on_file_operation = reconciler.on_file_operation

        operations = RepositoryOperations(engine, coordinator.notify_operation_completed)

        return GitviewSession(
            repo_root=engine.repo_root,
            config=self._config,
            engine=engine,
            storage=storage,
            buffers=buffers,
            coordinator=coordinator,
            reconciler=reconciler,
            operations=operations,
        )
