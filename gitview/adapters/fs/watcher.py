"""Working tree watcher.

Turns filesystem events under a repository into refresh triggers. Events
arrive on the watchdog observer thread and are handed to the event loop with
call_soon_threadsafe.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Git metadata paths whose changes alter status, log or branches
_GIT_STATE_FILES = frozenset({("HEAD",), ("index",)})
_GIT_STATE_DIRS = ("refs",)

# Reads by git itself (and anyone else) must not trigger a refresh
_IGNORED_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


def is_relevant_path(repo_root: Path, path: str | bytes) -> bool:
    """Return whether a change at path can alter the repository view.

    Everything in the working tree counts. Inside .git only HEAD, the index
    and refs do; the rest (objects, logs, lock files) is git's own churn.
    """
    if isinstance(path, bytes):
        path = path.decode("utf-8", errors="replace")
    try:
        parts = Path(path).relative_to(repo_root).parts
    except ValueError:
        return False
    if not parts or parts[0] != ".git":
        return True
    inner = parts[1:]
    if inner in _GIT_STATE_FILES:
        return True
    return bool(inner) and inner[0] in _GIT_STATE_DIRS and not inner[-1].endswith(".lock")


class WorkingTreeEventHandler(FileSystemEventHandler):
    """Calls on_change on the event loop for every relevant file event."""

    def __init__(
        self,
        repo_root: Path,
        on_change: Callable[[], None],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.repo_root = repo_root
        self.on_change = on_change
        self.loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in _IGNORED_EVENT_TYPES:
            return

        paths = [event.src_path]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(dest_path)
        if not any(is_relevant_path(self.repo_root, path) for path in paths):
            return

        logger.debug("Detected %s: %s", event.event_type, event.src_path)
        try:
            self.loop.call_soon_threadsafe(self.on_change)
        except RuntimeError:
            # Loop already closed while the observer was shutting down
            logger.debug("Dropping file event after event loop closed")


class WorkingTreeWatcher:
    """Watches a repository and reports writes to on_change.

    Args:
        repo_root: Root of the working tree to watch recursively.
        on_change: Called on the event loop thread once per relevant event.

    Raises:
        ValueError: If repo_root is not a directory.
    """

    def __init__(self, repo_root: Path, on_change: Callable[[], None]) -> None:
        self.repo_root = Path(repo_root).resolve()
        if not self.repo_root.is_dir():
            raise ValueError(f"Path to watch must be a directory: {self.repo_root}")
        self.on_change = on_change
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Start the observer thread.

        Must be called from a running event loop; events are delivered to it.
        """
        if self._observer is not None:
            return
        handler = WorkingTreeEventHandler(
            self.repo_root, self.on_change, asyncio.get_running_loop()
        )
        observer = Observer()
        observer.schedule(handler, str(self.repo_root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Watching %s for changes", self.repo_root)

    def stop(self) -> None:
        """Stop the observer thread and wait for it to exit."""
        observer = self._observer
        if observer is None:
            return
        self._observer = None
        observer.stop()
        observer.join()
        logger.debug("Stopped watching %s", self.repo_root)
