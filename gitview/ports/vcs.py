"""Version Control System (VCS) port interface.

Defines the abstract interface of the version-control engine. The engine's
query commands return free-form text that the core parses itself; its
mutating commands either succeed or raise.
"""

from typing import Protocol

from gitview.domain.entities import DiscardOutcome

# Path argument meaning "every changed path" for add()
ALL_PATHS = "."


class VersionControlEngine(Protocol):
    """Protocol for the asynchronous version-control engine (git)."""

    async def status(self) -> str:
        """Return long-form status text.

        Raises:
            EngineError: If the engine rejects the command.
        """
        ...

    async def log(self, max_entries: int) -> str:
        """Return the most recent commits, one delimited record per line.

        Each line is ``hash|message|author|date``. Any literal field
        delimiter inside message or author has already been replaced with
        LOG_DELIMITER_PLACEHOLDER.

        Args:
            max_entries: Maximum number of commits to return.

        Raises:
            EngineError: If the engine rejects the command.
        """
        ...

    async def branch(self) -> str:
        """Return the branch listing, current branch prefixed with ``* ``.

        Raises:
            EngineError: If the engine rejects the command.
        """
        ...

    async def add(self, path: str) -> None:
        """Stage a path, or every change when path is ALL_PATHS."""
        ...

    async def reset(self, path: str | None = None) -> None:
        """Unstage a path, or everything when path is None."""
        ...

    async def commit(self, message: str) -> None:
        """Commit the staged changes with the given message."""
        ...

    async def discard_changes(self, path: str) -> DiscardOutcome:
        """Throw away working tree changes to a path.

        Tracked files are restored to their committed content; untracked or
        newly added files are removed.

        Returns:
            What happened to the path.
        """
        ...
