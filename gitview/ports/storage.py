"""Storage port interface.

Defines the view of persistent file storage that the core relies on. Its
consistency guarantees are assumed, not built here.
"""

from typing import Protocol


class Storage(Protocol):
    """Protocol for reading workspace files."""

    async def sync(self) -> None:
        """Best-effort hint to flush pending writes.

        Failure is not fatal to callers; they log it and carry on.
        """
        ...

    async def read_text(self, path: str) -> str | None:
        """Read the current content of a workspace file.

        Args:
            path: Repository-relative path.

        Returns:
            File content, or None if the file does not exist.
        """
        ...
