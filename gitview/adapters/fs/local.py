"""Local file system adapter.

Implements the Storage port on the local disk. Paths handed to it are
relative to the working tree root.
"""

import asyncio
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalStorage:
    """Working tree files on the local file system.

    Args:
        root: Absolute path of the working tree root.
    """

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()

    async def sync(self) -> None:
        """Flush the working tree directory entry to disk.

        Only the root directory is fsynced, in the default executor, so a
        refresh never flushes unrelated filesystems. Platforms that cannot
        open a directory for fsync have nothing to flush.
        """
        await asyncio.get_running_loop().run_in_executor(None, self._fsync_root)

    def _fsync_root(self) -> None:
        try:
            fd = os.open(self.root, os.O_RDONLY)
        except (PermissionError, IsADirectoryError):
            return
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    async def read_text(self, path: str) -> str | None:
        """Read a working tree file.

        Args:
            path: Path relative to the root.

        Returns:
            File contents, or None if it doesn't exist or is not a file.

        Raises:
            OSError: If the file exists but can't be read.
        """
        target = self.resolve(path)
        if not target.is_file():
            return None
        try:
            return target.read_text(errors="replace")
        except FileNotFoundError:
            # Deleted between the check and the read
            return None

    def resolve(self, path: str) -> Path:
        """Absolute path of a root-relative path."""
        return self.root / path
