"""In-memory editor buffers.

Implements the TabHost port for the terminal UI's file previews and for
embedders that keep their own buffers elsewhere.
"""

import logging

from gitview.domain.entities import TabState

logger = logging.getLogger(__name__)


class BufferRegistry:
    """Open buffers keyed by repository-relative path, in opening order."""

    def __init__(self) -> None:
        self._tabs: dict[str, TabState] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._tabs

    def __len__(self) -> int:
        return len(self._tabs)

    def get(self, path: str) -> TabState | None:
        return self._tabs.get(path)

    def open(self, path: str, content: str) -> TabState:
        """Open a clean buffer, or return the existing one for path."""
        tab = self._tabs.get(path)
        if tab is None:
            tab = TabState(path=path, content=content)
            self._tabs[path] = tab
            logger.debug("Opened buffer %s", path)
        return tab

    def edit(self, path: str, content: str) -> None:
        """Change a buffer's content as a user edit would (marks it dirty).

        Raises:
            KeyError: If no buffer is open for path.
        """
        tab = self._tabs[path]
        tab.content = content
        tab.is_dirty = True

    def close_all(self) -> None:
        self._tabs.clear()

    # TabHost

    def open_tabs(self) -> list[TabState]:
        return list(self._tabs.values())

    def replace_content(self, path: str, content: str) -> None:
        tab = self._tabs.get(path)
        if tab is None:
            return
        tab.content = content
        tab.is_dirty = False

    def close_tab(self, path: str) -> None:
        if self._tabs.pop(path, None) is not None:
            logger.debug("Closed buffer %s", path)
