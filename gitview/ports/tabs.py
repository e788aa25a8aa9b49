"""Tab host port interface.

The presentation layer owns the open editor buffers. The core reads them
and asks the host to rewrite or close them.
"""

from typing import Protocol

from gitview.domain.entities import TabState


class TabHost(Protocol):
    """Protocol for the owner of open editor buffers."""

    def open_tabs(self) -> list[TabState]:
        """Return the currently open buffers."""
        ...

    def replace_content(self, path: str, content: str) -> None:
        """Replace a buffer's content and mark it clean."""
        ...

    def close_tab(self, path: str) -> None:
        """Close the buffer for path. Closing an unknown path is a no-op."""
        ...
