"""Derives the pending-change count from each published snapshot."""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from gitview.domain.entities import RepositorySnapshot, SnapshotValue

if TYPE_CHECKING:
    from gitview.core.refresh.snapshot_cell import SnapshotCell

logger = logging.getLogger(__name__)

ChangeCountCallback = Callable[[int], None]


class ChangeCountPublisher:
    """Broadcasts |staged| + |unstaged| + |untracked| on every publication.

    Unavailable values (errors, workspace switches) publish 0.
    """

    def __init__(self) -> None:
        self._count = 0
        self._callbacks: list[ChangeCountCallback] = []

    @property
    def count(self) -> int:
        return self._count

    def attach(self, cell: "SnapshotCell") -> Callable[[], None]:
        """Follow publications of a snapshot cell.

        Returns:
            Function that detaches the publisher.
        """
        return cell.subscribe(self.on_publication)

    def add_callback(self, callback: ChangeCountCallback) -> Callable[[], None]:
        """Register a consumer of the change count.

        Returns:
            Function that removes the callback.
        """
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def on_publication(self, value: SnapshotValue) -> None:
        count = value.change_count if isinstance(value, RepositorySnapshot) else 0
        self._count = count
        logger.debug("Publishing change count %d", count)
        for callback in list(self._callbacks):
            try:
                callback(count)
            except Exception:
                logger.exception("Change count callback %r failed", callback)
