"""Single owned cell holding the current repository snapshot.

The refresh coordinator is the only writer. Every other component reads
the current value or subscribes to publications; each publication replaces
the whole value, so a subscriber never sees fields from two cycles.
"""

import logging
from collections.abc import Callable

from gitview.domain.entities import UNAVAILABLE, RepositorySnapshot, SnapshotValue, Unavailable

logger = logging.getLogger(__name__)

Subscriber = Callable[[SnapshotValue], None]


class SnapshotCell:
    """Publish/subscribe holder of the current SnapshotValue."""

    def __init__(self, initial: SnapshotValue = UNAVAILABLE) -> None:
        self._value: SnapshotValue = initial
        self._version = 0
        self._subscribers: list[Subscriber] = []

    @property
    def value(self) -> SnapshotValue:
        return self._value

    @property
    def version(self) -> int:
        """Number of publications so far."""
        return self._version

    @property
    def snapshot(self) -> RepositorySnapshot | None:
        """Current snapshot, or None while unavailable."""
        return self._value if isinstance(self._value, RepositorySnapshot) else None

    @property
    def error(self) -> str | None:
        """Error text of the last failed refresh, if that is the current value."""
        return self._value.reason if isinstance(self._value, Unavailable) else None

    def subscribe(self, subscriber: Subscriber, *, replay: bool = False) -> Callable[[], None]:
        """Register a subscriber.

        Args:
            subscriber: Called with each published value.
            replay: Also call it immediately with the current value.

        Returns:
            Function that removes the subscription.
        """
        self._subscribers.append(subscriber)
        if replay:
            self._deliver(subscriber, self._value)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, value: SnapshotValue) -> None:
        """Replace the current value and notify every subscriber."""
        self._value = value
        self._version += 1
        for subscriber in list(self._subscribers):
            self._deliver(subscriber, value)

    def _deliver(self, subscriber: Subscriber, value: SnapshotValue) -> None:
        # One failing subscriber must not starve the others of the publication
        try:
            subscriber(value)
        except Exception:
            logger.exception("Snapshot subscriber %r failed", subscriber)
