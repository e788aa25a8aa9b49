"""Watch view state.

Manages the selection and messages of a live repository view. Holds no
repository state of its own: the file list is derived from the most
recently published snapshot.
"""

from dataclasses import dataclass, field
from enum import Enum

from gitview.domain.entities import RepositorySnapshot, SnapshotValue, Unavailable


class FileSection(str, Enum):
    """Section of the status a listed file belongs to."""

    STAGED = "staged"
    UNSTAGED = "unstaged"
    UNTRACKED = "untracked"


@dataclass(frozen=True)
class FileEntry:
    """A selectable file row."""

    section: FileSection
    path: str


@dataclass
class WatchSession:
    """Manages state for a live watch session."""

    snapshot: RepositorySnapshot | None = None
    error_message: str | None = None
    entries: list[FileEntry] = field(default_factory=list)
    selected_index: int = 0
    preview_path: str | None = None
    message: str | None = None

    def apply(self, value: SnapshotValue) -> None:
        """Take a new publication, keeping the selection on the same file.

        Args:
            value: Snapshot or Unavailable marker from the snapshot cell.
        """
        if isinstance(value, Unavailable):
            self.snapshot = None
            self.error_message = value.reason
            self.entries = []
            self.selected_index = 0
            return

        previous = self.get_selected_entry()
        self.snapshot = value
        self.error_message = None
        status = value.status
        self.entries = (
            [FileEntry(FileSection.STAGED, p) for p in status.staged]
            + [FileEntry(FileSection.UNSTAGED, p) for p in status.unstaged]
            + [FileEntry(FileSection.UNTRACKED, p) for p in status.untracked]
        )

        if previous in self.entries:
            self.selected_index = self.entries.index(previous)
        elif self.entries:
            self.selected_index = min(self.selected_index, len(self.entries) - 1)
        else:
            self.selected_index = 0

    def select_next(self, wrap: bool = True) -> None:
        """Move to next file.

        Args:
            wrap: If True, wrap to first file after last.
        """
        if not self.entries:
            return

        self.selected_index += 1
        if self.selected_index >= len(self.entries):
            self.selected_index = 0 if wrap else len(self.entries) - 1

    def select_previous(self, wrap: bool = True) -> None:
        """Move to previous file.

        Args:
            wrap: If True, wrap to last file after first.
        """
        if not self.entries:
            return

        self.selected_index -= 1
        if self.selected_index < 0:
            self.selected_index = len(self.entries) - 1 if wrap else 0

    def get_selected_entry(self) -> FileEntry | None:
        if not self.entries or self.selected_index >= len(self.entries):
            return None
        return self.entries[self.selected_index]

    def set_message(self, message: str | None) -> None:
        self.message = message
