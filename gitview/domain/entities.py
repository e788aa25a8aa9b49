"""Domain entities and value objects.

Core domain models representing repository state as seen through the
version-control engine's text output. These are pure Python dataclasses
with no dependencies on infrastructure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Branch name reported when the status text carries no "On branch" line
DEFAULT_BRANCH = "main"

# Number of leading hash characters shown as the abbreviated commit id
SHORT_HASH_LENGTH = 7


class TriggerKind(str, Enum):
    """Class of a refresh trigger.

    - DEBOUNCED: edit-driven notifications; coalesced over a quiet period
    - IMMEDIATE: completion of an explicit repository operation
    """

    DEBOUNCED = "debounced"
    IMMEDIATE = "immediate"


@dataclass(frozen=True)
class RefreshTrigger:
    """A request to refresh repository state. Carries only its kind."""

    kind: TriggerKind


class RefreshPhase(str, Enum):
    """Lifecycle phase of the refresh machinery.

    A cycle runs SETTLING -> FETCHING -> PARSING -> PUBLISHED and returns to
    IDLE, or exits through ERROR from any non-idle phase.
    """

    IDLE = "idle"
    PENDING_DEBOUNCE = "pending_debounce"
    SETTLING = "settling"
    FETCHING = "fetching"
    PARSING = "parsing"
    PUBLISHED = "published"
    ERROR = "error"

    @property
    def cycle_active(self) -> bool:
        """True while a cycle occupies the single in-flight slot.

        PUBLISHED and ERROR still hold the slot: they are the last steps of
        a cycle before it returns to IDLE.
        """
        return self not in (RefreshPhase.IDLE, RefreshPhase.PENDING_DEBOUNCE)


@dataclass(frozen=True)
class GitStatus:
    """Structured form of the engine's status text.

    Attributes:
        staged: Paths listed under "Changes to be committed", in source order.
        unstaged: Paths listed under "Changes not staged for commit".
        untracked: Individual untracked files (directories excluded).
        branch: Current branch, or DEFAULT_BRANCH if none was reported.
        ahead: Commits the branch is ahead of its upstream.
        behind: Commits the branch is behind its upstream.
    """

    staged: tuple[str, ...] = ()
    unstaged: tuple[str, ...] = ()
    untracked: tuple[str, ...] = ()
    branch: str = DEFAULT_BRANCH
    ahead: int = 0
    behind: int = 0

    @property
    def total_changes(self) -> int:
        """Number of pending changes across all three sections."""
        return len(self.staged) + len(self.unstaged) + len(self.untracked)

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0


@dataclass(frozen=True)
class Commit:
    """A single commit from the engine's log.

    Attributes:
        hash: Full commit hash (at least SHORT_HASH_LENGTH characters).
        short_hash: First SHORT_HASH_LENGTH characters of hash.
        message: Commit subject.
        author: Author name.
        date: Date exactly as it appeared in the log text.
        timestamp: Parsed, timezone-aware point in time.
        is_merge: Whether the message mentions a merge.
        parent_hashes: Always empty; the consumed log format carries no parents.

    Raises:
        ValueError: If hash is shorter than SHORT_HASH_LENGTH or short_hash
            does not match it.
    """

    hash: str
    short_hash: str
    message: str
    author: str
    date: str
    timestamp: datetime
    is_merge: bool = False
    parent_hashes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate commit data after initialization."""
        if len(self.hash) < SHORT_HASH_LENGTH:
            raise ValueError(
                f"Commit hash must be at least {SHORT_HASH_LENGTH} characters, "
                f"got: {self.hash!r}"
            )
        if self.short_hash != self.hash[:SHORT_HASH_LENGTH]:
            raise ValueError(
                f"short_hash {self.short_hash!r} does not match hash {self.hash!r}"
            )

    @classmethod
    def from_fields(
        cls,
        *,
        hash: str,
        message: str,
        author: str,
        date: str,
        timestamp: datetime,
    ) -> Commit:
        """Create a commit, deriving short_hash and is_merge.

        Args:
            hash: Full commit hash.
            message: Commit subject.
            author: Author name.
            date: Source date string.
            timestamp: Parsed date.

        Returns:
            Commit with derived fields populated.
        """
        return cls(
            hash=hash,
            short_hash=hash[:SHORT_HASH_LENGTH],
            message=message,
            author=author,
            date=date,
            timestamp=timestamp,
            is_merge="merge" in message.lower(),
        )


@dataclass(frozen=True)
class Branch:
    """A branch from the engine's branch listing."""

    name: str
    is_current: bool = False
    is_remote: bool = False


@dataclass(frozen=True)
class RepositorySnapshot:
    """One atomically published view of repository state.

    Snapshots are never mutated; each refresh cycle produces a new one that
    wholly replaces the previous, so status, commits and branches always
    come from the same cycle.

    Attributes:
        status: Parsed working tree status.
        commits: Commits sorted newest first.
        branches: Branches in listing order.
        current_branch: Branch reported by the status text.
    """

    status: GitStatus
    commits: tuple[Commit, ...] = ()
    branches: tuple[Branch, ...] = ()
    current_branch: str = DEFAULT_BRANCH

    @classmethod
    def assemble(
        cls,
        status: GitStatus,
        commits: tuple[Commit, ...],
        branches: tuple[Branch, ...],
    ) -> RepositorySnapshot:
        """Bundle the three parse results of one cycle."""
        return cls(
            status=status,
            commits=commits,
            branches=branches,
            current_branch=status.branch,
        )

    @property
    def change_count(self) -> int:
        return self.status.total_changes

    @property
    def has_changes(self) -> bool:
        return self.status.has_changes


@dataclass(frozen=True)
class Unavailable:
    """Marker published in place of a snapshot.

    Attributes:
        reason: Human-readable error text when a refresh failed, or None when
            no snapshot exists yet (startup or workspace switch).
    """

    reason: str | None = None

    @property
    def is_error(self) -> bool:
        return self.reason is not None


UNAVAILABLE = Unavailable()

# What the snapshot cell holds at any moment
SnapshotValue = RepositorySnapshot | Unavailable


@dataclass
class TabState:
    """An open editor buffer.

    Owned by the presentation layer; the reconciler only reads it and
    conditionally rewrites content and is_dirty.
    """

    path: str
    content: str
    is_dirty: bool = False


class FileOperationKind(str, Enum):
    """Filesystem-visible effect performed by the engine."""

    FILE = "file"
    FOLDER = "folder"
    DELETE = "delete"


@dataclass(frozen=True)
class FileOperation:
    """Notification that the engine wrote, created or removed a path.

    Attributes:
        path: Repository-relative path.
        kind: Type of effect.
        content: New file content for FILE effects, otherwise None.
    """

    path: str
    kind: FileOperationKind
    content: str | None = None


class DiscardOutcome(str, Enum):
    """What discarding changes to a path did to the working tree."""

    RESTORED = "restored"  # Tracked file reset to its committed content
    DELETED = "deleted"  # Untracked or newly added file removed


@dataclass
class OperationResult:
    """Result of a repository operation (stage, commit, discard...).

    Attributes:
        success: Whether the engine accepted the operation.
        error: Error message if it failed, None otherwise.
        outcome: Discard outcome, for discard operations.
    """

    success: bool = True
    error: str | None = None
    outcome: DiscardOutcome | None = None

    @classmethod
    def create_success(cls, outcome: DiscardOutcome | None = None) -> OperationResult:
        return cls(success=True, outcome=outcome)

    @classmethod
    def create_error(cls, message: str) -> OperationResult:
        return cls(success=False, error=message)


@dataclass
class ReconcileReport:
    """Summary of one tab reconciliation pass.

    Attributes:
        updated: Paths whose clean buffers were replaced with stored content.
        skipped_dirty: Paths left alone because the buffer has unsaved edits.
        scheduled_close: Paths whose stored file is gone and whose buffer
            will be closed after the grace delay.
    """

    updated: list[str] = field(default_factory=list)
    skipped_dirty: list[str] = field(default_factory=list)
    scheduled_close: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.updated or self.scheduled_close)
