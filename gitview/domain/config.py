"""Config domain models for gitview.

Configuration is stored in .gitview/config.toml (and optionally a global
config.toml) and tunes refresh timing, tab reconciliation and how the git
engine is invoked. This module defines the domain models that represent
validated configuration state.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal


@dataclass(frozen=True)
class RefreshConfig:
    """Configuration for refresh scheduling.

    Attributes:
        debounce_seconds: Quiet period after the last edit-driven trigger
            before a refresh cycle starts.
        settle_seconds: Delay at the start of every cycle that lets just
            issued writes become visible to storage. Must be shorter than
            debounce_seconds.
        poll_seconds: Interval of the fallback poll that keeps the change
            count correct while nothing else triggers a refresh.
        log_depth: Maximum number of commits fetched per cycle.
        watch_files: Watch the working tree while the live view runs and
            raise a debounced trigger for every write.

    Raises:
        ValueError: If any delay is not positive, settle_seconds is not
            shorter than debounce_seconds, or log_depth is not positive.
    """

    debounce_seconds: float = 2.0
    settle_seconds: float = 0.3
    poll_seconds: float = 60.0
    log_depth: int = 20
    watch_files: bool = True

    def __post_init__(self) -> None:
        """Validate refresh config after initialization."""
        if self.debounce_seconds <= 0:
            raise ValueError(
                f"debounce_seconds must be positive, got {self.debounce_seconds}"
            )
        if self.settle_seconds < 0:
            raise ValueError(
                f"settle_seconds cannot be negative, got {self.settle_seconds}"
            )
        if self.settle_seconds >= self.debounce_seconds:
            raise ValueError(
                f"settle_seconds ({self.settle_seconds}) must be less than "
                f"debounce_seconds ({self.debounce_seconds})"
            )
        if self.poll_seconds <= 0:
            raise ValueError(f"poll_seconds must be positive, got {self.poll_seconds}")
        if self.log_depth <= 0:
            raise ValueError(f"log_depth must be positive, got {self.log_depth}")


@dataclass(frozen=True)
class TabsConfig:
    """Configuration for open buffer reconciliation.

    Attributes:
        close_grace_seconds: Delay before closing a buffer whose file was
            deleted, so an in-flight UI transition can settle first.
    """

    close_grace_seconds: float = 0.1

    def __post_init__(self) -> None:
        """Validate tabs config after initialization."""
        if self.close_grace_seconds < 0:
            raise ValueError(
                f"close_grace_seconds cannot be negative, got {self.close_grace_seconds}"
            )


@dataclass(frozen=True)
class GitConfig:
    """Configuration for the git command engine.

    Attributes:
        binary: Git executable name or path.
        all_branches: List remote-tracking branches as well as local ones.
        untracked_files: "normal" lists untracked directories as a single
            entry (which the status parser excludes); "all" lists every
            untracked file individually.
        timeout_seconds: Maximum runtime of a single git command.
    """

    binary: str = "git"
    all_branches: bool = True
    untracked_files: Literal["normal", "all"] = "normal"
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        """Validate git config after initialization."""
        if not self.binary:
            raise ValueError("binary cannot be empty")
        if self.untracked_files not in ("normal", "all"):
            raise ValueError(
                f"untracked_files must be 'normal' or 'all', got {self.untracked_files!r}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )


@dataclass(frozen=True)
class GitviewConfig:
    """Complete gitview configuration.

    Attributes:
        refresh: Refresh scheduling configuration
        tabs: Buffer reconciliation configuration
        git: Git engine configuration
    """

    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    tabs: TabsConfig = field(default_factory=TabsConfig)
    git: GitConfig = field(default_factory=GitConfig)

    @staticmethod
    def default() -> "GitviewConfig":
        """Create a config with all default values."""
        return GitviewConfig(
            refresh=RefreshConfig(),
            tabs=TabsConfig(),
            git=GitConfig(),
        )

    @staticmethod
    def from_partial(base: "GitviewConfig", data: dict[str, Any]) -> "GitviewConfig":
        """Overlay raw TOML data on top of an existing config.

        Only the keys present in data are replaced; everything else keeps the
        value from base. Each section is re-validated as it is rebuilt.

        Args:
            base: Config providing the values not overridden.
            data: Parsed TOML mapping of section name to key/value table.

        Returns:
            New GitviewConfig with the overrides applied.

        Raises:
            ValueError: If a section is not a table, a key is unknown, or a
                value fails validation.
        """
        sections: dict[str, Any] = {}
        for section_field in fields(base):
            name = section_field.name
            current = getattr(base, name)
            overrides = data.get(name)
            if overrides is None:
                sections[name] = current
                continue
            if not isinstance(overrides, dict):
                raise ValueError(f"[{name}] must be a table, got {type(overrides).__name__}")

            known = {f.name for f in fields(current)}
            unknown = sorted(set(overrides) - known)
            if unknown:
                raise ValueError(f"Unknown key(s) in [{name}]: {', '.join(unknown)}")
            try:
                sections[name] = replace(current, **overrides)
            except TypeError as e:
                raise ValueError(f"Invalid value in [{name}]: {e}") from e

        return GitviewConfig(**sections)
