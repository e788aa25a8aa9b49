"""Configuration provider port.

Defines the interface for loading and accessing application configuration.
"""

from pathlib import Path
from typing import Protocol

from gitview.domain.config import GitviewConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, repo_root: Path) -> GitviewConfig:
        """Load configuration for a repository.

        Args:
            repo_root: Repository root that may contain .gitview/config.toml

        Returns:
            GitviewConfig instance with loaded or default values

        Note:
            Implementations should gracefully fall back to defaults
            if config file is missing or invalid.
        """
        ...

    def load_global(self) -> GitviewConfig:
        """Load configuration that does not depend on a repository.

        Returns:
            GitviewConfig with global values or defaults
        """
        ...
