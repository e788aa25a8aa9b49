"""TOML-based configuration provider.

Loads configuration from .gitview/config.toml with global config fallback.

Config loading priority (highest to lowest):
1. Local: <repo>/.gitview/config.toml (repo-specific)
2. Global: ~/.config/gitview/config.toml (user defaults)
3. Built-in defaults
"""

import logging
from pathlib import Path

from gitview.domain.config import GitviewConfig
from gitview.shared.config_io import (
    get_global_config_path,
    get_local_config_path,
    load_config_data,
)

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config (~/.config/gitview/config.toml) if present
    2. Load local config (.gitview/config.toml) if present
    3. Local values override global values (key-level merge per section)
    4. Missing values fall back to built-in defaults

    Gracefully handles missing or invalid configs with warnings.
    """

    def load(self, repo_root: Path) -> GitviewConfig:
        """Load configuration with global fallback.

        Uses domain-level merging via GitviewConfig.from_partial so each
        merge step is validated.

        Args:
            repo_root: Working tree root containing .gitview/

        Returns:
            GitviewConfig instance with merged global/local values or defaults
        """
        local_path = get_local_config_path(repo_root)
        config = self.load_global()

        if local_path.exists():
            try:
                local_data = load_config_data(local_path)
                config = GitviewConfig.from_partial(config, local_data)
                logger.debug("Loaded local config from %s", local_path)
            except (FileNotFoundError, ValueError) as e:
                logger.warning(
                    "Failed to parse %s: %s. Using global/default configuration.",
                    local_path,
                    e,
                )

        return config

    def load_global(self) -> GitviewConfig:
        """Load the global config over built-in defaults.

        Used before a repository is known, for example to pick the git
        binary that locates the working tree.

        Returns:
            GitviewConfig with global values or defaults
        """
        global_path = get_global_config_path()
        config = GitviewConfig.default()

        if global_path.exists():
            try:
                global_data = load_config_data(global_path)
                config = GitviewConfig.from_partial(config, global_data)
                logger.debug("Loaded global config from %s", global_path)
            except (FileNotFoundError, ValueError) as e:
                logger.warning(
                    "Failed to parse global config at %s: %s. Ignoring global config.",
                    global_path,
                    e,
                )

        return config
