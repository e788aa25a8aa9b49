"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of GitviewConfig to/from
TOML format.
"""

import os
import platform
import tomllib  # Built-in Python 3.11+
from dataclasses import asdict
from pathlib import Path
from typing import Any

import tomli_w

from gitview.domain.config import GitviewConfig

# Directory holding the repo-local config, relative to the working tree root
LOCAL_CONFIG_DIR = ".gitview"
CONFIG_FILENAME = "config.toml"


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/gitview/config.toml or ~/.config/gitview/config.toml
    - Windows: %APPDATA%/gitview/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "gitview" / CONFIG_FILENAME
        return Path.home() / ".config" / "gitview" / CONFIG_FILENAME
    else:
        # Unix-like: respect XDG_CONFIG_HOME
        xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
        if xdg_config:
            return Path(xdg_config) / "gitview" / CONFIG_FILENAME
        return Path.home() / ".config" / "gitview" / CONFIG_FILENAME


def get_local_config_path(repo_root: Path) -> Path:
    """Path of the repo-local config file (may not exist)."""
    return repo_root / LOCAL_CONFIG_DIR / CONFIG_FILENAME


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to config.toml file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def load_config(path: Path) -> GitviewConfig:
    """Load configuration from a single TOML file over the defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed or has invalid values
    """
    return GitviewConfig.from_partial(GitviewConfig.default(), load_config_data(path))


def config_to_data(config: GitviewConfig) -> dict[str, Any]:
    """Convert a config to the nested dict written to TOML."""
    return asdict(config)


def dump_config(config: GitviewConfig) -> str:
    """Render a config as TOML text."""
    return tomli_w.dumps(config_to_data(config))


def save_config(config: GitviewConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: GitviewConfig to save
        path: Destination path for config.toml
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)


def create_default_config_file(path: Path) -> None:
    """Create a default config.toml file with sensible defaults and comments.

    Args:
        path: Destination path for config.toml
    """
    # Template string keeps the comments that tomli_w cannot write
    template = """\
# gitview configuration
# Created by: gitview config init

[refresh]
# Quiet period after the last edit or terminal write before refreshing
debounce_seconds = 2.0

# Delay at the start of every refresh so just-written files are visible.
# Must be shorter than debounce_seconds.
settle_seconds = 0.3

# Fallback poll interval used by 'gitview watch'
poll_seconds = 60.0

# Number of commits fetched per refresh
log_depth = 20

# Watch the working tree during 'gitview watch' and refresh after writes
watch_files = true

[tabs]
# Delay before closing the buffer of a file that was deleted
close_grace_seconds = 0.1

[git]
# Git executable
binary = "git"

# Include remote-tracking branches in the branch list
all_branches = true

# "normal" collapses untracked directories (they are not listed);
# "all" lists every untracked file individually
untracked_files = "normal"

# Maximum runtime of a single git command
timeout_seconds = 30.0
"""

    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        f.write(template)
