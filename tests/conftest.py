"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from tests.helpers.clock import ManualClock
from tests.helpers.fakes import FakeEngine, FakeStorage
from tests.helpers.git_repos import create_git_repo


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch):
    """Point the global config at an empty directory.

    Keeps the user's ~/.config/gitview/config.toml out of every test.
    """
    config_home = tmp_path_factory.mktemp("xdg_config")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home / "gitview" / "config.toml"


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a standard git repository with two committed files.

    Returns:
        Path to the git repository root.
    """
    return create_git_repo(
        tmp_path / "test_repo",
        files={
            "README.md": "# Test repo\n",
            "src/app.py": "print('hello')\n",
        },
    )


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()
