"""Unit tests for TomlConfigProvider adapter."""

from pathlib import Path
from unittest.mock import patch

import pytest

from gitview.adapters.config.toml_config_provider import TomlConfigProvider
from gitview.domain.config import GitviewConfig


@pytest.fixture
def provider() -> TomlConfigProvider:
    """Create a TomlConfigProvider instance."""
    return TomlConfigProvider()


@pytest.fixture
def global_config(tmp_path: Path):
    """Patch the global config path to a file under tmp_path."""
    path = tmp_path / "global" / "config.toml"
    with patch(
        "gitview.adapters.config.toml_config_provider.get_global_config_path",
        return_value=path,
    ):
        yield path


def write_local(repo_root: Path, text: str) -> Path:
    path = repo_root / ".gitview" / "config.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def write_global(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


class TestLoad:
    """Tests for the config cascade."""

    def test_no_config_files_gives_defaults(
        self, provider: TomlConfigProvider, tmp_path: Path, global_config: Path
    ) -> None:
        assert provider.load(tmp_path) == GitviewConfig.default()

    def test_local_config(
        self, provider: TomlConfigProvider, tmp_path: Path, global_config: Path
    ) -> None:
        write_local(tmp_path, "[refresh]\ndebounce_seconds = 5.0\n")

        config = provider.load(tmp_path)

        assert config.refresh.debounce_seconds == 5.0

    def test_local_overrides_global_per_key(
        self, provider: TomlConfigProvider, tmp_path: Path, global_config: Path
    ) -> None:
        """Test that local keys win and untouched global keys survive."""
        write_global(global_config, "[refresh]\nlog_depth = 50\npoll_seconds = 30.0\n")
        write_local(tmp_path, "[refresh]\nlog_depth = 10\n")

        config = provider.load(tmp_path)

        assert config.refresh.log_depth == 10
        assert config.refresh.poll_seconds == 30.0

    def test_invalid_local_falls_back_to_global(
        self, provider: TomlConfigProvider, tmp_path: Path, global_config: Path, caplog
    ) -> None:
        write_global(global_config, "[git]\nall_branches = false\n")
        write_local(tmp_path, "[git]\nuntracked_files = 'some'\n")

        config = provider.load(tmp_path)

        assert config.git.all_branches is False
        assert config.git.untracked_files == "normal"
        assert "Failed to parse" in caplog.text

    def test_malformed_global_ignored(
        self, provider: TomlConfigProvider, tmp_path: Path, global_config: Path, caplog
    ) -> None:
        write_global(global_config, "not = [valid")

        config = provider.load(tmp_path)

        assert config == GitviewConfig.default()
        assert "Ignoring global config" in caplog.text


class TestLoadGlobal:
    """Tests for loading configuration before a repository is known."""

    def test_global_values(
        self, provider: TomlConfigProvider, tmp_path: Path, global_config: Path
    ) -> None:
        write_global(global_config, '[git]\nbinary = "/opt/git/bin/git"\n')
        write_local(tmp_path, '[git]\nbinary = "ignored"\n')

        config = provider.load_global()

        assert config.git.binary == "/opt/git/bin/git"

    def test_defaults_without_global_file(
        self, provider: TomlConfigProvider, global_config: Path
    ) -> None:
        assert provider.load_global() == GitviewConfig.default()
