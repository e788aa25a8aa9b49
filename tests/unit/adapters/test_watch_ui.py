"""Unit tests for the live watch UI.

Tests for:
- Rendering of snapshots, errors and commits
- Background operations and file previews
- Logging suppression while the UI runs
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from prompt_toolkit.application import create_app_session
from prompt_toolkit.input import DummyInput
from prompt_toolkit.output import DummyOutput

from gitview.adapters.clock.loop_clock import LoopClock
from gitview.adapters.editor.buffers import BufferRegistry
from gitview.adapters.factory import GitviewSession
from gitview.adapters.tui.watch_ui import WatchUI
from gitview.core.operations.repo_operations import RepositoryOperations
from gitview.core.refresh.coordinator import RefreshCoordinator
from gitview.core.tabs.reconciler import TabContentReconciler
from gitview.domain.config import GitviewConfig, RefreshConfig
from gitview.domain.entities import (
    Commit,
    GitStatus,
    OperationResult,
    RepositorySnapshot,
    Unavailable,
)
from tests.helpers.clock import ManualClock
from tests.helpers.fakes import FakeEngine, FakeStorage


def text_of(fragments: list[tuple[str, str]]) -> str:
    return "".join(text for _, text in fragments)


@pytest.fixture(autouse=True)
def dummy_terminal():
    """Run every UI against a dummy terminal."""
    with create_app_session(input=DummyInput(), output=DummyOutput()):
        yield


def make_session(
    clock, repo_root: Path = Path("/work/repo"), watch_files: bool = False
) -> GitviewSession:
    engine = FakeEngine()
    storage = FakeStorage({"a.txt": "line one\nline two\n"})
    buffers = BufferRegistry()
    coordinator = RefreshCoordinator(engine, storage, clock)
    reconciler = TabContentReconciler(buffers, storage, clock)
    return GitviewSession(
        repo_root=repo_root,
        config=GitviewConfig(refresh=RefreshConfig(watch_files=watch_files)),
        engine=engine,
        storage=storage,
        buffers=buffers,
        coordinator=coordinator,
        reconciler=reconciler,
        operations=RepositoryOperations(engine, coordinator.notify_operation_completed),
    )


@pytest.fixture
def session() -> GitviewSession:
    return make_session(ManualClock())


@pytest.fixture
def ui(session: GitviewSession) -> WatchUI:
    return WatchUI(session, poll=False)


def publish_status(session: GitviewSession, **status_fields) -> RepositorySnapshot:
    commit = Commit.from_fields(
        hash="abcdef1234",
        message="Fix bug",
        author="Alice",
        date="2024-01-01T00:00:00Z",
        timestamp=datetime(2024, 1, 1, tzinfo=UTC),
    )
    snapshot = RepositorySnapshot.assemble(GitStatus(**status_fields), (commit,), ())
    session.coordinator.cell.publish(snapshot)
    return snapshot


class TestRendering:
    """Tests for the text shown in each pane."""

    def test_loading_before_first_snapshot(self, ui: WatchUI) -> None:
        assert "Loading" in text_of(ui._get_files_text())
        assert "/work/repo" in text_of(ui._get_header_text())

    def test_snapshot_lists_files_by_section(self, ui: WatchUI, session) -> None:
        publish_status(session, staged=("s.txt",), unstaged=("a.txt",), branch="dev", ahead=1)

        files = text_of(ui._get_files_text())
        header = text_of(ui._get_header_text())

        assert "Staged" in files and "s.txt" in files
        assert "Unstaged" in files and "a.txt" in files
        assert "dev" in header
        assert "ahead 1" in header
        assert "2 pending changes" in header

    def test_selected_row_is_highlighted(self, ui: WatchUI, session) -> None:
        publish_status(session, unstaged=("a.txt", "b.txt"))

        ui.state.select_next()

        selected = [text for style, text in ui._get_files_text() if "selected" in style]
        assert selected == ["   b.txt\n"]

    def test_clean_tree(self, ui: WatchUI, session) -> None:
        publish_status(session)

        assert "working tree clean" in text_of(ui._get_files_text())

    def test_error_shown_with_retry_hint(self, ui: WatchUI, session) -> None:
        session.coordinator.cell.publish(Unavailable("git status failed"))

        files = text_of(ui._get_files_text())

        assert "git status failed" in files
        assert "Press r to retry" in files

    def test_commits_pane(self, ui: WatchUI, session) -> None:
        publish_status(session)

        commits = text_of(ui._get_commits_text())

        assert "abcdef1" in commits
        assert "Fix bug" in commits

    def test_status_line_shows_phase_and_message(self, ui: WatchUI) -> None:
        ui.state.set_message("Error: nope")

        status = ui._get_status_text()

        assert text_of(status).startswith(" idle")
        assert ("class:error", "Error: nope") in status


class TestActions:
    """Tests for background operations and previews."""

    @pytest.mark.asyncio
    async def test_successful_operation_sets_message(self, ui: WatchUI) -> None:
        async def operation() -> OperationResult:
            return OperationResult.create_success()

        await ui._run_operation("Staged a.txt", operation)

        assert ui.state.message == "Staged a.txt"

    @pytest.mark.asyncio
    async def test_failed_operation_sets_error(self, ui: WatchUI) -> None:
        async def operation() -> OperationResult:
            return OperationResult.create_error("pathspec did not match")

        await ui._run_operation("Staged a.txt", operation)

        assert ui.state.message == "Error: pathspec did not match"

    @pytest.mark.asyncio
    async def test_preview_opens_and_closes_buffer(self, ui: WatchUI, session) -> None:
        publish_status(session, unstaged=("a.txt",))

        await ui._toggle_preview()

        assert ui.state.preview_path == "a.txt"
        assert "line two" in text_of(ui._get_preview_text())
        assert "a.txt" in session.buffers

        await ui._toggle_preview()

        assert ui.state.preview_path is None
        assert "a.txt" not in session.buffers

    @pytest.mark.asyncio
    async def test_preview_of_missing_file(self, ui: WatchUI, session) -> None:
        publish_status(session, untracked=("gone.txt",))

        await ui._toggle_preview()

        assert ui.state.preview_path is None
        assert ui.state.message == "gone.txt is not a file"

    @pytest.mark.asyncio
    async def test_preview_ends_when_buffer_closed(self, ui: WatchUI, session) -> None:
        publish_status(session, unstaged=("a.txt",))
        await ui._toggle_preview()

        session.buffers.close_tab("a.txt")
        publish_status(session)

        assert ui.state.preview_path is None


class TestLoggingSuppression:
    """Tests for logging suppression during the full-screen UI."""

    def test_logging_disabled_during_run_and_restored(self) -> None:
        ui = WatchUI(make_session(LoopClock()), poll=False)
        seen: list[int] = []

        async def fake_run_async() -> None:
            seen.append(logging.root.manager.disable)

        with patch.object(ui.app, "run_async", AsyncMock(side_effect=fake_run_async)):
            ui.run()

        assert seen == [logging.CRITICAL]
        assert logging.root.manager.disable == logging.NOTSET

    def test_logging_restored_after_error(self) -> None:
        ui = WatchUI(make_session(LoopClock()), poll=False)
        with patch.object(ui.app, "run_async", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(RuntimeError):
                ui.run()

        assert logging.root.manager.disable == logging.NOTSET


class TestWorkingTreeWatching:
    """Tests for the file watcher lifetime during the live view."""

    def test_watcher_runs_only_while_view_is_open(self, tmp_path: Path) -> None:
        session = make_session(LoopClock(), repo_root=tmp_path, watch_files=True)
        ui = WatchUI(session, poll=False)
        seen: list[bool] = []

        async def fake_run_async() -> None:
            seen.append(session.watcher is not None and session.watcher.running)

        with patch.object(ui.app, "run_async", AsyncMock(side_effect=fake_run_async)):
            ui.run()

        assert seen == [True]
        assert session.watcher is None

    def test_watching_disabled_by_config(self, tmp_path: Path) -> None:
        session = make_session(LoopClock(), repo_root=tmp_path, watch_files=False)
        ui = WatchUI(session, poll=False)
        seen: list[object] = []

        async def fake_run_async() -> None:
            seen.append(session.watcher)

        with patch.object(ui.app, "run_async", AsyncMock(side_effect=fake_run_async)):
            ui.run()

        assert seen == [None]
