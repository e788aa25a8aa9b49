"""Live repository view.

Full-screen prompt_toolkit application that follows the snapshot cell of a
session and drives repository operations from key presses.
"""

import asyncio
import functools
import logging
from typing import Any

from prompt_toolkit import Application
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.layout import ConditionalContainer, Dimension, HSplit, VSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.styles import Style

from gitview.adapters.factory import GitviewSession
from gitview.core.presentation.colors import GitviewColors
from gitview.core.presentation.snapshot_renderer import format_change_count, format_tracking
from gitview.core.watch.watch_session import FileSection, WatchSession
from gitview.domain.entities import OperationResult, SnapshotValue, TriggerKind

_SECTION_STYLES = {
    FileSection.STAGED: "class:staged",
    FileSection.UNSTAGED: "class:unstaged",
    FileSection.UNTRACKED: "class:untracked",
}

_SECTION_TITLES = {
    FileSection.STAGED: "Staged",
    FileSection.UNSTAGED: "Unstaged",
    FileSection.UNTRACKED: "Untracked",
}


class WatchUI:
    """Live repository view using prompt_toolkit.

    Args:
        session: Session whose coordinator and operations the view drives.
        poll: Run the fallback poll while the view is open.
    """

    def __init__(self, session: GitviewSession, poll: bool = True) -> None:
        self.session = session
        self.poll = poll
        self.state = WatchSession()
        self.operation_task: asyncio.Task | None = None
        self._unsubscribe = session.coordinator.cell.subscribe(self._on_publication)
        self._build_ui()

    def _build_ui(self) -> None:
        """Build the prompt_toolkit UI layout."""
        kb = self._create_key_bindings()

        header_window = Window(
            content=FormattedTextControl(self._get_header_text, focusable=False),
            height=Dimension.exact(1),
        )
        files_window = Window(
            content=FormattedTextControl(self._get_files_text, focusable=False),
            wrap_lines=False,
        )
        commits_window = Window(
            content=FormattedTextControl(self._get_commits_text, focusable=False),
            wrap_lines=False,
        )
        preview_window = Window(
            content=FormattedTextControl(self._get_preview_text, focusable=False),
            wrap_lines=True,
        )
        status_window = Window(
            content=FormattedTextControl(self._get_status_text, focusable=False),
            height=Dimension.exact(1),
        )

        @Condition
        def preview_visible() -> bool:
            return self.state.preview_path is not None

        main_container = HSplit([
            header_window,
            Window(height=Dimension.exact(1), char="─", style="class:separator"),
            VSplit([
                files_window,
                Window(width=Dimension.exact(1), char="│", style="class:separator"),
                commits_window,
            ]),
            ConditionalContainer(
                Window(height=Dimension.exact(1), char="─", style="class:separator"),
                filter=preview_visible,
            ),
            ConditionalContainer(preview_window, filter=preview_visible),
            Window(height=Dimension.exact(1), char="─", style="class:separator"),
            status_window,
        ])

        style = Style.from_dict(GitviewColors.get_prompt_toolkit_style())

        self.app: Application[Any] = Application(
            layout=Layout(main_container),
            key_bindings=kb,
            style=style,
            full_screen=True,
            mouse_support=False,
        )

    def _create_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("c-n")
        @kb.add("down")
        @kb.add("j")
        def next_file(event: KeyPressEvent) -> None:
            self.state.select_next()
            self.app.invalidate()

        @kb.add("c-p")
        @kb.add("up")
        @kb.add("k")
        def previous_file(event: KeyPressEvent) -> None:
            self.state.select_previous()
            self.app.invalidate()

        @kb.add("enter")
        def toggle_preview(event: KeyPressEvent) -> None:
            self._start(self._toggle_preview())

        @kb.add("s")
        def stage_selected(event: KeyPressEvent) -> None:
            entry = self.state.get_selected_entry()
            if entry is not None and entry.section is not FileSection.STAGED:
                stage = functools.partial(self.session.operations.stage, entry.path)
                self._start(self._run_operation(f"Staged {entry.path}", stage))

        @kb.add("u")
        def unstage_selected(event: KeyPressEvent) -> None:
            entry = self.state.get_selected_entry()
            if entry is not None and entry.section is FileSection.STAGED:
                unstage = functools.partial(self.session.operations.unstage, entry.path)
                self._start(self._run_operation(f"Unstaged {entry.path}", unstage))

        @kb.add("r")
        def refresh(event: KeyPressEvent) -> None:
            self.state.set_message("Refreshing...")
            self.session.coordinator.request_refresh(TriggerKind.IMMEDIATE)
            self.app.invalidate()

        @kb.add("escape")
        def close_preview(event: KeyPressEvent) -> None:
            if self.state.preview_path is not None:
                self.session.buffers.close_tab(self.state.preview_path)
                self.state.preview_path = None
                self.app.invalidate()

        @kb.add("q")
        @kb.add("c-c")
        def exit_app(event: KeyPressEvent) -> None:
            event.app.exit()

        return kb

    def _start(self, coro) -> None:
        """Run an action in the background, one at a time."""
        if self.operation_task is not None and not self.operation_task.done():
            coro.close()
            self.state.set_message("Busy, try again in a moment")
            self.app.invalidate()
            return
        self.operation_task = asyncio.get_running_loop().create_task(coro)

    async def _run_operation(self, description: str, operation) -> None:
        result: OperationResult = await operation()
        if result.success:
            self.state.set_message(description)
        else:
            self.state.set_message(f"Error: {result.error}")
        self.app.invalidate()

    async def _toggle_preview(self) -> None:
        entry = self.state.get_selected_entry()
        buffers = self.session.buffers

        if self.state.preview_path is not None:
            buffers.close_tab(self.state.preview_path)
            showing = self.state.preview_path
            self.state.preview_path = None
            if entry is None or entry.path == showing:
                self.app.invalidate()
                return
        if entry is None:
            return

        try:
            content = await self.session.storage.read_text(entry.path)
        except OSError as e:
            self.state.set_message(f"Error: cannot read {entry.path}: {e}")
            self.app.invalidate()
            return
        if content is None:
            self.state.set_message(f"{entry.path} is not a file")
        else:
            buffers.open(entry.path, content)
            self.state.preview_path = entry.path
        self.app.invalidate()

    def _on_publication(self, value: SnapshotValue) -> None:
        self.state.apply(value)
        # Buffers closed by the reconciler (file deleted) end the preview
        preview = self.state.preview_path
        if preview is not None and preview not in self.session.buffers:
            self.state.preview_path = None
        self.app.invalidate()

    def _on_change_count(self, count: int) -> None:
        self.app.invalidate()

    def _get_header_text(self) -> list[tuple[str, str]]:
        snapshot = self.state.snapshot
        if snapshot is None:
            return [("class:dimmed", f" {self.session.repo_root}")]

        parts: list[tuple[str, str]] = [
            ("class:branch", f" {snapshot.current_branch}"),
        ]
        tracking = format_tracking(snapshot.status)
        if tracking:
            parts.append(("", f" ({tracking})"))
        parts.append(("class:dimmed", " │ "))
        count = self.session.coordinator.change_count.count
        parts.append(("class:status", format_change_count(count)))
        parts.append(("class:dimmed", f" │ {self.session.repo_root}"))
        return parts

    def _get_files_text(self) -> list[tuple[str, str]]:
        if self.state.error_message:
            return [
                ("class:error", f" {self.state.error_message}\n"),
                ("class:dimmed", " Press r to retry\n"),
            ]
        if self.state.snapshot is None:
            return [("class:dimmed", " Loading...")]
        if not self.state.entries:
            return [("", " Nothing to commit, working tree clean")]

        lines: list[tuple[str, str]] = []
        current_section: FileSection | None = None
        for idx, entry in enumerate(self.state.entries):
            if entry.section is not current_section:
                current_section = entry.section
                lines.append(("class:heading", f" {_SECTION_TITLES[entry.section]}\n"))
            style = _SECTION_STYLES[entry.section]
            if idx == self.state.selected_index:
                style += " class:selected"
            lines.append((style, f"   {entry.path}\n"))
        return lines

    def _get_commits_text(self) -> list[tuple[str, str]]:
        snapshot = self.state.snapshot
        if snapshot is None:
            return []
        if not snapshot.commits:
            return [("class:dimmed", " No commits yet")]

        lines: list[tuple[str, str]] = [("class:heading", " Recent commits\n")]
        for commit in snapshot.commits:
            lines.append(("class:hash", f" {commit.short_hash}"))
            lines.append(("", f" {commit.message}"))
            lines.append(("class:dimmed", f" {commit.author}\n"))
        return lines

    def _get_preview_text(self) -> list[tuple[str, str]]:
        path = self.state.preview_path
        tab = self.session.buffers.get(path) if path else None
        if tab is None:
            return [("", "")]
        lines: list[tuple[str, str]] = []
        for i, line in enumerate(tab.content.splitlines(), start=1):
            lines.append(("class:dimmed", f"{i:5} │ "))
            lines.append(("", f"{line}\n"))
        return lines

    def _get_status_text(self) -> list[tuple[str, str]]:
        parts: list[tuple[str, str]] = [
            ("class:status", f" {self.session.coordinator.phase.value}"),
        ]
        if self.state.message:
            style = "class:error" if self.state.message.startswith("Error") else ""
            parts.append(("class:dimmed", " │ "))
            parts.append((style, self.state.message))
        parts.append(("class:dimmed", " │ "))
        parts.append(("class:dimmed", "↑↓:select enter:preview s:stage u:unstage r:refresh q:quit"))
        return parts

    async def run_async(self) -> None:
        """Run the live view until the user quits."""
        coordinator = self.session.coordinator
        remove_count_callback = coordinator.change_count.add_callback(self._on_change_count)
        try:
            if self.poll:
                coordinator.start_polling()
            if self.session.config.refresh.watch_files:
                self.session.start_watching()
            coordinator.request_refresh(TriggerKind.IMMEDIATE)
            await self.app.run_async()
        finally:
            remove_count_callback()
            self._unsubscribe()
            if self.operation_task is not None:
                await asyncio.wait([self.operation_task])
            await self.session.aclose()

    def run(self) -> None:
        """Run the live view.

        Suppresses all logging output while the full-screen UI is active,
        then restores the original logging state after exit.
        """
        logging.disable(logging.CRITICAL)
        try:
            asyncio.run(self.run_async())
        finally:
            logging.disable(logging.NOTSET)
