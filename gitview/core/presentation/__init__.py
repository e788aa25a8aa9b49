"""Presentation helpers shared by the CLI and the watch UI."""

from gitview.core.presentation.colors import GitviewColors
from gitview.core.presentation.json_formatter import format_json, snapshot_to_dict
from gitview.core.presentation.snapshot_renderer import (
    format_branch_line,
    format_change_count,
    format_commit_line,
    format_status_lines,
)

__all__ = [
    "GitviewColors",
    "format_branch_line",
    "format_change_count",
    "format_commit_line",
    "format_json",
    "format_status_lines",
    "snapshot_to_dict",
]
