"""Centralized color definitions for all gitview output.

Provides consistent color scheme across CLI commands and the watch UI.
Supports both click-style colors and prompt_toolkit styles.
"""

from typing import Literal

import click

# Type aliases for color values
ClickColor = Literal["black", "red", "green", "yellow", "blue", "magenta", "cyan", "white"]


class GitviewColors:
    """Centralized color palette for consistent output across gitview."""

    # === Repository State Colors ===
    BRANCH_FG: ClickColor = "cyan"
    STAGED_FG: ClickColor = "green"
    UNSTAGED_FG: ClickColor = "red"
    UNTRACKED_FG: ClickColor = "yellow"
    HASH_FG: ClickColor = "yellow"
    AUTHOR_FG: ClickColor = "blue"
    REMOTE_FG: ClickColor = "red"

    # === Status Message Colors ===
    SUCCESS_FG: ClickColor = "green"
    WARNING_FG: ClickColor = "yellow"
    ERROR_FG: ClickColor = "red"

    @staticmethod
    def get_prompt_toolkit_style() -> dict[str, str]:
        """Get style dictionary for prompt_toolkit Style.from_dict().

        Uses ANSI color names so colors adapt to the terminal theme.
        """
        return {
            "separator": "fg:ansibrightblack",
            "dimmed": "fg:ansibrightblack",
            "branch": "fg:ansicyan bold",
            "staged": "fg:ansigreen",
            "unstaged": "fg:ansired",
            "untracked": "fg:ansiyellow",
            "hash": "fg:ansiyellow",
            "heading": "bold",
            "selected": "reverse",
            "status": "bold",
            "error": "fg:ansired",
        }

    @staticmethod
    def click_branch(text: str) -> str:
        return click.style(text, fg=GitviewColors.BRANCH_FG, bold=True)

    @staticmethod
    def click_hash(text: str) -> str:
        return click.style(text, fg=GitviewColors.HASH_FG)

    @staticmethod
    def click_dim(text: str) -> str:
        return click.style(text, dim=True)
