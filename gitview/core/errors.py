"""CLI error handling with actionable hints.

Provides consistent error formatting and common error factory functions
for all gitview CLI commands.
"""

from typing import NoReturn

import click


class GitviewCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise GitviewCliError(
            "Not a git repository: /tmp",
            hint="Run gitview inside a git working tree or pass --repo"
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present.

        Returns:
            Formatted error message, with hint on a new line if provided.
        """
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def repository_unavailable_error(reason: str | None) -> NoReturn:
    """Raise error when a refresh could not produce a snapshot.

    Args:
        reason: Error text of the failed refresh, if any.

    Raises:
        GitviewCliError: Always.
    """
    raise GitviewCliError(
        reason or "Repository state is unavailable",
        hint="Run with --verbose to see the failing git command",
    )


def operation_failed_error(operation: str, error: str | None) -> NoReturn:
    """Raise error when a repository operation was rejected.

    Args:
        operation: What was attempted, e.g. "stage".
        error: Error message from the operation result.

    Raises:
        GitviewCliError: Always.
    """
    raise GitviewCliError(
        f"Could not {operation}: {error or 'unknown error'}",
        hint="Run 'gitview status' to check the current state",
    )


def nothing_to_do_error(command: str) -> NoReturn:
    """Raise error when a command was given no paths to act on.

    Raises:
        GitviewCliError: Always.
    """
    raise GitviewCliError(
        f"Nothing to {command}",
        hint=f"Pass one or more paths, e.g. 'gitview {command} README.md'",
    )
