"""Domain exceptions for gitview.

These exceptions represent failures of the version-control engine and
other domain-level errors. They should be caught at the application
boundary (refresh coordinator, CLI) and converted to user-facing messages.
"""


class GitviewError(Exception):
    """Base exception for all gitview errors.

    The message should be user-friendly since it may be displayed directly.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class EngineError(GitviewError):
    """Raised when the version-control engine rejects a command.

    Attributes:
        command: The engine command that failed (e.g. "status").
        returncode: Process exit code, or None if it never ran to completion.
        stderr: Error output from the engine, possibly empty.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str = "",
        returncode: int | None = None,
        stderr: str = "",
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class NotARepositoryError(GitviewError):
    """Raised when the workspace root is not inside a git repository."""

    pass
