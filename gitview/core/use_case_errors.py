"""Error formatting and logging shared by the refresh cycle and operations.

Refresh cycles and repository operations never let engine failures escape
to the presentation layer as exceptions. They catch them, log them here,
and surface a formatted message instead (an Unavailable marker or an
error OperationResult).

Design principles:
1. KeyboardInterrupt and SystemExit are always re-raised (never caught)
2. GitviewError subclasses carry user-friendly messages
3. Unexpected exceptions are logged with traceback and reported generically
"""

import logging

from gitview.domain.exceptions import GitviewError

logger = logging.getLogger(__name__)


def format_error_message(exception: Exception, operation_name: str) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for error messages (e.g., "refresh").

    Returns:
        User-friendly error message string.

    Example:
        try:
            await self._engine.status()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            message = format_error_message(e, "refresh")
    """
    if isinstance(exception, GitviewError):
        return exception.message
    elif isinstance(exception, OSError):
        return (
            f"I/O error: {exception}. "
            "Check file permissions and that git is installed."
        )
    elif isinstance(exception, (ValueError, RuntimeError)):
        return f"{operation_name.capitalize()} error: {exception}"
    else:
        return f"Internal error during {operation_name}. Check logs for details."


def log_use_case_error(exception: Exception, operation_name: str) -> None:
    """Log an exception with severity matching its type.

    - GitviewError: ERROR level (expected engine/domain failures)
    - OSError/ValueError/RuntimeError: ERROR level
    - Other exceptions: EXCEPTION level (includes traceback)

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for log messages.
    """
    if isinstance(exception, GitviewError):
        logger.error("%s failed: %s", operation_name.capitalize(), exception.message)
    elif isinstance(exception, OSError):
        logger.error("I/O error during %s: %s", operation_name, exception)
    elif isinstance(exception, (ValueError, RuntimeError)):
        logger.error("Error during %s: %s", operation_name, exception)
    else:
        logger.exception("Unexpected error during %s", operation_name)
