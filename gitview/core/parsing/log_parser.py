"""Parser for the engine's delimited commit log.

Each line is one candidate record ``hash|message|author|date``. Lines that
do not form a complete, valid record are dropped without producing a
partial commit. The producer replaces literal delimiters inside message
and author with LOG_DELIMITER_PLACEHOLDER; they are restored here.

Source order is not trusted: commits are returned newest first.
"""

import logging
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from gitview.domain.entities import SHORT_HASH_LENGTH, Commit

logger = logging.getLogger(__name__)

LOG_FIELD_DELIMITER = "|"
LOG_DELIMITER_PLACEHOLDER = "｜"  # FULLWIDTH VERTICAL LINE
LOG_FIELD_COUNT = 4


def escape_log_field(value: str) -> str:
    """Replace literal delimiters in a free-text field for transport."""
    return value.replace(LOG_FIELD_DELIMITER, LOG_DELIMITER_PLACEHOLDER)


def restore_log_field(value: str) -> str:
    """Undo escape_log_field."""
    return value.replace(LOG_DELIMITER_PLACEHOLDER, LOG_FIELD_DELIMITER)


def parse_log_date(value: str) -> datetime | None:
    """Parse a log date into a timezone-aware datetime.

    Accepts ISO 8601 (including a trailing ``Z``) and RFC 2822 dates.
    Dates without an offset are taken as UTC.

    Args:
        value: Trimmed date string.

    Returns:
        Parsed datetime, or None if the value is not a valid date.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError, OverflowError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_log_line(line: str) -> Commit | None:
    """Parse a single log record.

    Args:
        line: One line of log text.

    Returns:
        Commit, or None if the line is not a valid record.
    """
    parts = line.split(LOG_FIELD_DELIMITER)
    if len(parts) != LOG_FIELD_COUNT:
        return None

    commit_hash, message, author, date = (part.strip() for part in parts)
    if len(commit_hash) < SHORT_HASH_LENGTH or not message or not author or not date:
        return None

    timestamp = parse_log_date(date)
    if timestamp is None:
        return None

    return Commit.from_fields(
        hash=commit_hash,
        message=restore_log_field(message),
        author=restore_log_field(author),
        date=date,
        timestamp=timestamp,
    )


def parse_log(text: str) -> tuple[Commit, ...]:
    """Parse log text into commits sorted by descending timestamp.

    Args:
        text: Raw log output, one record per line.

    Returns:
        Valid commits, newest first. Commits with equal timestamps keep
        their source order.
    """
    commits: list[Commit] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        commit = parse_log_line(line)
        if commit is None:
            logger.debug("Skipping malformed log line: %r", line)
            continue
        commits.append(commit)

    return tuple(sorted(commits, key=lambda c: c.timestamp, reverse=True))
