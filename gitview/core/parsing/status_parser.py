"""Parser for the engine's long-form status text.

The text is scanned line by line with an explicit current-section value.
Header lines switch the section; file lines are attributed to whichever
section is active. Parsing never fails: unrecognised lines are skipped.

Example input::

    On branch feature/x
    Changes to be committed:
        modified:   a.txt
    Changes not staged for commit:
        modified:   b.txt
    Untracked files:
        c.txt
"""

import logging
import re
from enum import Enum

from gitview.domain.entities import DEFAULT_BRANCH, GitStatus

logger = logging.getLogger(__name__)

BRANCH_HEADER_PREFIX = "On branch "

# Line prefixes that introduce a changed path inside the staged/unstaged sections
CHANGE_PREFIXES = ("modified:", "new file:", "deleted:")

# Untracked-section hint lines mention this command and are not paths
STAGE_COMMAND = "git add"

PATH_SEPARATOR = "/"

_AHEAD_PATTERN = re.compile(r"^Your branch is ahead of '.+' by (\d+) commits?\b")
_BEHIND_PATTERN = re.compile(r"^Your branch is behind '.+' by (\d+) commits?\b")
_DIVERGED_PATTERN = re.compile(r"^and have (\d+) and (\d+) different commits? each\b")


class StatusSection(str, Enum):
    """Section of the status text a line belongs to."""

    NONE = "none"
    STAGED = "staged"
    UNSTAGED = "unstaged"
    UNTRACKED = "untracked"


_SECTION_HEADERS: dict[str, StatusSection] = {
    "Changes to be committed:": StatusSection.STAGED,
    "Changes not staged for commit:": StatusSection.UNSTAGED,
    "Untracked files:": StatusSection.UNTRACKED,
}


def is_header(line: str) -> bool:
    """Check whether a trimmed line is one of the section or branch headers."""
    return line in _SECTION_HEADERS or line.startswith(BRANCH_HEADER_PREFIX)


def next_section(section: StatusSection, line: str) -> StatusSection:
    """Return the section in effect after reading a trimmed line.

    Any header overrides the active section; the branch header closes it.
    Every other line leaves the section unchanged.

    Args:
        section: Section active before the line.
        line: Trimmed line.

    Returns:
        Section active after the line.
    """
    if line in _SECTION_HEADERS:
        return _SECTION_HEADERS[line]
    if line.startswith(BRANCH_HEADER_PREFIX):
        return StatusSection.NONE
    return section


def parse_change_line(line: str) -> str | None:
    """Extract the path from a ``modified:``/``new file:``/``deleted:`` line.

    Args:
        line: Trimmed line.

    Returns:
        Trimmed path after the first colon, or None if the line is not a
        change line or carries no path.
    """
    if not line.startswith(CHANGE_PREFIXES):
        return None
    _, separator, remainder = line.partition(":")
    path = remainder.strip()
    if not separator or not path:
        return None
    return path


def is_untracked_entry(line: str) -> bool:
    """Check whether a trimmed line in the untracked section names a file.

    Hints in parentheses, lines mentioning the stage command and directory
    entries (ending in a path separator) are not files.
    """
    if not line:
        return False
    if line.startswith("("):
        return False
    if STAGE_COMMAND in line:
        return False
    return not line.endswith(PATH_SEPARATOR)


def parse_tracking_line(line: str) -> tuple[int, int] | None:
    """Parse an upstream tracking line into (ahead, behind).

    Args:
        line: Trimmed line.

    Returns:
        Tuple of (ahead, behind), or None if the line is not a tracking line.
    """
    if match := _AHEAD_PATTERN.match(line):
        return int(match.group(1)), 0
    if match := _BEHIND_PATTERN.match(line):
        return 0, int(match.group(1))
    if match := _DIVERGED_PATTERN.match(line):
        return int(match.group(1)), int(match.group(2))
    return None


def parse_status(text: str) -> GitStatus:
    """Parse status text into a GitStatus.

    Args:
        text: Raw multi-line status output.

    Returns:
        GitStatus with paths in source order. Missing sections are empty and
        the branch defaults to DEFAULT_BRANCH.
    """
    staged: list[str] = []
    unstaged: list[str] = []
    untracked: list[str] = []
    branch = DEFAULT_BRANCH
    ahead = behind = 0

    section = StatusSection.NONE
    for raw_line in text.splitlines():
        line = raw_line.strip()

        if is_header(line):
            if line.startswith(BRANCH_HEADER_PREFIX):
                name = line[len(BRANCH_HEADER_PREFIX):].strip()
                if name:
                    branch = name
            section = next_section(section, line)
            continue

        if section is StatusSection.STAGED or section is StatusSection.UNSTAGED:
            path = parse_change_line(line)
            if path is None:
                continue
            if section is StatusSection.STAGED:
                staged.append(path)
            else:
                unstaged.append(path)
        elif section is StatusSection.UNTRACKED:
            if is_untracked_entry(line):
                untracked.append(line)
        else:
            tracking = parse_tracking_line(line)
            if tracking is not None:
                ahead, behind = tracking

    logger.debug(
        "Parsed status on %s: %d staged, %d unstaged, %d untracked",
        branch,
        len(staged),
        len(unstaged),
        len(untracked),
    )
    return GitStatus(
        staged=tuple(staged),
        unstaged=tuple(unstaged),
        untracked=tuple(untracked),
        branch=branch,
        ahead=ahead,
        behind=behind,
    )
