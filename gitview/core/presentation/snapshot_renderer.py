"""Human-readable rendering of snapshots for CLI output."""

import click

from gitview.core.presentation.colors import GitviewColors
from gitview.domain.entities import Branch, Commit, GitStatus


def format_tracking(status: GitStatus) -> str:
    """Describe the branch's position relative to its upstream.

    Returns:
        E.g. "ahead 2, behind 1", or an empty string when in sync.
    """
    parts = []
    if status.ahead:
        parts.append(f"ahead {status.ahead}")
    if status.behind:
        parts.append(f"behind {status.behind}")
    return ", ".join(parts)


def format_status_lines(status: GitStatus) -> list[str]:
    """Render a status as indented sections, one path per line."""
    header = f"On {GitviewColors.click_branch(status.branch)}"
    tracking = format_tracking(status)
    if tracking:
        header += f" ({tracking})"
    lines = [header]

    if not status.has_changes:
        lines.append("Nothing to commit, working tree clean")
        return lines

    sections = [
        ("Staged", status.staged, GitviewColors.STAGED_FG),
        ("Unstaged", status.unstaged, GitviewColors.UNSTAGED_FG),
        ("Untracked", status.untracked, GitviewColors.UNTRACKED_FG),
    ]
    for title, paths, color in sections:
        if not paths:
            continue
        lines.append("")
        lines.append(f"{title} ({len(paths)}):")
        for path in paths:
            lines.append("  " + click.style(path, fg=color))
    return lines


def format_commit_line(commit: Commit) -> str:
    """One-line commit summary: short hash, subject, author and date."""
    merge = " [merge]" if commit.is_merge else ""
    date = commit.timestamp.strftime("%Y-%m-%d %H:%M")
    return (
        f"{GitviewColors.click_hash(commit.short_hash)} {commit.message}{merge} "
        f"{GitviewColors.click_dim(f'({commit.author}, {date})')}"
    )


def format_branch_line(branch: Branch) -> str:
    if branch.is_current:
        return "* " + click.style(branch.name, fg=GitviewColors.SUCCESS_FG, bold=True)
    if branch.is_remote:
        return "  " + click.style(branch.name, fg=GitviewColors.REMOTE_FG)
    return f"  {branch.name}"


def format_change_count(count: int) -> str:
    noun = "change" if count == 1 else "changes"
    return f"{count} pending {noun}"
