"""JSON serialization of repository snapshots for --json output."""

import json
from typing import Any

from gitview.domain.entities import Branch, Commit, GitStatus, RepositorySnapshot


def status_to_dict(status: GitStatus) -> dict[str, Any]:
    return {
        "branch": status.branch,
        "ahead": status.ahead,
        "behind": status.behind,
        "staged": list(status.staged),
        "unstaged": list(status.unstaged),
        "untracked": list(status.untracked),
        "total_changes": status.total_changes,
    }


def commit_to_dict(commit: Commit) -> dict[str, Any]:
    return {
        "hash": commit.hash,
        "short_hash": commit.short_hash,
        "message": commit.message,
        "author": commit.author,
        "date": commit.date,
        "timestamp": commit.timestamp.isoformat(),
        "is_merge": commit.is_merge,
    }


def branch_to_dict(branch: Branch) -> dict[str, Any]:
    return {
        "name": branch.name,
        "is_current": branch.is_current,
        "is_remote": branch.is_remote,
    }


def snapshot_to_dict(snapshot: RepositorySnapshot) -> dict[str, Any]:
    """Serialize a whole snapshot.

    Returns:
        Dictionary with status, commits and branches.
    """
    return {
        "current_branch": snapshot.current_branch,
        "status": status_to_dict(snapshot.status),
        "commits": [commit_to_dict(c) for c in snapshot.commits],
        "branches": [branch_to_dict(b) for b in snapshot.branches],
    }


def format_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)
