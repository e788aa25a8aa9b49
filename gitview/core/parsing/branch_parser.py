"""Parser for the engine's branch listing."""

from gitview.domain.entities import Branch

CURRENT_BRANCH_PREFIX = "* "
REMOTE_SEGMENT = "remotes/"


def parse_branches(text: str) -> tuple[Branch, ...]:
    """Parse branch listing text.

    One branch per non-blank line. The current branch is marked with a
    leading ``* ``, which is stripped from the stored name.

    Args:
        text: Raw branch listing.

    Returns:
        Branches in listing order.
    """
    branches: list[Branch] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        is_current = line.startswith(CURRENT_BRANCH_PREFIX)
        name = line[len(CURRENT_BRANCH_PREFIX):] if is_current else line
        name = name.strip()
        branches.append(
            Branch(name=name, is_current=is_current, is_remote=REMOTE_SEGMENT in name)
        )
    return tuple(branches)
