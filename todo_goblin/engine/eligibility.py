"""Branch naming and the eligibility filter.

A task is claimed when an open review record or an active workspace sits on
the branch derived from it. Both checks compare branch names, so derivation
must be pure and deterministic.
"""

import re
from collections.abc import Iterable

from todo_goblin.models.domain import ReviewRecord, Task, WorktreeInfo

BRANCH_PREFIX = "tgbl/"
SLUG_WIDTH = 30
ID_PREFIX_WIDTH = 8


def slugify(text: str) -> str:
    """Lowercase, drop everything but ``[a-z0-9]`` and whitespace, hyphenate."""
    cleaned = re.sub(r"[^a-z0-9\s]", "", text.lower()).strip()
    return re.sub(r"\s+", "-", cleaned)


def branch_name(task: Task) -> str:
    """Derive the branch for ``task``.

    ``tgbl/<first 30 chars of the title slug>-<first 8 chars of the id>``,
    always under 50 characters.

    A task titled "Fix authentication bug in login module" with id
    "task-123456789" gets "tgbl/fix-authentication-bug-in-logi-task-123".
    """
    slug = slugify(task.title)[:SLUG_WIDTH].strip("-") or "task"
    id_part = re.sub(r"[^a-z0-9-]", "", task.id.lower())[:ID_PREFIX_WIDTH]
    return f"{BRANCH_PREFIX}{slug}-{id_part}"


def eligible(
    tasks: Iterable[Task],
    open_records: Iterable[ReviewRecord],
    active_workspaces: Iterable[WorktreeInfo],
) -> list[Task]:
    """Tasks whose derived branch has neither an open record nor a workspace.

    Catalog order is preserved.
    """
    claimed = {record.branch for record in open_records}
    claimed.update(worktree.branch for worktree in active_workspaces)
    return [task for task in tasks if branch_name(task) not in claimed]
