"""Org-style status-line scanner.

Only headings of the form ``* TODO title`` (any number of stars, statuses
``TODO``, ``DONE`` and ``IN-PROGRESS``) are recognized. A task's description
is the text between its heading and the next heading of the same or a higher
level. No other org markup is interpreted.
"""

import hashlib
import re
from collections import Counter
from pathlib import Path

import structlog

from todo_goblin.catalog.base import TaskCatalog
from todo_goblin.config.settings import ProjectConfig
from todo_goblin.enums import TaskOrigin, TaskStatus
from todo_goblin.models.domain import Task

log = structlog.get_logger(__name__)

HEADING_PATTERN = re.compile(r"^\*+\s+(TODO|DONE|IN-PROGRESS)\s+(.+)$")
STARS_PATTERN = re.compile(r"^\*+")

_STATUS_KEYWORDS = {
    "TODO": TaskStatus.PENDING,
    "DONE": TaskStatus.DONE,
    "IN-PROGRESS": TaskStatus.IN_PROGRESS,
}


def parse_heading(line: str) -> tuple[TaskStatus, str] | None:
    """Return ``(status, title)`` if ``line`` is a task heading."""
    match = HEADING_PATTERN.match(line.strip())
    if not match:
        return None
    return _STATUS_KEYWORDS[match.group(1)], match.group(2).strip()


def _level(line: str) -> int:
    match = STARS_PATTERN.match(line)
    return len(match.group(0)) if match else 0


def extract_section(lines: list[str], start: int) -> str:
    """Body of the heading at ``lines[start]``, up to the next sibling or parent heading."""
    start_level = _level(lines[start].strip())
    body: list[str] = []
    for line in lines[start + 1 :]:
        level = _level(line)
        if level and level <= start_level:
            break
        body.append(line)
    return "\n".join(body).strip()


def task_id_for(project_name: str, title: str, occurrence: int) -> str:
    """Stable id from the project, the title and how many times it appeared before.

    Moving a heading up or down the file keeps its id.
    """
    digest = hashlib.sha256(f"{project_name}\0{title}\0{occurrence}".encode("utf-8"))
    return digest.hexdigest()[:12]


def parse_document(content: str, project_name: str) -> list[Task]:
    """Parse every task heading in ``content``, whatever its status."""
    lines = content.splitlines()
    seen: Counter[str] = Counter()
    tasks: list[Task] = []
    for index, line in enumerate(lines):
        parsed = parse_heading(line)
        if parsed is None:
            continue
        status, title = parsed
        occurrence = seen[title]
        seen[title] += 1
        tasks.append(
            Task(
                id=task_id_for(project_name, title, occurrence),
                title=title,
                description=extract_section(lines, index),
                origin=TaskOrigin.DOCUMENT,
                origin_id=f"line-{index}",
                status=status,
                project_name=project_name,
            )
        )
    return tasks


def read_document(path: Path, project_name: str) -> list[Task]:
    """Pending tasks of the org file at ``path``; empty if it cannot be read."""
    if not path.exists():
        log.warning("todo_file_missing", path=str(path), project=project_name)
        return []
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.error("todo_file_unreadable", path=str(path), project=project_name, error=str(e))
        return []
    return [task for task in parse_document(content, project_name) if task.status == TaskStatus.PENDING]


class DocumentCatalog(TaskCatalog):
    """Tasks from the project's org file."""

    async def read(self, project_name: str, project: ProjectConfig) -> list[Task]:
        tasks = read_document(project.todo_path, project_name)
        log.debug("document_tasks_read", project=project_name, count=len(tasks))
        return tasks
