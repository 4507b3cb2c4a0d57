"""Backlog sources and human-readable task summaries."""

from todo_goblin.catalog.base import TaskCatalog
from todo_goblin.catalog.document import DocumentCatalog
from todo_goblin.catalog.issues import IssueTrackerCatalog
from todo_goblin.config.settings import ProjectConfig
from todo_goblin.enums import TaskOrigin
from todo_goblin.models.domain import Task
from todo_goblin.providers.base import ReviewProvider


def catalog_for(project: ProjectConfig, reviews: ReviewProvider) -> TaskCatalog:
    """Pick the reader matching the project's backlog type."""
    if project.origin == TaskOrigin.ISSUE_TRACKER:
        return IssueTrackerCatalog(reviews)
    return DocumentCatalog()


def task_summary(task: Task) -> str:
    return (
        f"Task: {task.title}\n"
        f"ID: {task.id}\n"
        f"Source: {task.origin}\n"
        f"Status: {task.status}\n"
        f"Description:\n{task.description}"
    )


def tasks_summary(tasks: list[Task]) -> str:
    if not tasks:
        return "No tasks found."
    return f"Found {len(tasks)} tasks:\n\n" + "\n---\n".join(task_summary(task) for task in tasks)


__all__ = [
    "DocumentCatalog",
    "IssueTrackerCatalog",
    "TaskCatalog",
    "catalog_for",
    "task_summary",
    "tasks_summary",
]
