"""Open labelled issues as backlog tasks."""

import structlog

from todo_goblin.catalog.base import TaskCatalog
from todo_goblin.config.settings import ProjectConfig
from todo_goblin.enums import TaskOrigin, TaskStatus
from todo_goblin.exceptions import TodoGoblinError
from todo_goblin.models.domain import IssueItem, Task
from todo_goblin.providers.base import ReviewProvider

log = structlog.get_logger(__name__)


def issue_to_task(issue: IssueItem, project_name: str) -> Task:
    return Task(
        id=str(issue.number),
        title=issue.title,
        description=issue.body,
        origin=TaskOrigin.ISSUE_TRACKER,
        origin_id=str(issue.number),
        status=TaskStatus.PENDING,
        project_name=project_name,
    )


class IssueTrackerCatalog(TaskCatalog):
    """Tasks from open issues carrying the project's ``issues_label``."""

    def __init__(self, reviews: ReviewProvider) -> None:
        self.reviews = reviews

    async def read(self, project_name: str, project: ProjectConfig) -> list[Task]:
        try:
            issues = await self.reviews.list_issues(project.repo, project.issues_label)
        except TodoGoblinError as e:
            log.error("issue_listing_failed", project=project_name, repo=project.repo, error=e.message)
            return []
        return [issue_to_task(issue, project_name) for issue in issues]
