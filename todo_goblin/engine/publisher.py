"""
Change publisher: commits delegate output and drives the review record.

Record titles are a wire format read by people and scripts::

    🤖[AI TASK STARTED] Add database migrations 2026-10-17
    ✅[AI TASK COMPLETE] Add database migrations 2026-10-17
    ❌[AI TASK FAILED] Add database migrations 2026-10-17

Every method returns a structured result; faults raised by the providers are
converted here.
"""

from datetime import date

import structlog

from todo_goblin.enums import TitlePhase
from todo_goblin.exceptions import TodoGoblinError
from todo_goblin.models.domain import OperationResult, PublishResult, RecordResult, Task
from todo_goblin.providers.base import ReviewProvider, VersionControl
from todo_goblin.rendering.engine import SecureTemplateEngine

log = structlog.get_logger(__name__)

BODY_TEMPLATE = "records/started_body.md.j2"


def format_record_title(task: Task, phase: TitlePhase, on: date) -> str:
    return f"{phase.glyph}{phase.label} {task.title} {on.isoformat()}"


def commit_message(task: Task) -> str:
    return f"🤖 Implement: {task.title}\n\nTask ID: {task.id}"


class ChangePublisher:
    """Commits, pushes and records the outcome of an attempt."""

    def __init__(
        self,
        vcs: VersionControl,
        reviews: ReviewProvider,
        engine: SecureTemplateEngine | None = None,
    ) -> None:
        self.vcs = vcs
        self.reviews = reviews
        self.engine = engine or SecureTemplateEngine()

    def record_body(self, task: Task) -> str:
        return self.engine.render(BODY_TEMPLATE, {"task": task})

    async def commit_and_push(self, workspace_path: str, branch: str, message: str) -> PublishResult:
        """Stage everything, commit and push ``branch``.

        A clean tree after staging is a successful no-op.
        """
        try:
            staged = await self.vcs.stage_all(workspace_path)
            if not staged.success:
                return PublishResult(success=False, error=f"Staging failed: {staged.error}")

            if not await self.vcs.has_changes(workspace_path):
                log.info("no_changes_to_commit", path=workspace_path)
                return PublishResult(success=True, no_changes=True, message="No changes to commit")

            committed = await self.vcs.commit(workspace_path, message)
            if not committed.success:
                return PublishResult(success=False, error=f"Commit failed: {committed.error}")

            pushed = await self.vcs.push(workspace_path, branch)
            if not pushed.success:
                return PublishResult(success=False, error=f"Push failed: {pushed.error}")
        except TodoGoblinError as e:
            return PublishResult(success=False, error=e.message)

        log.info("changes_pushed", branch=branch)
        return PublishResult(success=True, message="Changes committed and pushed")

    async def open_record(
        self,
        repo: str,
        branch: str,
        title: str,
        body: str,
        base: str | None = None,
    ) -> RecordResult:
        try:
            record = await self.reviews.create(repo, branch, title, body, base=base)
        except TodoGoblinError as e:
            log.error("record_open_failed", repo=repo, branch=branch, error=str(e))
            return RecordResult(success=False, error=str(e))
        log.info("record_opened", repo=repo, number=record.number, url=record.url)
        return RecordResult(success=True, number=record.number, url=record.url)

    async def update_title(self, repo: str, number: int, title: str) -> OperationResult:
        try:
            await self.reviews.update_title(repo, number, title)
        except TodoGoblinError as e:
            log.warning("record_title_update_failed", repo=repo, number=number, error=str(e))
            return OperationResult.failure(str(e))
        log.info("record_title_updated", repo=repo, number=number, title=title)
        return OperationResult.ok()
