"""
Orchestration pipeline: one task per invocation, from selection to outcome.

State machine::

    selecting -> workspace-pending -> executing -> publishing-changes
        -> record-opening -> finalizing -> completed | completed-with-warning

Any step can move to ``failed``. Entering ``failed`` after the workspace step
began always runs cleanup exactly once. A failed final title update is only
a warning: the work was pushed and the record is open, so nothing is
cleaned up.

Each step handler returns a :class:`StepResult` naming the next state; a
single dispatcher loop applies them. Faults escaping a handler become a
``failed`` transition labelled with the state they escaped from.

Example:
    >>> pipeline = OrchestrationPipeline.from_settings(settings, GitCLI(), reviews, agent)
    >>> outcome = await pipeline.run_for_directory(Path.cwd())
    >>> print(outcome.status, outcome.message)
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import structlog

from todo_goblin.catalog import catalog_for
from todo_goblin.catalog.base import TaskCatalog
from todo_goblin.config.settings import GoblinSettings, ProjectConfig
from todo_goblin.engine.delegate import ExecutionDelegate
from todo_goblin.engine.eligibility import branch_name, eligible
from todo_goblin.engine.publisher import ChangePublisher, commit_message, format_record_title
from todo_goblin.engine.selection import FirstAvailableSelector, TaskSelector
from todo_goblin.engine.workspace import WorkspaceManager, workspace_path_for
from todo_goblin.enums import OutcomeStatus, PipelineState, TitlePhase
from todo_goblin.exceptions import PipelineError, TodoGoblinError
from todo_goblin.models.domain import AttemptOutcome, Task, WorkspaceContext
from todo_goblin.providers.base import AgentRunner, ReviewProvider, VersionControl
from todo_goblin.rendering.engine import SecureTemplateEngine
from todo_goblin.utils.async_subprocess import OutputCallback

log = structlog.get_logger(__name__)

INIT_GUIDANCE = "Run 'tgbl config init' in the project directory to set it up."


@dataclass
class StepResult:
    """What a step handler decided."""

    next_state: PipelineState
    reason: str | None = None


@dataclass
class Attempt:
    """Mutable bookkeeping for one task attempt; never outlives the run."""

    context: WorkspaceContext
    base_branch: str | None = None
    record_number: int | None = None
    record_url: str | None = None
    failed_in: PipelineState | None = None
    reason: str | None = None
    warning: str | None = None
    cleaned_up: bool = field(default=False, repr=False)


def no_configuration_outcome() -> AttemptOutcome:
    return AttemptOutcome(
        status=OutcomeStatus.NO_CONFIGURATION,
        message=f"No configuration found. {INIT_GUIDANCE}",
    )


class OrchestrationPipeline:
    """Runs the per-task state machine for configured projects.

    Attributes:
        settings: Loaded settings, passed in explicitly.
        reviews: Review-record provider (also lists open records).
        workspaces: Worktree lifecycle.
        delegate: AI agent invocation.
        publisher: Commit, push and record updates.
        selector: Policy picking one eligible task.
    """

    def __init__(
        self,
        settings: GoblinSettings,
        reviews: ReviewProvider,
        workspaces: WorkspaceManager,
        delegate: ExecutionDelegate,
        publisher: ChangePublisher,
        selector: TaskSelector | None = None,
        catalog_factory: Callable[[ProjectConfig], TaskCatalog] | None = None,
        on_output: OutputCallback | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.settings = settings
        self.reviews = reviews
        self.workspaces = workspaces
        self.delegate = delegate
        self.publisher = publisher
        self.selector = selector or FirstAvailableSelector()
        self.catalog_factory = catalog_factory or (lambda project: catalog_for(project, reviews))
        self.on_output = on_output
        self.today = today

        self._steps: dict[PipelineState, Callable[[Attempt], Awaitable[StepResult]]] = {
            PipelineState.WORKSPACE_PENDING: self._create_workspace,
            PipelineState.EXECUTING: self._execute,
            PipelineState.PUBLISHING_CHANGES: self._publish,
            PipelineState.RECORD_OPENING: self._open_record,
            PipelineState.FINALIZING: self._finalize,
        }

    @classmethod
    def from_settings(
        cls,
        settings: GoblinSettings,
        vcs: VersionControl,
        reviews: ReviewProvider,
        agent: AgentRunner,
        on_output: OutputCallback | None = None,
    ) -> "OrchestrationPipeline":
        """Wire the standard components around the given providers."""
        engine = SecureTemplateEngine()
        return cls(
            settings=settings,
            reviews=reviews,
            workspaces=WorkspaceManager(vcs),
            delegate=ExecutionDelegate(agent, settings.agent, engine),
            publisher=ChangePublisher(vcs, reviews, engine),
            on_output=on_output,
        )

    async def run(self, project_name: str) -> AttemptOutcome:
        """Process one task of the named project."""
        project = self.settings.get_project(project_name)
        if project is None:
            return AttemptOutcome(
                status=OutcomeStatus.NO_PROJECT_CONFIG,
                message=f"No configuration for project '{project_name}'. {INIT_GUIDANCE}",
            )
        return await self.process_project(project_name, project)

    async def run_for_directory(self, cwd: str | Path) -> AttemptOutcome:
        """Process one task of the project whose ``cwd`` is ``cwd``."""
        found = self.settings.find_project_by_cwd(cwd)
        if found is None:
            return AttemptOutcome(
                status=OutcomeStatus.NO_PROJECT_CONFIG,
                message=f"No project configured for directory {cwd}. {INIT_GUIDANCE}",
            )
        project_name, project = found
        return await self.process_project(project_name, project)

    async def select_task(self, project_name: str, project: ProjectConfig) -> Task | None:
        """Read the catalog and pick one unclaimed task."""
        tasks = await self.catalog_factory(project).read(project_name, project)
        open_records = await self.reviews.list_open(project.repo)
        active = await self.workspaces.list_active(project.cwd)
        candidates = eligible(tasks, open_records, active)
        log.info(
            "tasks_filtered",
            project=project_name,
            total=len(tasks),
            open_records=len(open_records),
            active_workspaces=len(active),
            eligible=len(candidates),
        )
        return self.selector.select(candidates)

    async def process_project(self, project_name: str, project: ProjectConfig) -> AttemptOutcome:
        with structlog.contextvars.bound_contextvars(project=project_name):
            try:
                task = await self.select_task(project_name, project)
            except Exception as e:
                log.error("task_selection_failed", error=str(e), exc_info=True)
                return AttemptOutcome(
                    status=OutcomeStatus.ERROR,
                    message=f"Error while selecting a task: {_describe(e)}",
                    state=PipelineState.SELECTING,
                )

            if task is None:
                log.info("no_eligible_task")
                return AttemptOutcome(
                    status=OutcomeStatus.NO_ELIGIBLE_TASK,
                    message=f"No eligible tasks for project '{project_name}'",
                    state=PipelineState.SELECTING,
                )

            with structlog.contextvars.bound_contextvars(task_id=task.id):
                return await self.attempt(project_name, project, task)

    def build_context(self, project_name: str, project: ProjectConfig, task: Task) -> WorkspaceContext:
        path = workspace_path_for(self.settings.workspace.resolved_base_path, project_name, task.id)
        return WorkspaceContext(
            task=task,
            project_name=project_name,
            branch_name=branch_name(task),
            workspace_path=str(path),
            repo_path=project.cwd,
            repo=project.repo,
        )

    async def attempt(self, project_name: str, project: ProjectConfig, task: Task) -> AttemptOutcome:
        """Drive one selected task through the state machine."""
        attempt = Attempt(
            context=self.build_context(project_name, project, task),
            base_branch=project.base_branch,
        )
        log.info("task_selected", title=task.title, branch=attempt.context.branch_name)

        try:
            state = await self._dispatch(attempt)
        except Exception as e:
            log.error("attempt_aborted", error=str(e), exc_info=True)
            return AttemptOutcome(
                status=OutcomeStatus.ERROR,
                message=f"Unexpected error: {_describe(e)}",
                task=self._annotated(attempt),
                record_number=attempt.record_number,
                record_url=attempt.record_url,
            )
        return self._outcome(attempt, state)

    async def _dispatch(self, attempt: Attempt) -> PipelineState:
        state = PipelineState.WORKSPACE_PENDING
        while not state.is_terminal:
            handler = self._steps[state]
            try:
                step = await handler(attempt)
            except Exception as e:
                error = PipelineError(_describe(e), state=str(state))
                log.error("pipeline_step_fault", state=str(state), error=str(error), exc_info=True)
                if state is PipelineState.FINALIZING:
                    step = StepResult(PipelineState.COMPLETED_WITH_WARNING, error.message)
                else:
                    step = StepResult(PipelineState.FAILED, error.message)

            if step.next_state is PipelineState.FAILED:
                attempt.failed_in = state
                attempt.reason = step.reason
                await self._cleanup(attempt)
            elif step.next_state is PipelineState.COMPLETED_WITH_WARNING:
                attempt.warning = step.reason

            log.debug("pipeline_transition", source=str(state), target=str(step.next_state))
            state = step.next_state
        return state

    async def _create_workspace(self, attempt: Attempt) -> StepResult:
        ctx = attempt.context
        result = await self.workspaces.create(ctx.repo_path, ctx.workspace_path, ctx.branch_name)
        if not result.success:
            return StepResult(PipelineState.FAILED, result.error)
        return StepResult(PipelineState.EXECUTING)

    async def _execute(self, attempt: Attempt) -> StepResult:
        ctx = attempt.context
        context_files = await asyncio.to_thread(
            self.delegate.relevant_files, Path(ctx.workspace_path), ctx.task
        )
        result = await self.delegate.execute(
            ctx.workspace_path,
            ctx.task,
            context_files=context_files,
            on_output=self.on_output,
        )
        if not result.success:
            return StepResult(PipelineState.FAILED, result.error)
        return StepResult(PipelineState.PUBLISHING_CHANGES)

    async def _publish(self, attempt: Attempt) -> StepResult:
        ctx = attempt.context
        result = await self.publisher.commit_and_push(
            ctx.workspace_path, ctx.branch_name, commit_message(ctx.task)
        )
        if not result.success:
            return StepResult(PipelineState.FAILED, result.error)
        if result.no_changes:
            return StepResult(PipelineState.FAILED, "AI agent made no changes")
        return StepResult(PipelineState.RECORD_OPENING)

    async def _open_record(self, attempt: Attempt) -> StepResult:
        ctx = attempt.context
        result = await self.publisher.open_record(
            ctx.repo,
            ctx.branch_name,
            format_record_title(ctx.task, TitlePhase.STARTED, self.today()),
            self.publisher.record_body(ctx.task),
            base=attempt.base_branch,
        )
        if not result.success:
            return StepResult(PipelineState.FAILED, result.error)
        attempt.record_number = result.number
        attempt.record_url = result.url
        return StepResult(PipelineState.FINALIZING)

    async def _finalize(self, attempt: Attempt) -> StepResult:
        ctx = attempt.context
        assert attempt.record_number is not None
        result = await self.publisher.update_title(
            ctx.repo,
            attempt.record_number,
            format_record_title(ctx.task, TitlePhase.COMPLETE, self.today()),
        )
        if not result.success:
            return StepResult(PipelineState.COMPLETED_WITH_WARNING, result.error)
        return StepResult(PipelineState.COMPLETED)

    async def _cleanup(self, attempt: Attempt) -> None:
        if attempt.cleaned_up:
            return
        attempt.cleaned_up = True
        ctx = attempt.context
        try:
            result = await self.workspaces.cleanup(ctx.workspace_path, ctx.branch_name, ctx.repo_path)
        except Exception as e:
            log.error("cleanup_error", path=ctx.workspace_path, error=str(e), exc_info=True)
            return
        if not result.success:
            log.error("cleanup_failed", path=ctx.workspace_path, error=result.error)

    def _annotated(self, attempt: Attempt) -> Task:
        task = attempt.context.task
        return task.with_review(attempt.record_number) if attempt.record_number is not None else task

    def _outcome(self, attempt: Attempt, state: PipelineState) -> AttemptOutcome:
        task = self._annotated(attempt)
        common = {
            "task": task,
            "record_number": attempt.record_number,
            "record_url": attempt.record_url,
            "state": state,
        }
        if state is PipelineState.COMPLETED:
            log.info("task_completed", number=attempt.record_number)
            return AttemptOutcome(
                status=OutcomeStatus.COMPLETED,
                message=f"Task completed: {task.title} (#{attempt.record_number})",
                **common,
            )
        if state is PipelineState.COMPLETED_WITH_WARNING:
            log.warning("task_completed_with_warning", number=attempt.record_number, warning=attempt.warning)
            return AttemptOutcome(
                status=OutcomeStatus.COMPLETED_WITH_WARNING,
                message=f"Task completed but the record title was not updated: {attempt.warning}",
                **common,
            )
        log.error("task_failed", failed_in=str(attempt.failed_in), reason=attempt.reason)
        return AttemptOutcome(
            status=OutcomeStatus.FAILED,
            message=f"{attempt.failed_in}: {attempt.reason}",
            **common,
        )


def _describe(e: Exception) -> str:
    if isinstance(e, TodoGoblinError):
        return str(e)
    return str(e) or type(e).__name__


async def run_once(
    settings: GoblinSettings | None,
    vcs: VersionControl,
    reviews: ReviewProvider,
    agent: AgentRunner,
    project_name: str | None = None,
    cwd: str | Path | None = None,
    on_output: OutputCallback | None = None,
) -> AttemptOutcome:
    """Entry point used by the CLI: resolve the project and process one task.

    The project is looked up by name when given, otherwise by ``cwd``.
    """
    if settings is None:
        return no_configuration_outcome()

    pipeline = OrchestrationPipeline.from_settings(settings, vcs, reviews, agent, on_output=on_output)
    if project_name:
        return await pipeline.run(project_name)
    return await pipeline.run_for_directory(cwd or Path.cwd())
