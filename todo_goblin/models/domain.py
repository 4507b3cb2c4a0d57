"""
Domain models for todo-goblin.

This module contains the fixed-shape records that flow through the
orchestration pipeline: tasks read from a backlog source, review records
(pull requests) observed on the provider, per-attempt workspace context,
the structured results returned by each collaborator, and the terminal
outcome of a run.

Collaborator results are plain dataclasses with a ``success`` flag and an
``error`` string. Expected failures (a non-zero exit from git, a rejected API
call) travel in these results rather than as exceptions.

Example:
    Creating a task read from an org file::

        task = Task(
            id="3f2a9c01d4e7",
            title="Add database migrations",
            description="We need to set up proper database versioning.",
            origin=TaskOrigin.DOCUMENT,
            origin_id="line-12",
            status=TaskStatus.PENDING,
            project_name="billing",
        )
"""

from dataclasses import dataclass, field, replace
from datetime import datetime

from todo_goblin.enums import (
    OutcomeStatus,
    PipelineState,
    ReviewState,
    TaskOrigin,
    TaskStatus,
)


@dataclass(frozen=True)
class Task:
    """A normalized unit of backlog work from any origin.

    Tasks are immutable. The pipeline records a claim by deriving a new task
    with :meth:`with_review` rather than mutating the one it was given.
    """

    id: str
    """Stable, source-derived identifier, unique within a project's tasks."""

    title: str
    """Single-line title. Drives the branch name and review record title."""

    description: str
    """Free-text description handed to the delegate."""

    origin: TaskOrigin
    """Backlog source the task was read from."""

    origin_id: str
    """Identifier within the origin (``line-<n>`` or an issue number)."""

    status: TaskStatus = TaskStatus.PENDING
    """Lifecycle status as recorded in the source."""

    project_name: str = ""
    """Name of the configured project owning this task."""

    review_number: int | None = None
    """Number of the review record claiming this task, once one is opened."""

    def with_review(self, number: int) -> "Task":
        """Return a copy of this task annotated with its review record."""
        return replace(self, review_number=number)


@dataclass(frozen=True)
class ReviewRecord:
    """An externally visible claim marker (a pull request)."""

    number: int
    title: str
    state: ReviewState
    is_draft: bool
    branch: str
    """Head branch name, without ``refs/heads/``."""
    url: str
    project_name: str | None = None


@dataclass(frozen=True)
class IssueItem:
    """An open issue as returned by the review-record provider."""

    number: int
    title: str
    body: str
    labels: list[str] = field(default_factory=list)
    url: str = ""


@dataclass(frozen=True)
class WorktreeInfo:
    """An entry of ``git worktree list``."""

    path: str
    branch: str
    """Branch name with ``refs/heads/`` stripped."""


@dataclass(frozen=True)
class WorkspaceContext:
    """Per-attempt binding of a task to a concrete isolated workspace.

    Built once when a task is selected and never reused across tasks or runs.
    """

    task: Task
    project_name: str
    branch_name: str
    workspace_path: str
    repo_path: str
    """Path of the originating local repository."""
    repo: str
    """Remote repository coordinate (``owner/name``)."""


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a collaborator call that yields no data."""

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "OperationResult":
        return cls(success=True)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class WorkspaceResult:
    """Outcome of creating an isolated workspace."""

    success: bool
    workspace_path: str | None = None
    branch_name: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one delegate invocation.

    ``timed_out`` distinguishes "the agent never finished" from "the agent
    ran and failed"; both have ``success`` False.
    """

    success: bool
    output: str = ""
    error: str | None = None
    exit_code: int | None = None
    timed_out: bool = False
    stdout_lines: list[str] = field(default_factory=list)
    stderr_lines: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PublishResult:
    """Outcome of staging, committing and pushing workspace changes.

    A clean tree is a successful no-op (``no_changes`` True). The pipeline
    still refuses to finalize such an attempt.
    """

    success: bool
    no_changes: bool = False
    error: str | None = None
    message: str = ""


@dataclass(frozen=True)
class RecordResult:
    """Outcome of opening a review record."""

    success: bool
    number: int | None = None
    url: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class AttemptOutcome:
    """Terminal result of one pipeline invocation.

    Constructed once per run and never modified; the sole return value of
    the pipeline.
    """

    status: OutcomeStatus
    message: str
    task: Task | None = None
    record_number: int | None = None
    record_url: str | None = None
    state: PipelineState | None = None
    """Last pipeline state reached, when a task was processed."""
    finished_at: datetime = field(default_factory=datetime.now)
