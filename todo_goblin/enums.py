"""Enumerations shared across todo-goblin."""

from enum import Enum


class TaskOrigin(str, Enum):
    """Backlog source a task was read from."""

    DOCUMENT = "document"
    ISSUE_TRACKER = "issue-tracker"

    def __str__(self) -> str:
        return self.value


class TaskStatus(str, Enum):
    """Lifecycle status of a backlog task as recorded in its source."""

    PENDING = "pending"
    DONE = "done"
    IN_PROGRESS = "in-progress"

    def __str__(self) -> str:
        return self.value


class ReviewState(str, Enum):
    """State of a review record (pull request) on the provider."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"

    def __str__(self) -> str:
        return self.value


class TitlePhase(str, Enum):
    """Phase encoded into a review record title.

    Each phase maps to a fixed leading glyph and bracket label. Humans and
    external tooling read these titles, so the rendering is a wire format.
    """

    STARTED = "started"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def glyph(self) -> str:
        return _PHASE_GLYPHS[self]

    @property
    def label(self) -> str:
        return f"[AI TASK {self.value.upper()}]"


_PHASE_GLYPHS = {
    TitlePhase.STARTED: "🤖",
    TitlePhase.COMPLETE: "✅",
    TitlePhase.FAILED: "❌",
}


class PipelineState(str, Enum):
    """States of the per-task orchestration state machine.

    The happy path is::

        selecting -> workspace-pending -> executing -> publishing-changes
            -> record-opening -> finalizing -> completed

    ``failed`` is absorbing and reachable from every non-terminal state.
    """

    SELECTING = "selecting"
    WORKSPACE_PENDING = "workspace-pending"
    EXECUTING = "executing"
    PUBLISHING_CHANGES = "publishing-changes"
    RECORD_OPENING = "record-opening"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    COMPLETED_WITH_WARNING = "completed-with-warning"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (
            PipelineState.COMPLETED,
            PipelineState.COMPLETED_WITH_WARNING,
            PipelineState.FAILED,
        )


class OutcomeStatus(str, Enum):
    """Terminal result of one invocation of the pipeline."""

    COMPLETED = "completed"
    COMPLETED_WITH_WARNING = "completed-with-warning"
    FAILED = "failed"
    NO_ELIGIBLE_TASK = "no-eligible-task"
    NO_PROJECT_CONFIG = "no-project-config"
    NO_CONFIGURATION = "no-configuration"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value

    @property
    def is_success(self) -> bool:
        """Whether the CLI should exit zero for this outcome."""
        return self in (
            OutcomeStatus.COMPLETED,
            OutcomeStatus.COMPLETED_WITH_WARNING,
            OutcomeStatus.NO_ELIGIBLE_TASK,
        )


class Complexity(str, Enum):
    """Estimated size of a task; selects the delegate's time budget."""

    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"

    def __str__(self) -> str:
        return self.value
