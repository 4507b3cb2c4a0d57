"""Domain models for todo-goblin."""

from todo_goblin.models.domain import (
    AttemptOutcome,
    ExecutionResult,
    IssueItem,
    OperationResult,
    PublishResult,
    RecordResult,
    ReviewRecord,
    Task,
    WorkspaceContext,
    WorkspaceResult,
    WorktreeInfo,
)

__all__ = [
    "AttemptOutcome",
    "ExecutionResult",
    "IssueItem",
    "OperationResult",
    "PublishResult",
    "RecordResult",
    "ReviewRecord",
    "Task",
    "WorkspaceContext",
    "WorkspaceResult",
    "WorktreeInfo",
]
