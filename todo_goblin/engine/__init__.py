"""Task orchestration: eligibility, selection, workspaces, delegation and publishing."""

from todo_goblin.engine.delegate import ExecutionDelegate, estimate_complexity, find_relevant_files
from todo_goblin.engine.eligibility import branch_name, eligible
from todo_goblin.engine.pipeline import OrchestrationPipeline, run_once
from todo_goblin.engine.publisher import ChangePublisher, format_record_title
from todo_goblin.engine.selection import FirstAvailableSelector, TaskSelector
from todo_goblin.engine.workspace import WorkspaceManager

__all__ = [
    "ChangePublisher",
    "ExecutionDelegate",
    "FirstAvailableSelector",
    "OrchestrationPipeline",
    "TaskSelector",
    "WorkspaceManager",
    "branch_name",
    "eligible",
    "estimate_complexity",
    "find_relevant_files",
    "format_record_title",
    "run_once",
]
