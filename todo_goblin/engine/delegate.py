"""
Execution delegate: hands a task to the external AI agent.

The delegate receives a prompt rendered from ``prompts/task.txt.j2`` on
stdin and runs with the task's workspace as its working directory. Output is
streamed line by line to an optional callback while also being collected
for the result.

Complexity estimation:
    A rough score picks one of three time budgets. Descriptions longer than
    500 characters add 2, titles of more than 10 words add 1, a description
    mentioning "test" adds 1 and one mentioning "refactor" adds 2. Scores
    below 2 are simple, below 4 medium, anything else complex. The budgets
    come from ``agent.timeouts`` in the settings file.
"""

import os
from collections.abc import Iterable
from pathlib import Path

import structlog

from todo_goblin.config.settings import AgentConfig
from todo_goblin.enums import Complexity
from todo_goblin.exceptions import AgentUnavailableError, WorkspaceError
from todo_goblin.models.domain import ExecutionResult, Task
from todo_goblin.providers.base import AgentRunner
from todo_goblin.rendering.engine import SecureTemplateEngine
from todo_goblin.utils.async_subprocess import OutputCallback

log = structlog.get_logger(__name__)

PROMPT_TEMPLATE = "prompts/task.txt.j2"
SKIPPED_DIRECTORIES = {".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv", "venv"}
MIN_KEYWORD_LENGTH = 3


def complexity_score(task: Task) -> int:
    description = task.description.lower()
    score = 0
    if len(task.description) > 500:
        score += 2
    if len(task.title.split()) > 10:
        score += 1
    if "test" in description:
        score += 1
    if "refactor" in description:
        score += 2
    return score


def estimate_complexity(task: Task) -> Complexity:
    score = complexity_score(task)
    if score < 2:
        return Complexity.SIMPLE
    if score < 4:
        return Complexity.MEDIUM
    return Complexity.COMPLEX


def find_relevant_files(
    workspace_path: Path,
    task: Task,
    extensions: Iterable[str],
    limit: int = 5,
) -> list[str]:
    """List files whose name mentions a word of the task title.

    Returns paths relative to ``workspace_path``, sorted, at most ``limit``.
    Hidden and VCS directories are skipped. Any filesystem error yields an
    empty list.
    """
    keywords = {word for word in task.title.lower().split() if len(word) >= MIN_KEYWORD_LENGTH}
    suffixes = {ext.lower().lstrip(".") for ext in extensions}
    if not keywords or limit <= 0:
        return []

    matches: list[str] = []
    try:
        for root, dirs, files in os.walk(workspace_path):
            dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRECTORIES and not d.startswith("."))
            for name in sorted(files):
                lowered = name.lower()
                if "." not in lowered or lowered.rsplit(".", 1)[1] not in suffixes:
                    continue
                if any(keyword in lowered for keyword in keywords):
                    matches.append(Path(root, name).relative_to(workspace_path).as_posix())
    except OSError as e:
        log.warning("relevant_files_failed", path=str(workspace_path), error=str(e))
        return []
    return sorted(matches)[:limit]


class ExecutionDelegate:
    """Runs the AI agent for one task inside its workspace."""

    def __init__(
        self,
        runner: AgentRunner,
        config: AgentConfig,
        engine: SecureTemplateEngine | None = None,
    ) -> None:
        self.runner = runner
        self.config = config
        self.engine = engine or SecureTemplateEngine()

    def timeout_for(self, task: Task) -> int:
        complexity = estimate_complexity(task)
        return getattr(self.config.timeouts, complexity.value)

    def build_prompt(self, task: Task, context_files: list[str]) -> str:
        return self.engine.render(PROMPT_TEMPLATE, {"task": task, "context_files": context_files})

    def relevant_files(self, workspace_path: Path, task: Task) -> list[str]:
        return find_relevant_files(
            workspace_path,
            task,
            self.config.context_extensions,
            limit=self.config.max_context_files,
        )

    async def execute(
        self,
        workspace_path: str,
        task: Task,
        context_files: list[str] | None = None,
        timeout: float | None = None,
        on_output: OutputCallback | None = None,
    ) -> ExecutionResult:
        """Run the agent and report how it went.

        Args:
            timeout: Seconds before the agent is killed; estimated from the
                task when None

        Raises:
            AgentUnavailableError: If the agent fails its version probe
            WorkspaceError: If the workspace is missing or not a directory
        """
        if not await self.runner.version_probe():
            raise AgentUnavailableError("AI agent CLI is not available", task_id=task.id)

        workspace = Path(workspace_path)
        if not workspace.exists():
            raise WorkspaceError("Workspace does not exist", path=workspace_path)
        if not workspace.is_dir():
            raise WorkspaceError("Workspace is not a directory", path=workspace_path)

        if timeout is None:
            timeout = self.timeout_for(task)
        prompt = self.build_prompt(task, context_files or [])

        log.info(
            "delegate_started",
            task_id=task.id,
            complexity=str(estimate_complexity(task)),
            timeout=timeout,
            context_files=len(context_files or []),
        )
        run = await self.runner.run(workspace, prompt, timeout=timeout, on_line=on_output)
        output = "\n".join(run.stdout_lines)

        if run.timed_out:
            log.warning("delegate_timed_out", task_id=task.id, timeout=timeout)
            return ExecutionResult(
                success=False,
                output=output,
                error=f"AI agent timed out after {timeout}s",
                timed_out=True,
                stdout_lines=run.stdout_lines,
                stderr_lines=run.stderr_lines,
            )

        if run.return_code != 0:
            error = "\n".join(run.stderr_lines).strip() or f"AI agent exited with code {run.return_code}"
            log.error("delegate_failed", task_id=task.id, exit_code=run.return_code)
            return ExecutionResult(
                success=False,
                output=output,
                error=error,
                exit_code=run.return_code,
                stdout_lines=run.stdout_lines,
                stderr_lines=run.stderr_lines,
            )

        log.info("delegate_finished", task_id=task.id)
        return ExecutionResult(
            success=True,
            output=output,
            exit_code=0,
            stdout_lines=run.stdout_lines,
            stderr_lines=run.stderr_lines,
        )
