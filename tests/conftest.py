"""Pytest configuration and shared fixtures."""

import shutil
from pathlib import Path

import pytest
import structlog

from todo_goblin.config.settings import GoblinSettings, ProjectConfig
from todo_goblin.enums import ReviewState, TaskOrigin, TaskStatus
from todo_goblin.exceptions import ExternalServiceError
from todo_goblin.models.domain import IssueItem, OperationResult, ReviewRecord, Task, WorktreeInfo
from todo_goblin.providers.base import AgentRunner, ReviewProvider, VersionControl
from todo_goblin.utils.async_subprocess import StreamedRun

SAMPLE_ORG = """#+TITLE: Backlog

* TODO Add database migrations
We need to set up proper database versioning.
Use alembic.
** Notes
Subsection text stays with the parent.
* DONE Write README
Already finished.
* IN-PROGRESS Refactor settings loader
Being worked on.
* TODO Fix authentication bug in login module
Users cannot log in with uppercase emails.
"""


class FakeVersionControl(VersionControl):
    """In-memory git that creates real directories for worktrees.

    Registered worktrees are tracked like git does: they show up in
    ``worktree_list`` until removed or pruned, and their branch cannot be
    deleted while registered.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fetch_result = OperationResult.ok()
        self.add_result = OperationResult.ok()
        self.remove_result = OperationResult.ok()
        self.prune_result = OperationResult.ok()
        self.delete_remote_result = OperationResult.ok()
        self.commit_result = OperationResult.ok()
        self.push_result = OperationResult.ok()
        self.changes = True
        self.default_branch = "origin/main"
        self.worktrees: list[WorktreeInfo] = []
        self.registered: dict[str, str] = {}
        self.create_directory = True
        self.seed_files: dict[str, str] = {}

    async def fetch(self, repo_path):
        self.calls.append(("fetch", repo_path))
        return self.fetch_result

    async def resolve_default_branch(self, repo_path):
        self.calls.append(("resolve_default_branch", repo_path))
        return self.default_branch

    async def worktree_add(self, repo_path, path, branch, base):
        self.calls.append(("worktree_add", repo_path, path, branch, base))
        if self.add_result.success:
            self.registered[path] = branch
            if self.create_directory:
                Path(path).mkdir(parents=True, exist_ok=True)
                for name, content in self.seed_files.items():
                    (Path(path) / name).write_text(content)
        return self.add_result

    async def worktree_remove(self, repo_path, path):
        self.calls.append(("worktree_remove", repo_path, path))
        if self.remove_result.success:
            self.registered.pop(path, None)
            shutil.rmtree(path, ignore_errors=True)
        return self.remove_result

    async def worktree_prune(self, repo_path):
        self.calls.append(("worktree_prune", repo_path))
        if self.prune_result.success:
            self.registered = {p: b for p, b in self.registered.items() if Path(p).exists()}
        return self.prune_result

    async def worktree_list(self, repo_path):
        self.calls.append(("worktree_list", repo_path))
        return list(self.worktrees) + [WorktreeInfo(path=p, branch=b) for p, b in self.registered.items()]

    async def delete_branch(self, repo_path, branch):
        self.calls.append(("delete_branch", repo_path, branch))
        if branch in self.registered.values():
            return OperationResult.failure(f"cannot delete branch '{branch}' checked out")
        return OperationResult.ok()

    async def delete_remote_branch(self, repo_path, branch):
        self.calls.append(("delete_remote_branch", repo_path, branch))
        return self.delete_remote_result

    async def stage_all(self, path):
        self.calls.append(("stage_all", path))
        return OperationResult.ok()

    async def has_changes(self, path):
        self.calls.append(("has_changes", path))
        return self.changes

    async def commit(self, path, message):
        self.calls.append(("commit", path, message))
        return self.commit_result

    async def push(self, path, branch):
        self.calls.append(("push", path, branch))
        return self.push_result

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakeReviewProvider(ReviewProvider):
    """In-memory pull requests and issues."""

    def __init__(self) -> None:
        self.records: list[ReviewRecord] = []
        self.issues: list[IssueItem] = []
        self.created: list[dict] = []
        self.title_updates: list[tuple[int, str]] = []
        self.create_error: Exception | None = None
        self.update_error: Exception | None = None
        self.list_error: Exception | None = None
        self.next_number = 101

    async def connect(self):
        pass

    async def list_open(self, repo):
        if self.list_error:
            raise self.list_error
        return [r for r in self.records if r.state == ReviewState.OPEN]

    async def list_draft(self, repo):
        return [r for r in await self.list_open(repo) if r.is_draft]

    async def create(self, repo, branch, title, body, base=None):
        if self.create_error:
            raise self.create_error
        self.created.append({"repo": repo, "branch": branch, "title": title, "body": body, "base": base})
        record = ReviewRecord(
            number=self.next_number,
            title=title,
            state=ReviewState.OPEN,
            is_draft=True,
            branch=branch,
            url=f"https://github.com/{repo}/pull/{self.next_number}",
        )
        self.records.append(record)
        self.next_number += 1
        return record

    async def update_title(self, repo, number, title):
        if self.update_error:
            raise self.update_error
        self.title_updates.append((number, title))

    async def list_issues(self, repo, label):
        if self.list_error:
            raise self.list_error
        return list(self.issues)


class FakeAgentRunner(AgentRunner):
    """Delegate stand-in that optionally writes a file into its workspace."""

    def __init__(self) -> None:
        self.available = True
        self.return_code = 0
        self.timed_out = False
        self.stdout_lines = ["working", "done"]
        self.stderr_lines: list[str] = []
        self.write_file: str | None = "CHANGES.md"
        self.prompts: list[str] = []
        self.timeouts: list[float | None] = []

    async def version_probe(self):
        return self.available

    async def run(self, working_dir, prompt, timeout=None, on_line=None):
        self.prompts.append(prompt)
        self.timeouts.append(timeout)
        if self.write_file:
            (Path(working_dir) / self.write_file).write_text("change\n")
        for line in self.stdout_lines:
            if on_line:
                on_line("stdout", line)
        return StreamedRun(
            return_code=None if self.timed_out else self.return_code,
            timed_out=self.timed_out,
            stdout_lines=list(self.stdout_lines),
            stderr_lines=list(self.stderr_lines),
        )


@pytest.fixture
def sample_task() -> Task:
    """Sample task for testing."""
    return Task(
        id="task-123456789",
        title="Fix authentication bug in login module",
        description="Users cannot log in with uppercase emails.",
        origin=TaskOrigin.DOCUMENT,
        origin_id="line-4",
        status=TaskStatus.PENDING,
        project_name="billing",
    )


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """Project checkout containing an org backlog."""
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "todo.org").write_text(SAMPLE_ORG)
    return repo


@pytest.fixture
def settings(tmp_path: Path, repo_dir: Path) -> GoblinSettings:
    """Settings with one org-backed project."""
    return GoblinSettings(
        workspace={"base_path": str(tmp_path / "worktrees")},
        projects={
            "billing": ProjectConfig(cwd=str(repo_dir), repo="acme/billing"),
        },
    )


@pytest.fixture
def fake_vcs() -> FakeVersionControl:
    return FakeVersionControl()


@pytest.fixture
def fake_reviews() -> FakeReviewProvider:
    return FakeReviewProvider()


@pytest.fixture
def fake_agent() -> FakeAgentRunner:
    return FakeAgentRunner()


@pytest.fixture
def service_error() -> ExternalServiceError:
    return ExternalServiceError("Validation Failed", status_code=422)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()
