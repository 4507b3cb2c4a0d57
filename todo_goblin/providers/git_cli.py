"""Version control through the ``git`` command line.

Every command runs with ``git -C <path>`` so that no process-wide working
directory is ever changed. Non-zero exits become failed
:class:`OperationResult` values whose ``error`` is git's own stderr.
"""

import structlog

from todo_goblin.exceptions import GitOperationError
from todo_goblin.models.domain import OperationResult, WorktreeInfo
from todo_goblin.providers.base import VersionControl
from todo_goblin.utils.async_subprocess import run_command

log = structlog.get_logger(__name__)

DEFAULT_BRANCH_CANDIDATES = ("origin/main", "origin/master")
HEADS_PREFIX = "refs/heads/"


def parse_worktree_list(output: str) -> list[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output.

    Entries without a checked-out branch (detached or bare) are skipped.
    """
    worktrees: list[WorktreeInfo] = []
    path: str | None = None
    for line in output.splitlines():
        if line.startswith("worktree "):
            path = line[len("worktree ") :]
        elif line.startswith("branch ") and path is not None:
            branch = line[len("branch ") :]
            if branch.startswith(HEADS_PREFIX):
                branch = branch[len(HEADS_PREFIX) :]
            worktrees.append(WorktreeInfo(path=path, branch=branch))
            path = None
    return worktrees


class GitCLI(VersionControl):
    """:class:`VersionControl` backed by the ``git`` executable."""

    def __init__(self, git_executable: str = "git") -> None:
        self.git_executable = git_executable

    async def _git(self, path: str, *args: str) -> tuple[str, str, int]:
        try:
            return await run_command(self.git_executable, "-C", path, *args, check=False)
        except OSError as e:
            raise GitOperationError(f"Cannot run git in {path}: {e}") from e

    async def _git_result(self, path: str, *args: str) -> OperationResult:
        _, stderr, code = await self._git(path, *args)
        if code != 0:
            return OperationResult.failure(stderr.strip() or f"git {args[0]} exited with {code}")
        return OperationResult.ok()

    async def fetch(self, repo_path: str) -> OperationResult:
        return await self._git_result(repo_path, "fetch", "origin")

    async def resolve_default_branch(self, repo_path: str) -> str:
        for candidate in DEFAULT_BRANCH_CANDIDATES:
            _, _, code = await self._git(repo_path, "rev-parse", "--verify", "--quiet", candidate)
            if code == 0:
                return candidate
        log.debug("default_branch_fallback", repo_path=repo_path, base="HEAD")
        return "HEAD"

    async def worktree_add(
        self, repo_path: str, path: str, branch: str, base: str
    ) -> OperationResult:
        return await self._git_result(repo_path, "worktree", "add", path, "-b", branch, base)

    async def worktree_remove(self, repo_path: str, path: str) -> OperationResult:
        return await self._git_result(repo_path, "worktree", "remove", "--force", path)

    async def worktree_prune(self, repo_path: str) -> OperationResult:
        return await self._git_result(repo_path, "worktree", "prune")

    async def worktree_list(self, repo_path: str) -> list[WorktreeInfo]:
        stdout, stderr, code = await self._git(repo_path, "worktree", "list", "--porcelain")
        if code != 0:
            raise GitOperationError(f"Failed to list worktrees: {stderr.strip()}")
        return parse_worktree_list(stdout)

    async def delete_branch(self, repo_path: str, branch: str) -> OperationResult:
        return await self._git_result(repo_path, "branch", "-D", branch)

    async def delete_remote_branch(self, repo_path: str, branch: str) -> OperationResult:
        return await self._git_result(repo_path, "push", "origin", "--delete", branch)

    async def stage_all(self, path: str) -> OperationResult:
        return await self._git_result(path, "add", ".")

    async def has_changes(self, path: str) -> bool:
        stdout, stderr, code = await self._git(path, "status", "--porcelain")
        if code != 0:
            raise GitOperationError(f"Failed to read status: {stderr.strip()}")
        return bool(stdout.strip())

    async def commit(self, path: str, message: str) -> OperationResult:
        return await self._git_result(path, "commit", "-m", message)

    async def push(self, path: str, branch: str) -> OperationResult:
        return await self._git_result(path, "push", "origin", branch)
