"""
Isolated, branch-scoped workspaces built on ``git worktree``.

Each attempt gets its own worktree under
``<workspace base>/<project>/<task id>`` on a fresh ``tgbl/`` branch, so the
delegate never touches the user's checkout. Removal detaches the worktree;
cleanup additionally drops the branch locally and on the remote.

Faults raised by the version-control provider are converted to failed
results here and never reach the pipeline as exceptions.
"""

import asyncio
from pathlib import Path

import structlog

from todo_goblin.engine.eligibility import BRANCH_PREFIX
from todo_goblin.exceptions import TodoGoblinError
from todo_goblin.models.domain import OperationResult, WorkspaceResult, WorktreeInfo
from todo_goblin.providers.base import VersionControl

log = structlog.get_logger(__name__)

SETTLE_DELAY_SECONDS = 0.1


def workspace_path_for(base_path: Path, project_name: str, task_id: str) -> Path:
    return base_path / project_name / task_id


class WorkspaceManager:
    """Creates and destroys per-task worktrees.

    Attributes:
        vcs: Version-control provider the worktree commands go through.
        settle_delay: Seconds to wait after creation before checking the
            directory is visible.
    """

    def __init__(self, vcs: VersionControl, settle_delay: float = SETTLE_DELAY_SECONDS) -> None:
        self.vcs = vcs
        self.settle_delay = settle_delay

    async def create(self, repo_path: str, workspace_path: str, branch_name: str) -> WorkspaceResult:
        """Create a worktree for ``branch_name`` at ``workspace_path``.

        The repository is fetched first; a failed fetch is logged and the
        worktree is branched from whatever history is available locally.
        """
        try:
            Path(workspace_path).parent.mkdir(parents=True, exist_ok=True)

            fetched = await self.vcs.fetch(repo_path)
            if not fetched.success:
                log.warning("fetch_failed", repo_path=repo_path, error=fetched.error)

            base = await self.vcs.resolve_default_branch(repo_path)
            added = await self.vcs.worktree_add(repo_path, workspace_path, branch_name, base)
        except (TodoGoblinError, OSError) as e:
            log.error("workspace_create_error", path=workspace_path, error=str(e))
            return WorkspaceResult(success=False, branch_name=branch_name, error=str(e))

        if not added.success:
            log.error("workspace_create_failed", path=workspace_path, error=added.error)
            return WorkspaceResult(success=False, branch_name=branch_name, error=added.error)

        await asyncio.sleep(self.settle_delay)
        if not Path(workspace_path).is_dir():
            error = f"Worktree directory not accessible after creation: {workspace_path}"
            log.error("workspace_not_accessible", path=workspace_path)
            return WorkspaceResult(success=False, branch_name=branch_name, error=error)

        log.info("workspace_created", path=workspace_path, branch=branch_name, base=base)
        return WorkspaceResult(success=True, workspace_path=workspace_path, branch_name=branch_name)

    async def remove(self, workspace_path: str, repo_path: str) -> OperationResult:
        """Detach the worktree at ``workspace_path``. The branch is kept.

        When the directory is gone, git may still have the worktree
        registered (``worktree add`` succeeded but the directory never became
        visible, or it was deleted by hand). Stale registrations are pruned so
        the branch is no longer checked out anywhere.
        """
        try:
            if not Path(workspace_path).exists():
                log.debug("workspace_absent", path=workspace_path)
                result = await self.vcs.worktree_prune(repo_path)
                if not result.success:
                    log.error("workspace_prune_failed", repo_path=repo_path, error=result.error)
                return result
            result = await self.vcs.worktree_remove(repo_path, workspace_path)
        except TodoGoblinError as e:
            return OperationResult.failure(e.message)
        if result.success:
            log.info("workspace_removed", path=workspace_path)
        else:
            log.error("workspace_remove_failed", path=workspace_path, error=result.error)
        return result

    async def cleanup(self, workspace_path: str, branch_name: str, repo_path: str) -> OperationResult:
        """Remove the workspace and, if that worked, delete its branch.

        Branch deletion is best effort: failures are logged and do not make
        the cleanup fail.
        """
        removed = await self.remove(workspace_path, repo_path)
        if not removed.success:
            return removed

        for where, delete in (("remote", self.vcs.delete_remote_branch), ("local", self.vcs.delete_branch)):
            try:
                deleted = await delete(repo_path, branch_name)
            except TodoGoblinError as e:
                deleted = OperationResult.failure(e.message)
            if not deleted.success:
                log.warning(
                    "branch_delete_failed",
                    branch=branch_name,
                    where=where,
                    error=deleted.error,
                )
        return OperationResult.ok()

    async def list_active(self, repo_path: str) -> list[WorktreeInfo]:
        """Worktrees of ``repo_path`` on ``tgbl/`` branches."""
        worktrees = await self.vcs.worktree_list(repo_path)
        return [wt for wt in worktrees if wt.branch.startswith(BRANCH_PREFIX)]
