"""
Abstract base classes for providers.

This module defines the narrow interfaces the orchestration pipeline talks
to: version control and workspaces, review records (pull requests), and the
external AI delegate CLI. Tests substitute in-memory fakes for each.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from todo_goblin.models.domain import (
    IssueItem,
    OperationResult,
    ReviewRecord,
    WorktreeInfo,
)
from todo_goblin.utils.async_subprocess import OutputCallback, StreamedRun


class VersionControl(ABC):
    """Version-control and worktree primitives.

    Non-zero exits are returned as failed :class:`OperationResult` values
    carrying the tool's error text. Implementations raise
    :class:`~todo_goblin.exceptions.GitOperationError` only when the tool
    cannot be started at all.
    """

    @abstractmethod
    async def fetch(self, repo_path: str) -> OperationResult:
        """Synchronize the repository with its ``origin`` remote."""
        pass

    @abstractmethod
    async def resolve_default_branch(self, repo_path: str) -> str:
        """Return the integration point new branches start from.

        Candidates are probed in a fixed priority order
        (``origin/main`` then ``origin/master``), falling back to ``HEAD``.
        """
        pass

    @abstractmethod
    async def worktree_add(
        self, repo_path: str, path: str, branch: str, base: str
    ) -> OperationResult:
        """Create a worktree at ``path`` on a new ``branch`` started from ``base``."""
        pass

    @abstractmethod
    async def worktree_remove(self, repo_path: str, path: str) -> OperationResult:
        """Detach and delete the worktree at ``path``. The branch is kept."""
        pass

    @abstractmethod
    async def worktree_prune(self, repo_path: str) -> OperationResult:
        """Forget worktrees whose directories no longer exist."""
        pass

    @abstractmethod
    async def worktree_list(self, repo_path: str) -> list[WorktreeInfo]:
        """List the repository's worktrees that have a branch checked out."""
        pass

    @abstractmethod
    async def delete_branch(self, repo_path: str, branch: str) -> OperationResult:
        """Delete a local branch."""
        pass

    @abstractmethod
    async def delete_remote_branch(self, repo_path: str, branch: str) -> OperationResult:
        """Delete ``branch`` on the ``origin`` remote."""
        pass

    @abstractmethod
    async def stage_all(self, path: str) -> OperationResult:
        """Stage every change in the working tree at ``path``."""
        pass

    @abstractmethod
    async def has_changes(self, path: str) -> bool:
        """Whether the working tree at ``path`` has anything to commit."""
        pass

    @abstractmethod
    async def commit(self, path: str, message: str) -> OperationResult:
        pass

    @abstractmethod
    async def push(self, path: str, branch: str) -> OperationResult:
        pass


class ReviewProvider(ABC):
    """Review-record (pull request) and issue access on a hosting service.

    Repositories are addressed as ``owner/name``. Failures raise
    :class:`~todo_goblin.exceptions.ExternalServiceError`; converting them to
    structured results is the caller's job.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Authenticate against the service."""
        pass

    @abstractmethod
    async def list_open(self, repo: str) -> list[ReviewRecord]:
        """List open review records."""
        pass

    @abstractmethod
    async def list_draft(self, repo: str) -> list[ReviewRecord]:
        """List open review records that are drafts."""
        pass

    @abstractmethod
    async def create(
        self,
        repo: str,
        branch: str,
        title: str,
        body: str,
        base: str | None = None,
    ) -> ReviewRecord:
        """Open a draft review record for ``branch``.

        Args:
            base: Target branch; the repository default when None
        """
        pass

    @abstractmethod
    async def update_title(self, repo: str, number: int, title: str) -> None:
        pass

    @abstractmethod
    async def list_issues(self, repo: str, label: str) -> list[IssueItem]:
        """List open issues carrying ``label``, excluding pull requests."""
        pass


class AgentRunner(ABC):
    """The external AI delegate CLI."""

    @abstractmethod
    async def version_probe(self) -> bool:
        """Cheap check that the delegate can be started."""
        pass

    @abstractmethod
    async def run(
        self,
        working_dir: Path,
        prompt: str,
        timeout: float | None = None,
        on_line: OutputCallback | None = None,
    ) -> StreamedRun:
        """Run the delegate in ``working_dir`` with ``prompt``, streaming output."""
        pass
