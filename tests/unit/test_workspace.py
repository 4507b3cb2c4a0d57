"""Tests for todo_goblin.engine.workspace."""

import shutil

import git
import pytest

from todo_goblin.engine.workspace import WorkspaceManager, workspace_path_for
from todo_goblin.exceptions import GitOperationError
from todo_goblin.models.domain import OperationResult, WorktreeInfo
from todo_goblin.providers.git_cli import GitCLI


@pytest.fixture
def manager(fake_vcs):
    return WorkspaceManager(fake_vcs, settle_delay=0)


class TestWorkspacePath:
    """Path derivation."""

    def test_layout(self, tmp_path):
        """Should nest by project and task id."""
        assert workspace_path_for(tmp_path, "billing", "abc") == tmp_path / "billing" / "abc"


class TestCreate:
    """Creating worktrees."""

    @pytest.mark.asyncio
    async def test_success(self, manager, fake_vcs, tmp_path):
        """Should fetch, branch from the default branch and verify the directory."""
        path = str(tmp_path / "wt" / "billing" / "t1")

        result = await manager.create("/repo", path, "tgbl/x-t1")

        assert result.success
        assert result.workspace_path == path
        assert result.branch_name == "tgbl/x-t1"
        assert fake_vcs.called("fetch") == [("fetch", "/repo")]
        assert fake_vcs.called("worktree_add") == [("worktree_add", "/repo", path, "tgbl/x-t1", "origin/main")]

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, manager, tmp_path):
        """Should create missing parent directories."""
        path = tmp_path / "deep" / "nested" / "t1"

        await manager.create("/repo", str(path), "tgbl/x")

        assert path.parent.is_dir()

    @pytest.mark.asyncio
    async def test_fetch_failure_not_fatal(self, manager, fake_vcs, tmp_path):
        """Should continue when fetch fails."""
        fake_vcs.fetch_result = OperationResult.failure("no network")

        result = await manager.create("/repo", str(tmp_path / "t1"), "tgbl/x")

        assert result.success

    @pytest.mark.asyncio
    async def test_add_failure(self, manager, fake_vcs, tmp_path):
        """Should report git's error text."""
        fake_vcs.add_result = OperationResult.failure("fatal: a branch named 'tgbl/x' already exists")

        result = await manager.create("/repo", str(tmp_path / "t1"), "tgbl/x")

        assert not result.success
        assert "already exists" in result.error

    @pytest.mark.asyncio
    async def test_directory_not_accessible(self, manager, fake_vcs, tmp_path):
        """Should fail when the directory does not appear."""
        fake_vcs.create_directory = False
        path = str(tmp_path / "t1")

        result = await manager.create("/repo", path, "tgbl/x")

        assert not result.success
        assert result.error == f"Worktree directory not accessible after creation: {path}"

    @pytest.mark.asyncio
    async def test_raised_fault_becomes_result(self, manager, fake_vcs, tmp_path):
        """Should convert provider exceptions into a failed result."""

        async def broken(repo_path):
            raise GitOperationError("git not installed")

        fake_vcs.resolve_default_branch = broken

        result = await manager.create("/repo", str(tmp_path / "t1"), "tgbl/x")

        assert not result.success
        assert "git not installed" in result.error


class TestRemoveAndCleanup:
    """Tearing worktrees down."""

    @pytest.mark.asyncio
    async def test_remove_absent_is_ok(self, manager, fake_vcs, tmp_path):
        """Should treat a never-created workspace as removed and prune stale registrations."""
        result = await manager.remove(str(tmp_path / "never"), "/repo")

        assert result.success
        assert fake_vcs.called("worktree_remove") == []
        assert fake_vcs.called("worktree_prune") == [("worktree_prune", "/repo")]

    @pytest.mark.asyncio
    async def test_remove_absent_reports_prune_failure(self, manager, fake_vcs, tmp_path):
        """Should surface a failed prune."""
        fake_vcs.prune_result = OperationResult.failure("fatal: not a git repository")

        result = await manager.remove(str(tmp_path / "never"), "/repo")

        assert not result.success
        assert result.error == "fatal: not a git repository"

    @pytest.mark.asyncio
    async def test_remove_existing(self, manager, fake_vcs, tmp_path):
        """Should ask git to remove an existing worktree."""
        path = tmp_path / "wt"
        path.mkdir()

        result = await manager.remove(str(path), "/repo")

        assert result.success
        assert fake_vcs.called("worktree_remove") == [("worktree_remove", "/repo", str(path))]

    @pytest.mark.asyncio
    async def test_cleanup_deletes_branches(self, manager, fake_vcs, tmp_path):
        """Should delete the remote and local branch after removal."""
        path = tmp_path / "wt"
        path.mkdir()

        result = await manager.cleanup(str(path), "tgbl/x", "/repo")

        assert result.success
        assert fake_vcs.called("delete_remote_branch") == [("delete_remote_branch", "/repo", "tgbl/x")]
        assert fake_vcs.called("delete_branch") == [("delete_branch", "/repo", "tgbl/x")]

    @pytest.mark.asyncio
    async def test_cleanup_stops_when_remove_fails(self, manager, fake_vcs, tmp_path):
        """Should keep the branch when the worktree could not be removed."""
        path = tmp_path / "wt"
        path.mkdir()
        fake_vcs.remove_result = OperationResult.failure("locked")

        result = await manager.cleanup(str(path), "tgbl/x", "/repo")

        assert not result.success
        assert fake_vcs.called("delete_remote_branch") == []

    @pytest.mark.asyncio
    async def test_cleanup_tolerates_remote_delete_failure(self, manager, fake_vcs, tmp_path):
        """Should succeed even if the remote branch cannot be deleted."""
        fake_vcs.delete_remote_result = OperationResult.failure("remote ref does not exist")

        result = await manager.cleanup(str(tmp_path / "never"), "tgbl/x", "/repo")

        assert result.success


class TestListActive:
    """Discovering active workspaces."""

    @pytest.mark.asyncio
    async def test_filters_tool_branches(self, manager, fake_vcs):
        """Should keep only tgbl/ branches."""
        fake_vcs.worktrees = [
            WorktreeInfo("/repo", "main"),
            WorktreeInfo("/wt/a", "tgbl/add-a-1234"),
            WorktreeInfo("/wt/b", "feature/b"),
        ]

        active = await manager.list_active("/repo")

        assert active == [WorktreeInfo("/wt/a", "tgbl/add-a-1234")]


class TestVanishedWorkspace:
    """Cleanup of a worktree whose directory disappeared."""

    @pytest.mark.asyncio
    async def test_cleanup_releases_registration(self, manager, fake_vcs, tmp_path):
        """Should drop the registration so the branch is deleted and the task freed."""
        path = str(tmp_path / "wt" / "billing" / "t1")
        created = await manager.create("/repo", path, "tgbl/x-t1")
        assert created.success
        shutil.rmtree(path)

        result = await manager.cleanup(path, "tgbl/x-t1", "/repo")

        assert result.success
        assert fake_vcs.called("worktree_prune") == [("worktree_prune", "/repo")]
        assert await manager.list_active("/repo") == []
        assert fake_vcs.registered == {}

    @pytest.mark.asyncio
    @pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")
    async def test_cleanup_with_real_git(self, tmp_path):
        """Should leave no registered worktree and no branch behind."""
        repo_path = tmp_path / "repo"
        repo = git.Repo.init(repo_path)
        actor = git.Actor("Goblin", "goblin@example.com")
        repo.index.commit("init", author=actor, committer=actor)
        manager = WorkspaceManager(GitCLI(), settle_delay=0)
        path = str(tmp_path / "wt" / "billing" / "t1")

        created = await manager.create(str(repo_path), path, "tgbl/x-t1")
        assert created.success
        assert [wt.branch for wt in await manager.list_active(str(repo_path))] == ["tgbl/x-t1"]
        shutil.rmtree(path)

        result = await manager.cleanup(path, "tgbl/x-t1", str(repo_path))

        assert result.success
        assert await manager.list_active(str(repo_path)) == []
        assert "tgbl/x-t1" not in [head.name for head in repo.heads]
