"""Tests for todo_goblin.engine.delegate."""

from dataclasses import replace

import pytest

from todo_goblin.config.settings import AgentConfig
from todo_goblin.engine.delegate import (
    ExecutionDelegate,
    complexity_score,
    estimate_complexity,
    find_relevant_files,
)
from todo_goblin.enums import Complexity
from todo_goblin.exceptions import AgentUnavailableError, WorkspaceError


@pytest.fixture
def delegate(fake_agent):
    return ExecutionDelegate(fake_agent, AgentConfig())


class TestComplexity:
    """Complexity scoring and tiers."""

    def test_simple(self, sample_task):
        """Should rate a short plain task as simple."""
        task = replace(sample_task, description="Small fix.")

        assert complexity_score(task) == 0
        assert estimate_complexity(task) == Complexity.SIMPLE

    def test_medium(self, sample_task):
        """Should rate a refactor as medium."""
        task = replace(sample_task, description="Refactor the parser.")

        assert complexity_score(task) == 2
        assert estimate_complexity(task) == Complexity.MEDIUM

    def test_complex(self, sample_task):
        """Should rate long refactors with tests as complex."""
        task = replace(sample_task, description="Refactor and test everything. " + "x" * 500)

        assert complexity_score(task) == 5
        assert estimate_complexity(task) == Complexity.COMPLEX

    def test_long_title(self, sample_task):
        """Should add one point for titles over ten words."""
        task = replace(sample_task, title="one two three four five six seven eight nine ten eleven", description="")

        assert complexity_score(task) == 1

    def test_timeout_tiers(self, delegate, sample_task):
        """Should map tiers to configured budgets."""
        assert delegate.timeout_for(replace(sample_task, description="tiny")) == 180
        assert delegate.timeout_for(replace(sample_task, description="refactor")) == 300
        assert delegate.timeout_for(replace(sample_task, description="refactor test " + "x" * 600)) == 600


class TestPrompt:
    """Prompt rendering."""

    def test_contains_task_fields(self, delegate, sample_task):
        """Should embed title, description and id."""
        prompt = delegate.build_prompt(sample_task, [])

        assert "TASK: Fix authentication bug in login module" in prompt
        assert "DESCRIPTION: Users cannot log in with uppercase emails." in prompt
        assert "TASK ID: task-123456789" in prompt
        assert "RELEVANT CONTEXT FILES" not in prompt
        assert prompt.rstrip().endswith("ensure they pass.")

    def test_lists_context_files(self, delegate, sample_task):
        """Should enumerate context files when given."""
        prompt = delegate.build_prompt(sample_task, ["src/auth.py", "tests/test_auth.py"])

        assert "RELEVANT CONTEXT FILES:\n- src/auth.py\n- tests/test_auth.py" in prompt

    def test_deterministic(self, delegate, sample_task):
        """Should render the same prompt for the same input."""
        assert delegate.build_prompt(sample_task, ["a.py"]) == delegate.build_prompt(sample_task, ["a.py"])


class TestRelevantFiles:
    """Context file discovery."""

    def test_matches_title_words(self, tmp_path, sample_task):
        """Should list files named after title words with known extensions."""
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "authentication.py").write_text("")
        (tmp_path / "src" / "login.md").write_text("")
        (tmp_path / "src" / "login.png").write_text("")
        (tmp_path / "unrelated.py").write_text("")

        files = find_relevant_files(tmp_path, sample_task, ["py", "md"])

        assert files == ["src/authentication.py", "src/login.md"]

    def test_skips_hidden_directories(self, tmp_path, sample_task):
        """Should not descend into .git or hidden directories."""
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "login.py").write_text("")

        assert find_relevant_files(tmp_path, sample_task, ["py"]) == []

    def test_limit(self, tmp_path, sample_task):
        """Should return at most limit files."""
        for i in range(8):
            (tmp_path / f"login_{i}.py").write_text("")

        assert len(find_relevant_files(tmp_path, sample_task, ["py"], limit=5)) == 5

    def test_ignores_short_words(self, tmp_path, sample_task):
        """Should not match on words shorter than three characters."""
        (tmp_path / "index.py").write_text("")

        assert find_relevant_files(tmp_path, sample_task, ["py"]) == []


class TestExecute:
    """Running the delegate."""

    @pytest.mark.asyncio
    async def test_success(self, delegate, fake_agent, sample_task, tmp_path):
        """Should report success with collected output."""
        seen = []

        result = await delegate.execute(
            str(tmp_path), sample_task, ["a.py"], timeout=60, on_output=lambda s, l: seen.append((s, l))
        )

        assert result.success
        assert result.exit_code == 0
        assert result.output == "working\ndone"
        assert seen == [("stdout", "working"), ("stdout", "done")]
        assert fake_agent.timeouts == [60]
        assert "- a.py" in fake_agent.prompts[0]

    @pytest.mark.asyncio
    async def test_estimated_timeout(self, delegate, fake_agent, sample_task, tmp_path):
        """Should use the complexity budget when no timeout is given."""
        await delegate.execute(str(tmp_path), sample_task)

        assert fake_agent.timeouts == [180]

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, delegate, fake_agent, sample_task, tmp_path):
        """Should report failure with stderr as the error."""
        fake_agent.return_code = 1
        fake_agent.stderr_lines = ["boom"]

        result = await delegate.execute(str(tmp_path), sample_task)

        assert not result.success
        assert not result.timed_out
        assert result.exit_code == 1
        assert result.error == "boom"

    @pytest.mark.asyncio
    async def test_timeout(self, delegate, fake_agent, sample_task, tmp_path):
        """Should flag timeouts separately from failures."""
        fake_agent.timed_out = True

        result = await delegate.execute(str(tmp_path), sample_task, timeout=5)

        assert not result.success
        assert result.timed_out
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_agent_unavailable(self, delegate, fake_agent, sample_task, tmp_path):
        """Should raise when the version probe fails."""
        fake_agent.available = False

        with pytest.raises(AgentUnavailableError):
            await delegate.execute(str(tmp_path), sample_task)
        assert fake_agent.prompts == []

    @pytest.mark.asyncio
    async def test_missing_workspace(self, delegate, fake_agent, sample_task, tmp_path):
        """Should raise when the workspace does not exist."""
        with pytest.raises(WorkspaceError, match="does not exist"):
            await delegate.execute(str(tmp_path / "missing"), sample_task)
        assert fake_agent.prompts == []

    @pytest.mark.asyncio
    async def test_workspace_not_directory(self, delegate, sample_task, tmp_path):
        """Should raise when the workspace is a file."""
        path = tmp_path / "file"
        path.write_text("")

        with pytest.raises(WorkspaceError, match="not a directory"):
            await delegate.execute(str(path), sample_task)
