"""CLI entry point for todo-goblin (``tgbl``)."""

import asyncio
import os
import sys
from pathlib import Path

import click
import structlog

from todo_goblin.catalog import catalog_for, tasks_summary
from todo_goblin.cli.config import config_group
from todo_goblin.cli.status import collect_status, render_status
from todo_goblin.config.settings import GoblinSettings, default_config_path
from todo_goblin.engine.pipeline import no_configuration_outcome, run_once
from todo_goblin.engine.workspace import WorkspaceManager
from todo_goblin.exceptions import ConfigurationError, TodoGoblinError
from todo_goblin.models.domain import AttemptOutcome, Task
from todo_goblin.providers.agent_cli import AgentCLI
from todo_goblin.providers.git_cli import GitCLI
from todo_goblin.providers.github_rest import GitHubReviewProvider
from todo_goblin.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the settings file (default: ~/.config/todo-goblin/config.yaml)",
)
@click.option("--log-level", default="INFO", help="Logging level")
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"]),
    default="json",
    help="Log output format",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str, log_format: str) -> None:
    """todo-goblin: let an AI agent work through your backlog, one task per run."""
    configure_logging(log_level, log_format)

    path = config_path.expanduser() if config_path else default_config_path()
    try:
        settings = GoblinSettings.load(path)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {"settings": settings, "config_path": path}


cli.add_command(config_group)


def _require_settings(ctx: click.Context) -> GoblinSettings:
    settings: GoblinSettings | None = ctx.obj["settings"]
    if settings is None:
        click.echo("No configuration found. Run 'tgbl config init' first.", err=True)
        sys.exit(1)
    return settings


def _review_provider(settings: GoblinSettings) -> GitHubReviewProvider:
    return GitHubReviewProvider(settings.github.resolve_token(), base_url=settings.github.base_url)


def _run_async(coro, command: str):  # type: ignore[no-untyped-def]
    """Run a coroutine with the CLI's shared error handling."""
    try:
        return asyncio.run(coro)
    except TodoGoblinError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug(f"{command}_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error(f"{command}_unexpected", exc_info=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show tasks, open PRs and active worktrees of every project."""
    settings = _require_settings(ctx)
    if not settings.projects:
        click.echo("No projects configured. Run 'tgbl config init' to add one.")
        return

    async def _status() -> str:
        reviews = _review_provider(settings)
        try:
            report = await collect_status(settings, reviews, WorkspaceManager(GitCLI()))
        finally:
            await reviews.disconnect()
        return render_status(report)

    click.echo(_run_async(_status(), "status"))


@cli.command()
@click.argument("project", required=False)
@click.pass_context
def tasks(ctx: click.Context, project: str | None) -> None:
    """List the pending tasks of PROJECT (default: the current directory's project)."""
    settings = _require_settings(ctx)

    if project:
        project_config = settings.get_project(project)
        project_name = project
    else:
        found = settings.find_project_by_cwd(os.getcwd())
        project_name, project_config = found if found else (os.getcwd(), None)

    if project_config is None:
        click.echo(f"No project configured for '{project_name}'. Run 'tgbl config init' to set it up.", err=True)
        sys.exit(1)

    async def _tasks() -> list[Task]:
        reviews = _review_provider(settings)
        try:
            return await catalog_for(project_config, reviews).read(project_name, project_config)
        finally:
            await reviews.disconnect()

    click.echo(tasks_summary(_run_async(_tasks(), "tasks")))


def _echo_output(stream: str, line: str) -> None:
    click.echo(line, err=stream == "stderr")


@cli.command()
@click.argument("project", required=False)
@click.pass_context
def run(ctx: click.Context, project: str | None) -> None:
    """Work on one task of PROJECT (default: the current directory's project)."""
    settings: GoblinSettings | None = ctx.obj["settings"]

    async def _run(settings: GoblinSettings) -> AttemptOutcome:
        reviews = _review_provider(settings)
        try:
            return await run_once(
                settings,
                vcs=GitCLI(),
                reviews=reviews,
                agent=AgentCLI(settings.agent.command),
                project_name=project,
                cwd=os.getcwd(),
                on_output=_echo_output,
            )
        finally:
            await reviews.disconnect()

    if settings is None:
        outcome = no_configuration_outcome()
    else:
        outcome = _run_async(_run(settings), "run")
    click.echo(f"[{outcome.status}] {outcome.message}")
    if outcome.record_url:
        click.echo(f"PR: {outcome.record_url}")
    sys.exit(0 if outcome.status.is_success else 1)


if __name__ == "__main__":
    cli()
