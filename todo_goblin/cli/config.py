"""``tgbl config``: create and inspect the settings file."""

import os
import sys
from pathlib import Path

import click
import structlog
import yaml

from todo_goblin.config.settings import REPO_PATTERN, GoblinSettings, ProjectConfig, save_project
from todo_goblin.exceptions import ConfigurationError
from todo_goblin.git.discovery import detect_repo_slug

log = structlog.get_logger(__name__)


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise click.BadParameter("a value is required")
    return value


def _existing_directory(value: str) -> str:
    path = Path(value).expanduser()
    if not path.is_dir():
        raise click.BadParameter(f"{value} is not an existing directory")
    return str(path.resolve())


def _repo_slug(value: str) -> str:
    value = value.strip()
    if not REPO_PATTERN.match(value):
        raise click.BadParameter("use the owner/repo format")
    return value


@click.group(name="config")
def config_group() -> None:
    """Create or show the todo-goblin settings file."""
    pass


@config_group.command(name="init")
@click.pass_context
def init_command(ctx: click.Context) -> None:
    """Interactively add a project to the settings file."""
    config_path: Path = ctx.obj["config_path"]

    click.echo(click.style("Initializing todo-goblin configuration", bold=True, fg="cyan"))
    click.echo("This will add a project to " + str(config_path))
    click.echo()

    name = click.prompt("Project name", value_proc=_not_blank)
    cwd = click.prompt("Project directory", default=os.getcwd(), value_proc=_existing_directory)
    detected = detect_repo_slug(cwd)
    repo = click.prompt("GitHub repository (owner/repo)", default=detected, value_proc=_repo_slug)
    todo_type = click.prompt(
        "TODO source type",
        type=click.Choice(["org", "github"]),
        default="org",
    )

    project_data: dict[str, str] = {"cwd": cwd, "repo": repo, "todo_type": todo_type}
    if todo_type == "org":
        project_data["todo_file"] = click.prompt("TODO file (relative to the project)", default="todo.org")
    else:
        project_data["issues_label"] = click.prompt("Issue label marking TODOs", default="todo")

    project = ProjectConfig(**project_data)

    click.echo()
    click.echo(click.style("Configuration to be saved:", bold=True))
    click.echo(yaml.safe_dump({name: project.model_dump(exclude_none=True)}, sort_keys=False))

    if not click.confirm("Save this configuration?", default=True):
        click.echo("Nothing saved.")
        return

    try:
        path = save_project(config_path, name, project)
    except ConfigurationError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)
    log.info("project_saved", project=name, path=str(path))
    click.echo(click.style(f"Configuration saved to {path}", fg="green"))


@config_group.command(name="show")
@click.pass_context
def show_command(ctx: click.Context) -> None:
    """Print the current settings with secrets masked."""
    settings: GoblinSettings | None = ctx.obj["settings"]
    if settings is None:
        click.echo("No configuration found. Run 'tgbl config init' to set up.")
        return

    click.echo(f"# {ctx.obj['config_path']}")
    click.echo(yaml.safe_dump(settings.to_display_dict(), sort_keys=False, allow_unicode=True))
