"""
Configuration system using Pydantic for type-safe settings management.

Settings live in a single YAML file (``~/.config/todo-goblin/config.yaml`` by
default) describing the shared workspace root, provider credentials, the
delegate command and one entry per project. The file is read once at process
start and the resulting :class:`GoblinSettings` value is passed explicitly to
the components that need it.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from todo_goblin.enums import TaskOrigin
from todo_goblin.exceptions import ConfigurationError

CONFIG_PATH_ENV = "TODO_GOBLIN_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "todo-goblin" / "config.yaml"

REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


def default_config_path() -> Path:
    """Return the settings file path, honouring ``TODO_GOBLIN_CONFIG``."""
    override = os.getenv(CONFIG_PATH_ENV)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


class WorkspaceConfig(BaseModel):
    """Where isolated workspaces are created."""

    base_path: str = Field(
        default="~/.todo-goblin/worktrees",
        description="Root directory for per-task worktrees",
    )

    @property
    def resolved_base_path(self) -> Path:
        return Path(self.base_path).expanduser()


class GitHubConfig(BaseModel):
    """GitHub access for review records and issue-tracker backlogs.

    The token may be given inline, through a ``${GITHUB_TOKEN}`` placeholder,
    or omitted entirely in which case the ``GITHUB_TOKEN`` environment
    variable is used at connect time.
    """

    token: SecretStr | None = Field(default=None, description="Personal access token")
    base_url: str = Field(default="https://api.github.com", description="API base URL")

    def resolve_token(self) -> str | None:
        if self.token is not None:
            return self.token.get_secret_value()
        return os.getenv("GITHUB_TOKEN")


class TimeoutConfig(BaseModel):
    """Delegate time budget in seconds, per estimated complexity tier."""

    simple: int = Field(default=180, ge=1)
    medium: int = Field(default=300, ge=1)
    complex: int = Field(default=600, ge=1)


class AgentConfig(BaseModel):
    """External AI delegate configuration."""

    command: list[str] = Field(
        default_factory=lambda: ["claude", "--print", "--dangerously-skip-permissions"],
        min_length=1,
        description="Delegate argv; the prompt is written to its stdin",
    )
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    context_extensions: list[str] = Field(
        default_factory=lambda: ["py", "md", "org", "toml", "yaml", "yml", "cfg", "txt"],
        description="File extensions considered when listing relevant context files",
    )
    max_context_files: int = Field(default=5, ge=0)


class ProjectConfig(BaseModel):
    """A repository whose backlog todo-goblin works through."""

    cwd: str = Field(..., description="Absolute path of the local repository")
    repo: str = Field(..., description="Remote repository in owner/name form")
    todo_type: Literal["org", "github"] = Field(default="org", description="Backlog source type")
    todo_file: str = Field(default="todo.org", description="Org file, relative to cwd")
    issues_label: str = Field(default="todo", description="Issue label marking backlog items")
    cron: str = Field(default="0 9 * * *", description="Schedule hint for external schedulers")
    base_branch: str | None = Field(
        default=None,
        description="Target branch for review records (provider default when unset)",
    )

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, value: str) -> str:
        if not REPO_PATTERN.match(value):
            raise ValueError(f"repo must be in owner/name form, got: {value}")
        return value

    @property
    def origin(self) -> TaskOrigin:
        return TaskOrigin.ISSUE_TRACKER if self.todo_type == "github" else TaskOrigin.DOCUMENT

    @property
    def todo_path(self) -> Path:
        return Path(self.cwd) / self.todo_file


class GoblinSettings(BaseSettings):
    """Root settings object.

    Combines all configuration sections and provides loading from YAML with
    environment variable interpolation.
    """

    model_config = SettingsConfigDict(
        env_prefix="TODO_GOBLIN_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    projects: dict[str, ProjectConfig] = Field(default_factory=dict)

    def get_project(self, name: str) -> ProjectConfig | None:
        return self.projects.get(name)

    def find_project_by_cwd(self, cwd: str | Path) -> tuple[str, ProjectConfig] | None:
        """Find the project whose ``cwd`` is the given directory."""
        target = Path(cwd).expanduser().resolve()
        for name, project in self.projects.items():
            if Path(project.cwd).expanduser().resolve() == target:
                return name, project
        return None

    def to_display_dict(self) -> dict[str, Any]:
        """Serializable view with secrets masked."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> GoblinSettings | None:
        """Load settings, returning None when no settings file exists.

        Raises:
            ConfigurationError: If the file exists but is invalid
        """
        path = Path(config_path).expanduser() if config_path else default_config_path()
        if not path.exists():
            return None
        return cls.from_yaml(str(path))

    @classmethod
    def from_yaml(cls, config_path: str) -> GoblinSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            GoblinSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))


def save_project(config_path: str | Path, name: str, project: ProjectConfig) -> Path:
    """Add or replace a project entry in the settings file.

    The file is edited as raw YAML so that other sections, including any
    ``${VAR}`` placeholders, are written back untouched. Missing parent
    directories are created.

    Returns:
        The path written
    """
    path = Path(config_path).expanduser()
    data: dict[str, Any] = {}
    if path.exists():
        try:
            loaded = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {path}: {e}") from e
        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")
            data = loaded

    data.setdefault("workspace", WorkspaceConfig().model_dump())
    projects = data.get("projects") or {}
    projects[name] = project.model_dump(exclude_none=True)
    data["projects"] = projects

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path
