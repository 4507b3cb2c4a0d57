"""Configuration loading for todo-goblin."""

from todo_goblin.config.settings import (
    AgentConfig,
    GitHubConfig,
    GoblinSettings,
    ProjectConfig,
    TimeoutConfig,
    WorkspaceConfig,
    default_config_path,
    save_project,
)

__all__ = [
    "AgentConfig",
    "GitHubConfig",
    "GoblinSettings",
    "ProjectConfig",
    "TimeoutConfig",
    "WorkspaceConfig",
    "default_config_path",
    "save_project",
]
