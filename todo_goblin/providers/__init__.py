"""Collaborator implementations the orchestration pipeline talks to."""

from todo_goblin.providers.agent_cli import AgentCLI
from todo_goblin.providers.base import AgentRunner, ReviewProvider, VersionControl
from todo_goblin.providers.git_cli import GitCLI
from todo_goblin.providers.github_rest import GitHubReviewProvider

__all__ = [
    "AgentCLI",
    "AgentRunner",
    "GitCLI",
    "GitHubReviewProvider",
    "ReviewProvider",
    "VersionControl",
]
