"""Local repository inspection."""

from todo_goblin.git.discovery import detect_repo_slug
from todo_goblin.git.parser import GitUrlParser

__all__ = ["GitUrlParser", "detect_repo_slug"]
