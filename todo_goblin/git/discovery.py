"""Detect the ``owner/name`` of a local repository from its remotes."""

from pathlib import Path

import git
import structlog
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from todo_goblin.exceptions import InvalidGitUrlError
from todo_goblin.git.parser import GitUrlParser

log = structlog.get_logger(__name__)

PREFERRED_REMOTES = ("origin", "upstream")


def detect_repo_slug(repo_path: str | Path) -> str | None:
    """Return ``owner/name`` for the repository at ``repo_path``.

    The ``origin`` remote is preferred, then ``upstream``, then the first
    remote. None when the path is not a repository, has no remotes, or the
    remote URL cannot be parsed.
    """
    try:
        repo = git.Repo(Path(repo_path), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        log.debug("not_a_git_repository", path=str(repo_path))
        return None

    remotes = {remote.name: remote for remote in repo.remotes}
    if not remotes:
        return None

    chosen = next((remotes[name] for name in PREFERRED_REMOTES if name in remotes), None)
    if chosen is None:
        chosen = next(iter(remotes.values()))

    try:
        return GitUrlParser(chosen.url).full_name
    except InvalidGitUrlError as e:
        log.debug("remote_url_unparseable", remote=chosen.name, error=e.message)
        return None
