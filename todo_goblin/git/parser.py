"""Git URL parsing utilities.

Supported URL formats:
    SSH:
        - git@github.com:owner/repo.git
        - git@github.com:owner/repo

    HTTPS:
        - https://github.com/owner/repo.git
        - https://github.com:8443/owner/repo

Example:
    >>> parser = GitUrlParser("git@github.com:owner/repo.git")
    >>> parser.full_name
    'owner/repo'
"""

import re

from todo_goblin.exceptions import InvalidGitUrlError


class GitUrlParser:
    """Parser for Git remote URLs in SSH and HTTPS formats.

    Attributes:
        url: Original URL that was parsed.
        host: Hostname of the Git server.
        owner: Repository owner (for nested groups, everything but the last part).
        repo: Repository name without the ``.git`` suffix.
    """

    SSH_PATTERN = re.compile(r"^(?P<user>\w+)@(?P<host>[a-zA-Z0-9._-]+):(?P<path>.+?)(?:\.git)?/?$")
    HTTPS_PATTERN = re.compile(r"^https?://(?:[^@/]+@)?(?P<host>[a-zA-Z0-9._-]+)(?::\d+)?/(?P<path>.+?)(?:\.git)?/?$")

    def __init__(self, url: str) -> None:
        """Parse ``url``.

        Raises:
            InvalidGitUrlError: If the URL is not SSH or HTTPS or lacks owner/repo.
        """
        self.url = url.strip()
        match = self.SSH_PATTERN.match(self.url) or self.HTTPS_PATTERN.match(self.url)
        if not match:
            raise InvalidGitUrlError(
                self.url,
                reason="Must be SSH (git@host:path) or HTTPS (https://host/path)",
            )

        self.host = match.group("host")
        parts = [part for part in match.group("path").split("/") if part]
        if len(parts) < 2:
            raise InvalidGitUrlError(self.url, reason="Path must contain owner/repo")
        self.owner = "/".join(parts[:-1])
        self.repo = parts[-1]

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"
