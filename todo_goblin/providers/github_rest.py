"""GitHub review-record provider implementation using PyGithub."""

import asyncio
from collections.abc import Callable
from typing import TypeVar

import structlog
from github import Auth, Github, GithubException  # type: ignore[import-not-found]
from github.Issue import Issue as GHIssue  # type: ignore[import-not-found]
from github.PullRequest import PullRequest as GHPullRequest  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]

from todo_goblin.enums import ReviewState
from todo_goblin.exceptions import ExternalServiceError
from todo_goblin.models.domain import IssueItem, ReviewRecord
from todo_goblin.providers.base import ReviewProvider

log = structlog.get_logger(__name__)

T = TypeVar("T")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous function in a thread pool.

    This prevents blocking the event loop when calling synchronous
    PyGithub methods.
    """
    return await asyncio.to_thread(func)


def _service_error(action: str, e: GithubException) -> ExternalServiceError:
    detail = e.data.get("message") if isinstance(e.data, dict) else None
    return ExternalServiceError(f"GitHub {action} failed: {detail or e}", status_code=e.status)


class GitHubReviewProvider(ReviewProvider):
    """Pull requests and issues on GitHub (or GitHub Enterprise).

    Repository handles are looked up once per ``owner/name`` and cached for
    the lifetime of the provider.
    """

    def __init__(self, token: str | None, base_url: str = "https://api.github.com"):
        """Initialize GitHub provider.

        Args:
            token: GitHub personal access token
            base_url: GitHub API base URL (for GitHub Enterprise)
        """
        self.token = token.strip() if token else token
        self.base_url = base_url.rstrip("/")
        self._client: Github | None = None
        self._repos: dict[str, GHRepository] = {}

    async def connect(self) -> None:
        """Initialize the GitHub client and verify the token."""
        if not self.token:
            raise ExternalServiceError(
                "No GitHub token configured. Set github.token in the settings file "
                "or the GITHUB_TOKEN environment variable."
            )

        def _connect() -> tuple[Github, str]:
            client = Github(auth=Auth.Token(self.token), base_url=self.base_url)
            return client, client.get_user().login

        try:
            self._client, login = await _run_sync(_connect)
        except GithubException as e:
            raise _service_error("authentication", e) from e
        log.info("github_connected", base_url=self.base_url, user=login)

    async def disconnect(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
            self._repos.clear()

    async def _repo(self, repo: str) -> GHRepository:
        if self._client is None:
            await self.connect()
        if repo not in self._repos:
            try:
                self._repos[repo] = await _run_sync(lambda: self._client.get_repo(repo))
            except GithubException as e:
                raise _service_error(f"lookup of {repo}", e) from e
        return self._repos[repo]

    async def list_open(self, repo: str) -> list[ReviewRecord]:
        """List open pull requests."""
        gh_repo = await self._repo(repo)
        try:
            pulls = await _run_sync(lambda: list(gh_repo.get_pulls(state="open")))
        except GithubException as e:
            log.error("github_list_pulls_failed", repo=repo, error=str(e))
            raise _service_error("pull request listing", e) from e
        return [self._convert_pull_request(pr) for pr in pulls]

    async def list_draft(self, repo: str) -> list[ReviewRecord]:
        return [record for record in await self.list_open(repo) if record.is_draft]

    async def create(
        self,
        repo: str,
        branch: str,
        title: str,
        body: str,
        base: str | None = None,
    ) -> ReviewRecord:
        """Open a draft pull request."""
        log.info("create_pull_request", repo=repo, head=branch, base=base)
        gh_repo = await self._repo(repo)

        def _create_pr() -> GHPullRequest:
            return gh_repo.create_pull(
                title=title,
                body=body,
                head=branch,
                base=base or gh_repo.default_branch,
                draft=True,
            )

        try:
            gh_pr = await _run_sync(_create_pr)
        except GithubException as e:
            log.error("github_create_pr_failed", repo=repo, head=branch, error=str(e))
            raise _service_error("pull request creation", e) from e
        return self._convert_pull_request(gh_pr)

    async def update_title(self, repo: str, number: int, title: str) -> None:
        gh_repo = await self._repo(repo)

        def _update() -> None:
            gh_repo.get_pull(number).edit(title=title)

        try:
            await _run_sync(_update)
        except GithubException as e:
            log.error("github_update_pr_failed", repo=repo, number=number, error=str(e))
            raise _service_error(f"title update of #{number}", e) from e

    async def list_issues(self, repo: str, label: str) -> list[IssueItem]:
        """Retrieve open issues with ``label``; pull requests are dropped."""
        gh_repo = await self._repo(repo)

        def _get_issues() -> list[GHIssue]:
            label_obj = gh_repo.get_label(label)
            return list(gh_repo.get_issues(state="open", labels=[label_obj]))

        try:
            gh_issues = await _run_sync(_get_issues)
        except GithubException as e:
            log.error("github_get_issues_failed", repo=repo, label=label, error=str(e))
            raise _service_error("issue listing", e) from e
        return [self._convert_issue(issue) for issue in gh_issues if issue.pull_request is None]

    def _convert_issue(self, gh_issue: GHIssue) -> IssueItem:
        """Convert GitHub Issue to our IssueItem model."""
        return IssueItem(
            number=gh_issue.number,
            title=gh_issue.title,
            body=gh_issue.body or "",
            labels=[label.name for label in gh_issue.labels],
            url=gh_issue.html_url,
        )

    def _convert_pull_request(self, gh_pr: GHPullRequest) -> ReviewRecord:
        """Convert GitHub PullRequest to our ReviewRecord model."""
        if gh_pr.state == "open":
            state = ReviewState.OPEN
        elif gh_pr.merged:
            state = ReviewState.MERGED
        else:
            state = ReviewState.CLOSED

        return ReviewRecord(
            number=gh_pr.number,
            title=gh_pr.title,
            state=state,
            is_draft=bool(gh_pr.draft),
            branch=gh_pr.head.ref,
            url=gh_pr.html_url,
        )
