"""Custom exception hierarchy for todo-goblin.

Exception Hierarchy:
    TodoGoblinError (base)
    ├── ConfigurationError
    ├── GitOperationError
    │   └── InvalidGitUrlError
    ├── WorkspaceError
    ├── AgentError
    │   └── AgentUnavailableError
    ├── ExternalServiceError
    └── PipelineError

Collaborators return structured failure results for expected failures (a
non-zero exit from git, a rejected API call). These exceptions are reserved
for precondition failures and for faults that cross a boundary unexpectedly.

Example Usage:
    >>> from todo_goblin.exceptions import ConfigurationError
    >>> try:
    ...     settings = GoblinSettings.from_yaml(path)
    ... except ConfigurationError as e:
    ...     print(e.message)
"""


class TodoGoblinError(Exception):
    """Base exception for all todo-goblin errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(TodoGoblinError):
    """Settings file is unreadable, malformed, or missing required fields."""

    pass


class GitOperationError(TodoGoblinError):
    """A version-control command could not be executed at all.

    Non-zero exits are reported as structured results; this is raised only
    when the command itself could not be started (missing ``git`` binary,
    inaccessible working directory).
    """

    pass


class WorkspaceError(TodoGoblinError):
    """The isolated workspace does not exist or is not a directory.

    Attributes:
        path: Workspace path that failed the check
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        full_message = f"{message}: {path}" if path else message
        super().__init__(full_message)


class AgentError(TodoGoblinError):
    """Base exception for delegate (AI agent CLI) errors.

    Attributes:
        task_id: Task being executed when the error occurred
    """

    def __init__(self, message: str, task_id: str | None = None) -> None:
        self.task_id = task_id
        full_message = f"{message} (task: {task_id})" if task_id else message
        super().__init__(full_message)
        self.message = message


class AgentUnavailableError(AgentError):
    """The delegate CLI is not installed or failed its version probe."""

    pass


class ExternalServiceError(TodoGoblinError):
    """The review-record provider rejected or failed a request.

    Attributes:
        status_code: HTTP status code, when known
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        full_message = f"{message} (HTTP {status_code})" if status_code else message
        super().__init__(full_message)
        self.message = message


class PipelineError(TodoGoblinError):
    """A fault escaped a pipeline step.

    Attributes:
        state: Pipeline state in which the fault occurred
    """

    def __init__(self, message: str, state: str | None = None) -> None:
        self.state = state
        full_message = f"{state}: {message}" if state else message
        super().__init__(full_message)
        self.message = message


class InvalidGitUrlError(GitOperationError):
    """A remote URL is not a recognizable SSH or HTTPS Git URL.

    Attributes:
        url: The URL that failed to parse
    """

    def __init__(self, url: str, reason: str | None = None) -> None:
        self.url = url
        message = f"Invalid Git URL '{url}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
