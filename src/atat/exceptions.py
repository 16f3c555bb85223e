"""Custom exceptions for atat operations."""

from typing import Optional


class AtatError(Exception):
    """Base exception for atat operations."""

    exit_code = 1

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class AuthenticationRequiredError(AtatError):
    """Raised when no usable token is available or the server rejects it."""

    def __init__(self, message: str = "Authentication required. Please run `atat login` first."):
        super().__init__(message)


class NoRepositoryConfiguredError(AtatError):
    """Raised when push/pull runs without a configured repository."""

    def __init__(
        self,
        message: str = "No repository configured. Run `atat remote add <owner>/<repo>` first.",
    ):
        super().__init__(message)


class DocumentNotFoundError(AtatError):
    """Raised when the checklist document does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} file not found")


class InvalidRepositoryFormatError(AtatError):
    """Raised when a repository is not in <owner>/<repo> form."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(f"Invalid repository format: '{repo}'. Expected <owner>/<repo>.")


class RepositoryNotFoundError(AtatError):
    """Raised when a repository does not exist or is not accessible."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(f"Repository {repo} not found or not accessible.")


class NetworkError(AtatError):
    """Raised when a request to GitHub fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class RateLimitError(NetworkError):
    """Raised when the GitHub API rate limit is exhausted."""

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded. Please wait and try again.",
        status: Optional[int] = None,
    ):
        super().__init__(message, status=status)


class AuthExpiredError(AtatError):
    """Raised when the device code expires before the user authorizes it."""

    def __init__(self, message: str = "The device code has expired. Please run `login` again."):
        super().__init__(message)


class AuthDeniedError(AtatError):
    """Raised when the user declines the authorization request."""

    def __init__(self, message: str = "Login cancelled by user."):
        super().__init__(message)


class AuthFlowError(AtatError):
    """Raised when the authorization server answers with an unknown error."""

    def __init__(self, error: str):
        self.error = error
        super().__init__(f"Unknown error: {error}")


class LoginCancelledError(AtatError):
    """Raised when login is interrupted locally."""

    exit_code = 130

    def __init__(self, message: str = "Login interrupted. No token was saved. Run `atat login` to try again."):
        super().__init__(message)


class InvalidTransitionError(AtatError):
    """Raised when a device-flow transition is applied to the wrong state."""

    def __init__(self, transition: str, state: object):
        self.transition = transition
        self.state = state
        super().__init__(f"Cannot {transition} from state {type(state).__name__}")


class ConfigError(AtatError):
    """Raised when the project configuration cannot be read or written."""

    def __init__(self, message: str):
        super().__init__(f"Error loading project config: {message}")


class ConfigurationError(AtatError):
    """Raised when a required environment setting is missing."""

    pass


class DuplicateIssueReferenceError(AtatError):
    """Raised when two checklist items reference the same issue."""

    def __init__(self, number: int, first_position: int, second_position: int):
        self.number = number
        self.first_position = first_position
        self.second_position = second_position
        super().__init__(
            f"Issue #{number} is referenced by more than one item "
            f"(items {first_position + 1} and {second_position + 1})"
        )
