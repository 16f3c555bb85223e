"""GitHub integration module using the REST API."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import requests

from atat.exceptions import (
    AuthenticationRequiredError,
    NetworkError,
    RateLimitError,
    RepositoryNotFoundError,
)
from atat.storage import TokenStore

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
USER_AGENT = "atat-cli"
REQUEST_TIMEOUT = 30
PER_PAGE = 100


class IssueState(Enum):
    """State of a GitHub issue."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class GitHubIssue:
    """Represents a GitHub issue."""

    number: int
    title: str
    state: IssueState

    @property
    def is_open(self) -> bool:
        return self.state is IssueState.OPEN

    @classmethod
    def from_dict(cls, data: dict) -> Optional["GitHubIssue"]:
        """Create GitHubIssue from API response dict.

        Returns:
            GitHubIssue, or None for pull requests and malformed records.
        """
        if data.get("pull_request") is not None:
            return None

        number = data.get("number")
        title = data.get("title")
        state = data.get("state")
        # bool is an int subclass; reject it along with strings and floats
        if not isinstance(number, int) or isinstance(number, bool) or number <= 0:
            return None
        if not isinstance(title, str):
            return None
        try:
            issue_state = IssueState(state)
        except ValueError:
            return None

        return cls(number=number, title=title, state=issue_state)


def parse_issues(data: List[dict]) -> List[GitHubIssue]:
    """Parse a page of issue records, dropping pull requests and bad records."""
    issues = []
    for record in data:
        issue = GitHubIssue.from_dict(record) if isinstance(record, dict) else None
        if issue is None:
            logger.debug("Skipping issue record: %r", record)
            continue
        issues.append(issue)
    return issues


class GitHubClient:
    """Client for the GitHub issues API.

    The token is read from the injected TokenStore on every request, so a
    client can be built before login and used after it.
    """

    def __init__(
        self,
        token_store: TokenStore,
        session: Optional[requests.Session] = None,
        base_url: str = API_URL,
    ):
        self.token_store = token_store
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")

    def _headers(self, require_token: bool = True) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        token = self.token_store.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        elif require_token:
            raise AuthenticationRequiredError()
        return headers

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        require_token: bool = True,
    ) -> requests.Response:
        """Send a request and return the raw response.

        Raises:
            AuthenticationRequiredError: If no token is stored and one is required.
            NetworkError: If the request itself fails.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = self._headers(require_token=require_token)
        logger.debug("%s %s params=%s", method, url, params)
        try:
            return self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Request to GitHub failed: {e}")

    def _check(self, response: requests.Response, repo: Optional[str] = None) -> Any:
        """Map an HTTP response to data or an atat error.

        Raises:
            AuthenticationRequiredError: On HTTP 401.
            RateLimitError: On HTTP 429 or an exhausted 403.
            RepositoryNotFoundError: On HTTP 404 for a repository path.
            NetworkError: On any other non-2xx status or an unreadable body.
        """
        status = response.status_code
        if status == 401:
            raise AuthenticationRequiredError(
                "Token invalid or expired. Please run `atat login` again."
            )
        if status == 429 or (
            status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            raise RateLimitError(status=status)
        if status == 404 and repo is not None:
            raise RepositoryNotFoundError(repo)
        if status >= 400:
            raise NetworkError(f"API request error: HTTP {status}", status=status)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Failed to parse GitHub response: {e}", status=status)

    def list_issues(self, repo: str) -> List[GitHubIssue]:
        """List every issue (open and closed) in a repository.

        Args:
            repo: Repository in owner/repo form.

        Returns:
            List of GitHubIssue objects, pull requests excluded.
        """
        issues: List[GitHubIssue] = []
        page = 1
        while True:
            response = self._send(
                "GET",
                f"/repos/{repo}/issues",
                params={
                    "state": "all",
                    "per_page": PER_PAGE,
                    "page": page,
                    "sort": "created",
                    "direction": "asc",
                },
            )
            data = self._check(response, repo=repo)
            if not isinstance(data, list):
                raise NetworkError("Unexpected response when listing issues")

            issues.extend(parse_issues(data))
            if len(data) < PER_PAGE:
                break
            page += 1

        logger.info("Fetched %d issues from %s", len(issues), repo)
        return issues

    def create_issue(self, repo: str, title: str) -> GitHubIssue:
        """Create a new issue.

        Args:
            repo: Repository in owner/repo form.
            title: Issue title.

        Returns:
            Created GitHubIssue object.
        """
        response = self._send("POST", f"/repos/{repo}/issues", json_body={"title": title})
        issue = GitHubIssue.from_dict(self._check(response, repo=repo) or {})
        if issue is None:
            raise NetworkError("Failed to parse created issue")
        logger.info("Created issue #%d in %s", issue.number, repo)
        return issue

    def close_issue(self, repo: str, number: int) -> GitHubIssue:
        """Close an issue.

        Args:
            repo: Repository in owner/repo form.
            number: The issue number to close.

        Returns:
            Updated GitHubIssue object.
        """
        response = self._send(
            "PATCH", f"/repos/{repo}/issues/{number}", json_body={"state": "closed"}
        )
        issue = GitHubIssue.from_dict(self._check(response, repo=repo) or {})
        if issue is None:
            raise NetworkError(f"Failed to parse closed issue #{number}")
        logger.info("Closed issue #%d in %s", number, repo)
        return issue

    def repository_exists(self, repo: str) -> bool:
        """Check whether a repository exists and is visible.

        Works without a token for public repositories.
        """
        response = self._send("GET", f"/repos/{repo}", require_token=False)
        if response.status_code == 200:
            return True
        if response.status_code in (403, 404):
            if response.headers.get("X-RateLimit-Remaining") == "0":
                raise RateLimitError(status=response.status_code)
            return False
        self._check(response)
        return False

    def get_authenticated_user(self) -> str:
        """Return the login name of the token owner."""
        data = self._check(self._send("GET", "/user"))
        if not isinstance(data, dict) or not isinstance(data.get("login"), str):
            raise NetworkError("Failed to parse user response")
        return data["login"]
