"""Shared fixtures and fakes for atat tests."""

import json
import logging
from typing import Any, Dict, List, Optional

import pytest

from atat.github import GitHubIssue, IssueState


class DummyResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int, payload: Any = None, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.payload = payload
        self.headers = headers or {}

    @property
    def content(self) -> bytes:
        if self.payload is None:
            return b""
        return json.dumps(self.payload).encode("utf-8")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        if self.payload is None:
            raise ValueError("No JSON body")
        return self.payload


class DummySession:
    """Replays queued responses and records every request."""

    def __init__(self, responses: List[Any]):
        self._responses = list(responses)
        self.request_log: List[Dict[str, Any]] = []

    def _next(self) -> DummyResponse:
        if not self._responses:
            raise AssertionError("No response queued for request")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def request(self, method, url, *, params=None, json=None, headers=None, timeout=None):
        self.request_log.append(
            {"method": method, "url": url, "params": params, "json": json, "headers": headers}
        )
        return self._next()

    def post(self, url, *, data=None, headers=None, timeout=None):
        self.request_log.append({"method": "POST", "url": url, "data": data, "headers": headers})
        return self._next()


class FakeGitHubClient:
    """In-memory GitHub client with the same surface as GitHubClient."""

    def __init__(self, issues: Optional[List[GitHubIssue]] = None):
        self.issues: Dict[int, GitHubIssue] = {issue.number: issue for issue in issues or []}
        self.created: List[str] = []
        self.closed: List[int] = []
        self.fail_on_create: Optional[Exception] = None

    def list_issues(self, repo: str) -> List[GitHubIssue]:
        return list(self.issues.values())

    def create_issue(self, repo: str, title: str) -> GitHubIssue:
        if self.fail_on_create is not None:
            raise self.fail_on_create
        number = max(self.issues, default=0) + 1
        issue = GitHubIssue(number=number, title=title, state=IssueState.OPEN)
        self.issues[number] = issue
        self.created.append(title)
        return issue

    def close_issue(self, repo: str, number: int) -> GitHubIssue:
        issue = GitHubIssue(number=number, title=self.issues[number].title, state=IssueState.CLOSED)
        self.issues[number] = issue
        self.closed.append(number)
        return issue

    def repository_exists(self, repo: str) -> bool:
        return True


def open_issue(number: int, title: str) -> GitHubIssue:
    return GitHubIssue(number=number, title=title, state=IssueState.OPEN)


def closed_issue(number: int, title: str) -> GitHubIssue:
    return GitHubIssue(number=number, title=title, state=IssueState.CLOSED)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep tokens and env settings out of the real home directory."""
    monkeypatch.setenv("ATAT_HOME", str(tmp_path / "atat-home"))
    monkeypatch.delenv("ATAT_CLIENT_ID", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return tmp_path / "atat-home"


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams the CLI runner has since closed."""
    yield
    logger = logging.getLogger("atat")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
