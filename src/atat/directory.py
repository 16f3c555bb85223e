"""Lookup index over one snapshot of GitHub issues."""

from typing import Dict, Iterable, Iterator, List, Optional

from atat.github import GitHubIssue


class IssueDirectory:
    """Index of a fetched issue snapshot, by number and by title.

    Title lookups are exact and case-sensitive. When several issues share a
    title the lowest issue number wins, whatever order they were fetched in.
    """

    def __init__(self, issues: Iterable[GitHubIssue]):
        self._by_number: Dict[int, GitHubIssue] = {}
        self._by_title: Dict[str, GitHubIssue] = {}

        for issue in sorted(issues, key=lambda i: i.number):
            self._by_number.setdefault(issue.number, issue)
            self._by_title.setdefault(issue.title, issue)

    def by_number(self, number: int) -> Optional[GitHubIssue]:
        return self._by_number.get(number)

    def by_title(self, title: str) -> Optional[GitHubIssue]:
        return self._by_title.get(title)

    def open_issues(self) -> List[GitHubIssue]:
        """Open issues in ascending number order."""
        return [issue for issue in self if issue.is_open]

    def __iter__(self) -> Iterator[GitHubIssue]:
        return iter(self._by_number.values())

    def __len__(self) -> int:
        return len(self._by_number)

    def __contains__(self, number: object) -> bool:
        return number in self._by_number
