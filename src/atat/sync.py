"""Sync logic between checklist items and GitHub issues."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from atat.checklist import Item
from atat.directory import IssueDirectory
from atat.github import GitHubClient

logger = logging.getLogger(__name__)


class SyncDirection(Enum):
    """Which side is treated as the source of changes."""

    PUSH = "push"  # Checklist -> GitHub
    PULL = "pull"  # GitHub -> checklist


class ActionKind(Enum):
    """Types of sync actions."""

    CREATE_ISSUE = "create_issue"  # Create GitHub issue from an unlinked item
    CLOSE_ISSUE = "close_issue"  # Close GitHub issue (item is checked)
    LINK_REFERENCE = "link_reference"  # Write (#N) onto an item
    CHECK_ITEM = "check_item"  # Check an item (GitHub issue is closed)
    APPEND_ITEM = "append_item"  # Add an item for an untracked open issue
    REPORT_STALE_REFERENCE = "report_stale_reference"  # Item points at a missing issue
    NO_OP = "no_op"  # Already in sync


MUTATING_KINDS = {
    ActionKind.CREATE_ISSUE,
    ActionKind.CLOSE_ISSUE,
    ActionKind.LINK_REFERENCE,
    ActionKind.CHECK_ITEM,
    ActionKind.APPEND_ITEM,
}


@dataclass(frozen=True)
class Action:
    """A decided unit of sync work.

    ``number`` is None on a LINK_REFERENCE or CLOSE_ISSUE that targets the
    issue a preceding CREATE_ISSUE for the same position will produce.
    """

    kind: ActionKind
    position: Optional[int] = None
    number: Optional[int] = None
    title: str = ""
    checked: bool = False

    @classmethod
    def create_issue(cls, position: int, title: str) -> "Action":
        return cls(ActionKind.CREATE_ISSUE, position=position, title=title)

    @classmethod
    def close_issue(cls, number: Optional[int], position: Optional[int] = None) -> "Action":
        return cls(ActionKind.CLOSE_ISSUE, position=position, number=number)

    @classmethod
    def link_reference(cls, position: int, number: Optional[int]) -> "Action":
        return cls(ActionKind.LINK_REFERENCE, position=position, number=number)

    @classmethod
    def check_item(cls, position: int, number: Optional[int] = None) -> "Action":
        return cls(ActionKind.CHECK_ITEM, position=position, number=number)

    @classmethod
    def append_item(cls, title: str, number: int, checked: bool = False) -> "Action":
        return cls(ActionKind.APPEND_ITEM, number=number, title=title, checked=checked)

    @classmethod
    def report_stale_reference(cls, position: int, number: int) -> "Action":
        return cls(ActionKind.REPORT_STALE_REFERENCE, position=position, number=number)

    @classmethod
    def no_op(cls, position: Optional[int] = None) -> "Action":
        return cls(ActionKind.NO_OP, position=position)

    @property
    def is_pending(self) -> bool:
        """True if the issue number is only known after a create."""
        return self.kind in (ActionKind.LINK_REFERENCE, ActionKind.CLOSE_ISSUE) and self.number is None

    @property
    def is_mutating(self) -> bool:
        return self.kind in MUTATING_KINDS

    def __str__(self) -> str:
        target = f"#{self.number}" if self.number is not None else "new issue"
        if self.kind == ActionKind.CREATE_ISSUE:
            return f"Create issue '{self.title}' for item {self.position + 1}"
        elif self.kind == ActionKind.CLOSE_ISSUE:
            return f"Close {target}"
        elif self.kind == ActionKind.LINK_REFERENCE:
            return f"Link item {self.position + 1} to {target}"
        elif self.kind == ActionKind.CHECK_ITEM:
            return f"Check item {self.position + 1} ({target} is closed)"
        elif self.kind == ActionKind.APPEND_ITEM:
            return f"Append item '{self.title}' ({target})"
        elif self.kind == ActionKind.REPORT_STALE_REFERENCE:
            return f"Item {self.position + 1} references missing issue {target}"
        return "No action needed"


@dataclass
class SyncPlan:
    """Ordered actions for one push or pull pass."""

    direction: SyncDirection
    actions: List[Action] = field(default_factory=list)

    def add(self, action: Action) -> None:
        """Add an action to the plan."""
        self.actions.append(action)

    def has_actions(self) -> bool:
        """Check if there are any changes to make."""
        return bool(self.mutating_actions())

    def get_actions(self) -> List[Action]:
        """Get only actions that are not NO_OP."""
        return [action for action in self.actions if action.kind != ActionKind.NO_OP]

    def mutating_actions(self) -> List[Action]:
        return [action for action in self.actions if action.is_mutating]

    def stale_references(self) -> List[Action]:
        return [a for a in self.actions if a.kind == ActionKind.REPORT_STALE_REFERENCE]


@dataclass
class SyncResult:
    """Outcome of executing a plan."""

    actions: List[Action] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)
    counts: Dict[str, int] = field(
        default_factory=lambda: {
            "created": 0,
            "closed": 0,
            "linked": 0,
            "checked": 0,
            "appended": 0,
            "stale": 0,
        }
    )


def _in_order(items: Iterable[Item]) -> List[Item]:
    return sorted(items, key=lambda item: item.position)


def build_push_plan(items: Iterable[Item], directory: IssueDirectory) -> SyncPlan:
    """Build the actions that bring GitHub in line with the checklist.

    Args:
        items: Parsed checklist items.
        directory: Index over the fetched issue snapshot.

    Returns:
        SyncPlan in item position order.
    """
    plan = SyncPlan(SyncDirection.PUSH)
    ordered = _in_order(items)

    # Issues already tied to an item can't be claimed again by title
    claimed = {item.issue_ref for item in ordered if item.issue_ref is not None}

    for item in ordered:
        if item.issue_ref is not None:
            if item.issue_ref not in directory:
                logger.warning(
                    "Item %d references #%d, which does not exist in the repository",
                    item.position + 1,
                    item.issue_ref,
                )
                plan.add(Action.report_stale_reference(item.position, item.issue_ref))
                continue

            issue = directory.by_number(item.issue_ref)
            if item.checked and issue.is_open:
                plan.add(Action.close_issue(issue.number, item.position))
            else:
                # Push never reopens a closed issue
                plan.add(Action.no_op(item.position))
            continue

        issue = directory.by_title(item.text)
        if issue is not None and issue.number not in claimed:
            claimed.add(issue.number)
            plan.add(Action.link_reference(item.position, issue.number))
            if item.checked and issue.is_open:
                plan.add(Action.close_issue(issue.number, item.position))
            continue

        if issue is not None:
            logger.info(
                "Issue #%d matches '%s' but is already referenced; creating a new issue",
                issue.number,
                item.text,
            )
        plan.add(Action.create_issue(item.position, item.text))
        plan.add(Action.link_reference(item.position, None))
        if item.checked:
            plan.add(Action.close_issue(None, item.position))

    return plan


def build_pull_plan(items: Iterable[Item], directory: IssueDirectory) -> SyncPlan:
    """Build the actions that bring the checklist in line with GitHub.

    Items are checked first in position order, then untracked open issues
    are appended in ascending issue number order.

    Args:
        items: Parsed checklist items.
        directory: Index over the fetched issue snapshot.

    Returns:
        SyncPlan for the pull.
    """
    plan = SyncPlan(SyncDirection.PULL)
    ordered = _in_order(items)

    for item in ordered:
        if item.issue_ref is None:
            plan.add(Action.no_op(item.position))
            continue

        if item.issue_ref not in directory:
            logger.warning(
                "Item %d references #%d, which does not exist in the repository",
                item.position + 1,
                item.issue_ref,
            )
            plan.add(Action.report_stale_reference(item.position, item.issue_ref))
            continue

        issue = directory.by_number(item.issue_ref)
        if not issue.is_open and not item.checked:
            plan.add(Action.check_item(item.position, issue.number))
        else:
            # Pull never unchecks an item
            plan.add(Action.no_op(item.position))

    referenced = {item.issue_ref for item in ordered if item.issue_ref is not None}
    texts = {item.text for item in ordered}
    for issue in directory.open_issues():
        if issue.number in referenced or issue.title in texts:
            continue
        plan.add(Action.append_item(issue.title, issue.number))

    return plan


def build_sync_plan(
    direction: SyncDirection, items: Iterable[Item], directory: IssueDirectory
) -> SyncPlan:
    """Build a push or pull plan."""
    if direction == SyncDirection.PUSH:
        return build_push_plan(items, directory)
    return build_pull_plan(items, directory)


def apply_actions(items: Iterable[Item], actions: Iterable[Action]) -> List[Item]:
    """Apply document-side actions to items.

    Items are kept in an arena keyed by position, so the result is in
    position order however the actions were produced. Actions still waiting
    for an issue number are skipped.

    Args:
        items: Items before the sync.
        actions: Resolved actions.

    Returns:
        New list of items; the input items are not modified.
    """
    arena: Dict[int, Item] = {item.position: replace(item) for item in items}
    next_position = max(arena, default=-1) + 1

    for action in actions:
        if action.is_pending:
            logger.debug("Skipping unresolved action: %s", action)
            continue

        if action.kind == ActionKind.LINK_REFERENCE:
            arena[action.position] = replace(arena[action.position], issue_ref=action.number)
        elif action.kind == ActionKind.CHECK_ITEM:
            arena[action.position] = replace(arena[action.position], checked=True)
        elif action.kind == ActionKind.APPEND_ITEM:
            arena[next_position] = Item(
                text=action.title,
                checked=action.checked,
                issue_ref=action.number,
                position=next_position,
            )
            next_position += 1

    return [arena[position] for position in sorted(arena)]


def execute_sync_plan(
    console: Console,
    client: GitHubClient,
    repo: str,
    plan: SyncPlan,
    items: Iterable[Item],
    dry_run: bool = False,
) -> SyncResult:
    """Execute a sync plan.

    Remote actions run in plan order. The first failure propagates; issues
    already created or closed stay that way.

    Args:
        console: Rich console for output.
        client: GitHub client used for remote actions.
        repo: Repository in owner/repo form.
        plan: SyncPlan to execute.
        items: Items the plan was built from.
        dry_run: If True, only show what would be done.

    Returns:
        SyncResult with resolved actions, updated items and counts.
    """
    result = SyncResult()
    created: Dict[int, int] = {}  # item position -> new issue number

    for action in plan.actions:
        if action.kind == ActionKind.NO_OP:
            continue

        if action.is_pending and action.position in created:
            action = replace(action, number=created[action.position])

        if action.kind == ActionKind.CREATE_ISSUE:
            if dry_run:
                console.print(f"[dim]Would create issue: {action.title}[/dim]")
            else:
                issue = client.create_issue(repo, action.title)
                created[action.position] = issue.number
                console.print(f"[green]Created issue #{issue.number}: {action.title}[/green]")
                result.counts["created"] += 1

        elif action.kind == ActionKind.CLOSE_ISSUE:
            if dry_run:
                target = f"#{action.number}" if action.number is not None else "the new issue"
                console.print(f"[dim]Would close {target}[/dim]")
            elif action.number is not None:
                client.close_issue(repo, action.number)
                console.print(f"[green]Closed issue #{action.number}[/green]")
                result.counts["closed"] += 1

        elif action.kind == ActionKind.LINK_REFERENCE:
            if action.number is not None:
                if dry_run:
                    console.print(f"[dim]Would link item {action.position + 1} to #{action.number}[/dim]")
                result.counts["linked"] += 1

        elif action.kind == ActionKind.CHECK_ITEM:
            if dry_run:
                console.print(f"[dim]Would check item {action.position + 1} (#{action.number})[/dim]")
            else:
                console.print(f"[green]Checked item {action.position + 1} (#{action.number} is closed)[/green]")
            result.counts["checked"] += 1

        elif action.kind == ActionKind.APPEND_ITEM:
            if dry_run:
                console.print(f"[dim]Would add item: {action.title} (#{action.number})[/dim]")
            else:
                console.print(f"[green]Added item: {action.title} (#{action.number})[/green]")
            result.counts["appended"] += 1

        elif action.kind == ActionKind.REPORT_STALE_REFERENCE:
            console.print(
                f"[yellow]Warning: item {action.position + 1} references #{action.number}, "
                "which was not found. Leaving it unchanged.[/yellow]"
            )
            result.counts["stale"] += 1

        result.actions.append(action)

    result.items = apply_actions(items, result.actions)
    return result


def display_sync_status(
    console: Console, plan: SyncPlan, items: List[Item], directory: IssueDirectory
) -> None:
    """Display sync status summary.

    Args:
        console: Rich console for output.
        plan: SyncPlan to display status for.
        items: Checklist items the plan was built from.
        directory: Issue snapshot the plan was built from.
    """
    table = Table(title=f"Sync Status ({plan.direction.value})")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green")

    table.add_row("Checklist items", str(len(items)))
    table.add_row("Linked items", str(sum(1 for item in items if item.issue_ref is not None)))
    table.add_row("GitHub issues", str(len(directory)))
    table.add_row("Open GitHub issues", str(len(directory.open_issues())))
    table.add_row("Stale references", str(len(plan.stale_references())))

    # Count actions by type
    action_counts: Dict[str, int] = {}
    for action in plan.actions:
        action_name = action.kind.value
        action_counts[action_name] = action_counts.get(action_name, 0) + 1

    if action_counts:
        table.add_section()
        for action_name, count in sorted(action_counts.items()):
            if action_name != ActionKind.NO_OP.value:
                table.add_row(f"Action: {action_name}", str(count))

    console.print(table)


def display_sync_results(console: Console, counts: Dict[str, int]) -> None:
    """Display sync execution results.

    Args:
        console: Rich console for output.
        counts: Dictionary with action counts.
    """
    table = Table(title="Sync Results")
    table.add_column("Action", style="cyan")
    table.add_column("Count", style="green")

    for action, count in counts.items():
        if count > 0:
            style = "yellow" if action == "stale" else "green"
            table.add_row(action.replace("_", " ").title(), f"[{style}]{count}[/{style}]")

    console.print(table)
