"""push and pull commands for the atat CLI."""

from typing import Optional

import typer

from atat import core
from atat.checklist import load_document, parse_checklist, render_checklist, save_document
from atat.cli_helpers import console, get_client, handle_atat_error
from atat.config import ProjectConfig
from atat.directory import IssueDirectory
from atat.exceptions import AtatError
from atat.sync import (
    SyncDirection,
    build_sync_plan,
    display_sync_results,
    display_sync_status,
    execute_sync_plan,
)


def run_sync(
    direction: SyncDirection,
    document: Optional[str] = None,
    repo: Optional[str] = None,
    dry_run: bool = False,
) -> None:
    """Run one push or pull pass.

    The document is only written after every remote action succeeded, and
    never in dry-run mode.

    Raises:
        AtatError: On any failure; nothing is written to the document.
    """
    repository = ProjectConfig.load().active_repository(repo)
    path = core.get_document_path(document)
    text = load_document(path)
    checklist = parse_checklist(text)

    client = get_client()

    # Get GitHub issues
    console.print(f"[dim]Fetching GitHub issues from {repository}...[/dim]")
    directory = IssueDirectory(client.list_issues(repository))
    console.print(f"[dim]Found {len(directory)} GitHub issues[/dim]")

    # Build sync plan
    plan = build_sync_plan(direction, checklist.items, directory)
    display_sync_status(console, plan, checklist.items, directory)

    if dry_run and plan.has_actions():
        console.print("\n[yellow]Dry run mode - no changes will be made[/yellow]")

    result = execute_sync_plan(console, client, repository, plan, checklist.items, dry_run=dry_run)

    if not plan.has_actions():
        console.print("\n[green]Everything is in sync![/green]")
        return

    if not dry_run:
        if save_document(path, render_checklist(text, result.items)):
            console.print(f"[green]Updated {path}[/green]")

    # Display results
    console.print()
    display_sync_results(console, result.counts)


def push(
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help=f"Checklist document (default: {core.DEFAULT_DOCUMENT})"
    ),
    repo: Optional[str] = typer.Option(
        None, "--repo", "-r", help="Repository as owner/repo (default: first configured)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Show what would be done without making changes"
    ),
) -> None:
    """Push checklist changes to GitHub.

    - Creates issues for items without a reference and links them
    - Links items to existing issues with the same title
    - Closes issues whose items are checked
    """
    try:
        run_sync(SyncDirection.PUSH, file, repo, dry_run)
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))


def pull(
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help=f"Checklist document (default: {core.DEFAULT_DOCUMENT})"
    ),
    repo: Optional[str] = typer.Option(
        None, "--repo", "-r", help="Repository as owner/repo (default: first configured)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Show what would be done without making changes"
    ),
) -> None:
    """Pull GitHub issue state into the checklist.

    - Checks items whose issues are closed
    - Appends open issues that are not in the checklist yet
    """
    try:
        run_sync(SyncDirection.PULL, file, repo, dry_run)
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))
