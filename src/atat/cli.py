"""Main CLI entry point for atat."""

import typer

from atat.auth import DeviceFlow
from atat.cli_helpers import (
    console,
    display_device_code,
    get_client,
    get_token_store,
    handle_atat_error,
)
from atat.cli_sync_commands import pull, push
from atat.config import ProjectConfig
from atat.exceptions import AtatError
from atat.log import setup_logging

app = typer.Typer(
    name="atat",
    help="atat - keep a TODO.md checklist in sync with GitHub issues",
    add_completion=False,
)

remote_app = typer.Typer(
    name="remote",
    help="Manage the GitHub repositories this project syncs with",
)

# Register subcommand groups
app.add_typer(remote_app, name="remote")
app.command("push")(push)
app.command("pull")(pull)


# Global options callback
@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Main callback - shows help if no command provided."""
    setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command()
def login() -> None:
    """Log in to GitHub with the device authorization flow."""
    try:
        flow = DeviceFlow(get_token_store(), display=display_device_code)
        flow.run()
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))

    console.print("[green]Successfully logged in.[/green]")


@app.command()
def logout() -> None:
    """Remove the stored access token."""
    try:
        get_token_store().clear()
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))

    console.print("[green]Logged out.[/green]")


@app.command()
def whoami() -> None:
    """Show the GitHub user the stored token belongs to."""
    try:
        user = get_client().get_authenticated_user()
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))

    console.print(user)


@remote_app.callback(invoke_without_command=True)
def remote_list(ctx: typer.Context) -> None:
    """List configured repositories."""
    if ctx.invoked_subcommand is not None:
        return

    try:
        config = ProjectConfig.load()
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))

    if not config.repositories:
        console.print("[yellow]No repositories configured.[/yellow]")
        console.print("[dim]Run 'atat remote add <owner>/<repo>' to add one.[/dim]")
        return

    for index, repo in enumerate(config.repositories):
        marker = " [dim](active)[/dim]" if index == 0 else ""
        console.print(f"{repo}{marker}")


@remote_app.command("add")
def remote_add(
    repo: str = typer.Argument(..., help="Repository as <owner>/<repo>"),
) -> None:
    """Add a repository after checking that it exists."""
    try:
        config = ProjectConfig.load()
        added = config.add_repository(repo, client=get_client())
        if added:
            config.save()
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))

    if added:
        console.print(f"[green]Added repository {repo.strip()}[/green]")
    else:
        console.print(f"[yellow]Repository {repo.strip()} is already configured[/yellow]")


@remote_app.command("remove")
def remote_remove(
    repo: str = typer.Argument(..., help="Repository as <owner>/<repo>"),
) -> None:
    """Remove a configured repository."""
    try:
        config = ProjectConfig.load()
        removed = config.remove_repository(repo)
        if removed:
            config.save()
    except AtatError as e:
        raise typer.Exit(handle_atat_error(e))

    if removed:
        console.print(f"[green]Removed repository {repo.strip()}[/green]")
    else:
        console.print(f"[yellow]Repository {repo.strip()} is not configured[/yellow]")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
