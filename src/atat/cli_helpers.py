"""Shared helper functions for the atat CLI."""

from typing import Optional

from rich.console import Console

from atat.auth import DeviceCode
from atat.exceptions import AtatError
from atat.github import GitHubClient
from atat.storage import FileTokenStore, TokenStore

console = Console()
err_console = Console(stderr=True)


def get_token_store() -> TokenStore:
    """Token store used by the CLI commands."""
    return FileTokenStore()


def get_client(token_store: Optional[TokenStore] = None) -> GitHubClient:
    """Build a GitHub client backed by the CLI token store."""
    return GitHubClient(token_store or get_token_store())


def display_device_code(code: DeviceCode) -> None:
    """Show the user code and where to enter it.

    Args:
        code: Device code returned by GitHub.
    """
    console.print()
    console.print(f"Open [cyan]{code.verification_uri}[/cyan] in your browser")
    console.print(f"and enter the code: [bold]{code.user_code}[/bold]")
    console.print()
    console.print("[dim]Waiting for authorization... (Ctrl+C to cancel)[/dim]")


def handle_atat_error(error: AtatError) -> int:
    """Report an atat error on stderr.

    Args:
        error: The atat error to handle.

    Returns:
        Process exit code for the error.
    """
    # markup off: messages may contain checkbox brackets like [x]
    err_console.print(
        f"Error: {error.message}",
        style="red",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )
    return error.exit_code
