"""Forget the access token."""

import typer
from rich.console import Console

from src.chat import ChatClient
from src.cli.commands._client import run_with_client
from src.cli.output import format_error, format_success, json_output

console = Console()


async def _logout(client: ChatClient) -> bool:
    return await client.logout()


def logout_command(
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log out and drop the stored access token."""
    ok = run_with_client(console, _logout, "log out")
    if json_flag:
        json_output(console, {"status": "logged_out" if ok else "error"})
    elif ok:
        format_success(console, "Logged out")
    else:
        format_error(console, "Could not remove the stored token")
    if not ok:
        raise typer.Exit(code=1)
