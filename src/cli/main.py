"""Main CLI entry point for the Matrix sync client."""

import logging
from typing import Optional

import typer
from rich.console import Console

from src.cli.commands.init import init_command
from src.cli.commands.listen import listen_command
from src.cli.commands.login import login_command
from src.cli.commands.logout import logout_command
from src.cli.commands.room import room_command
from src.cli.commands.settings import get_command, set_command, unset_command
from src.cli.commands.status import status_command

app = typer.Typer(
    name="mtxchat",
    help="mtxchat - Matrix session and incremental sync client",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log engine activity"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@app.command("init")
def init(
    domain: str = typer.Option("matrix.org", "-d", "--domain", help="Default home-server domain"),
    scheme: str = typer.Option("https", "--scheme", help="URL scheme for home servers"),
    namespace: str = typer.Option("mtxchat", "-n", "--namespace", help="Store namespace"),
    force: bool = typer.Option(False, "-f", "--force", help="Overwrite config"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Write the client configuration file."""
    init_command(domain, scheme, namespace, force, json_flag)


@app.command("login")
def login(
    edit: bool = typer.Option(False, "-e", "--edit", help="Edit stored credentials first"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Log in with the cached token or stored password."""
    login_command(edit, json_flag)


@app.command("logout")
def logout(
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Log out and drop the stored token."""
    logout_command(json_flag)


@app.command("room")
def room(
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Room alias local part"),
    domain: Optional[str] = typer.Option(None, "-d", "--domain", help="Room alias domain"),
    resolve: bool = typer.Option(True, "--resolve/--no-resolve", help="Look up the room id now"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Choose the room to sync."""
    room_command(name, domain, resolve, json_flag)


@app.command("set")
def set_key(
    key: str = typer.Argument(..., help="Setting name"),
    value: str = typer.Argument(..., help="Value"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Store a setting."""
    set_command(key, value, json_flag)


@app.command("unset")
def unset_key(
    key: str = typer.Argument(..., help="Setting name"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Remove a setting."""
    unset_command(key, json_flag)


@app.command("get")
def get_key(
    key: Optional[str] = typer.Argument(None, help="Setting name (omit to list all)"),
    reveal: bool = typer.Option(False, "--reveal", help="Show secrets"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Show one setting or all of them."""
    get_command(key, reveal, json_flag)


@app.command("status")
def status(
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Show session, room and cursor state."""
    status_command(json_flag)


@app.command("listen")
def listen(
    json_flag: bool = typer.Option(False, "--json", help="Print messages as JSON"),
) -> None:
    """Long-poll the room and print messages."""
    listen_command(json_flag)


def main() -> None:
    """Entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)
