"""Choose the room to sync and resolve its id."""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from src.chat import ChatClient, room_alias
from src.cli.commands._client import run_with_client
from src.cli.output import format_error, format_success, format_warning, json_output
from src.cli.prompts import ConsolePrompt
from src.cli.utils import validate_domain, validate_room_name

console = Console()


async def _set_room(client: ChatClient, name: Optional[str], domain: Optional[str], resolve: bool) -> dict:
    if name and domain:
        saved = await client.set_room(name, domain)
    else:
        saved = await client.edit_room(ConsolePrompt(console))
    if not saved:
        return {"status": "unchanged"}
    s = client.session
    result = {"status": "saved", "room": room_alias(s.room_name, s.room_domain), "room_id": None}
    if resolve:
        if not await client.login():
            result["status"] = "login_failed"
        elif await client.rooms.get_room_id():
            result["status"] = "resolved"
            result["room_id"] = s.room_id
        else:
            result["status"] = "unresolved"
    return result


def room_command(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Room alias local part (e.g. general)"),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Room alias domain"),
    resolve: bool = typer.Option(True, "--resolve/--no-resolve", help="Look up the room id now"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Set the room; clears the cached room id, filter and sync cursor."""
    if (name is None) != (domain is None):
        format_error(console, "Give both --name and --domain, or neither to be prompted")
        raise typer.Exit(code=2)
    if name is not None:
        try:
            name = validate_room_name(name)
            domain = validate_domain(domain)
        except ValueError as e:
            format_error(console, str(e))
            raise typer.Exit(code=2)

    result = run_with_client(console, lambda c: _set_room(c, name, domain, resolve), "set room")

    if json_flag:
        json_output(console, result)
    elif result["status"] == "unchanged":
        console.print("[yellow]Room unchanged[/yellow]")
    elif result["status"] == "resolved":
        format_success(console, f"Room {escape(result['room'])} is {escape(result['room_id'])}")
    elif result["status"] == "saved":
        format_success(console, f"Room set to {escape(result['room'])}")
    elif result["status"] == "login_failed":
        format_warning(console, f"Room set to {escape(result['room'])} but login failed; it will be resolved on listen")
    else:
        format_error(
            console,
            f"Could not resolve {escape(result['room'])}",
            hint="Check the room name and domain, then run 'mtxchat room' again",
        )
        raise typer.Exit(code=3)
