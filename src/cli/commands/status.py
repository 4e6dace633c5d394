"""Show the stored session, room and sync state."""

import typer
from rich.console import Console
from rich.markup import escape

from src.chat import ChatClient, room_alias
from src.cli.commands._client import run_with_client
from src.cli.output import format_key_value, json_output
from src.cli.utils import ConfigManager

console = Console()


async def _get_status(client: ChatClient) -> dict:
    """Read cached state only; no network calls."""
    s = client.session
    return {
        "state": s.state,
        "user_id": s.user_id or None,
        "user_domain": s.user_domain,
        "server": client.sessions.home_server,
        "has_token": bool(s.token),
        "room": room_alias(s.room_name, s.room_domain) if s.room_name and s.room_domain else None,
        "room_id": s.room_id or None,
        "filter_id": s.filter_id or None,
        "since": s.since or None,
        "namespace": client.store.namespace,
    }


def status_command(
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show stored credentials, room and sync cursor."""
    status = run_with_client(console, _get_status, "get status")
    status["config_path"] = ConfigManager().config_path

    if json_flag:
        json_output(console, {"status": "initialized", **status})
        return

    console.print("[bold]Client Status[/bold]")
    console.print()
    since = status["since"]
    if since and len(since) > 24:
        since = since[:24] + "..."
    format_key_value(console, {
        "User": _shown(status["user_id"], "[yellow]not set[/yellow]"),
        "State": status["state"].value,
        "Server": _shown(status["server"]),
        "Token": "stored" if status["has_token"] else "none",
        "Room": _shown(status["room"], "[yellow]not set[/yellow]"),
        "Room ID": _shown(status["room_id"], "unresolved"),
        "Filter": _shown(status["filter_id"], "none"),
        "Cursor": _shown(since, "none"),
        "Namespace": _shown(status["namespace"]),
        "Config": _shown(str(status["config_path"])),
    })


def _shown(value: str | None, missing: str = "") -> str:
    """Escape a stored value for rich markup."""
    return escape(value) if value else missing
