"""Run the sync loop and print incoming messages."""

from datetime import datetime, timezone

import typer
from rich.console import Console
from rich.markup import escape

from src.chat import ChatClient
from src.cli.commands._client import run_with_client
from src.cli.output import format_error, json_output
from src.client import ChatMessage

console = Console()


def _format_message(message: ChatMessage) -> str:
    when = datetime.fromtimestamp(message.timestamp_ms / 1000, tz=timezone.utc).astimezone()
    return f"[dim]{when:%H:%M}[/dim] [cyan]{escape(message.sender)}[/cyan]: {escape(message.body)}"


async def _listen(client: ChatClient, json_flag: bool) -> dict:
    if not await client.login():
        return {"status": "login_failed", "cycles": 0}

    async def _print(messages: tuple[ChatMessage, ...]) -> None:
        for m in messages:
            if json_flag:
                json_output(console, m)
            else:
                console.print(_format_message(m))

    if not await client.listen():
        return {"status": "not_started", "cycles": 0}
    await client.run(_print)
    return {"status": "stopped", "cycles": client.sync.cycles_started, "since": client.session.since}


def listen_command(
    json_flag: bool = typer.Option(False, "--json", help="Print messages as JSON"),
) -> None:
    """Log in and long-poll the room until the connection fails or Ctrl-C."""
    result = run_with_client(console, lambda c: _listen(c, json_flag), "listen")

    if result["status"] == "login_failed":
        format_error(console, "Login failed", hint="Run 'mtxchat login --edit' to update your credentials")
        raise typer.Exit(code=1)
    if result["status"] == "not_started":
        format_error(
            console,
            "Could not resolve the room or filter",
            hint="Run 'mtxchat room' to choose a room",
        )
        raise typer.Exit(code=3)
    if not json_flag:
        console.print(f"[yellow]Sync stopped after {result['cycles']} cycle(s)[/yellow]")
