"""Raw access to the settings store."""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from src.chat import ChatClient
from src.cli.commands._client import run_with_client
from src.cli.output import format_error, format_success, format_table, json_output
from src.cli.utils import validate_key
from src.state import redact

console = Console()


def _checked_key(key: str) -> str:
    try:
        return validate_key(key)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)


async def _set(client: ChatClient, key: str, value: str) -> None:
    await client.store.set(key, value)


async def _unset(client: ChatClient, key: str) -> None:
    await client.store.unset(key)


async def _get(client: ChatClient, key: Optional[str]) -> dict[str, str]:
    if key is None:
        return await client.store.items()
    value = await client.store.get(key)
    return {} if value is None else {key: value}


def set_command(
    key: str = typer.Argument(..., help="Setting name"),
    value: str = typer.Argument(..., help="Value to store"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Store a setting. Keys starting with '__' are reserved."""
    key = _checked_key(key)
    run_with_client(console, lambda c: _set(c, key, value), "set key")
    if json_flag:
        json_output(console, {"status": "set", "key": key})
    else:
        format_success(console, f"Set '{escape(key)}'")


def unset_command(
    key: str = typer.Argument(..., help="Setting name"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Remove a setting. Keys starting with '__' are reserved."""
    key = _checked_key(key)
    run_with_client(console, lambda c: _unset(c, key), "unset key")
    if json_flag:
        json_output(console, {"status": "unset", "key": key})
    else:
        format_success(console, f"Unset '{escape(key)}'")


def get_command(
    key: Optional[str] = typer.Argument(None, help="Setting name (omit to list all)"),
    reveal: bool = typer.Option(False, "--reveal", help="Show password and token values"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show one setting, or all of them."""
    if key is not None:
        key = _checked_key(key)
    values = run_with_client(console, lambda c: _get(c, key), "get key")
    shown = values if reveal else {k: redact(k, v) for k, v in values.items()}

    if key is not None and not values:
        if json_flag:
            json_output(console, {"key": key, "value": None})
        else:
            format_error(console, f"'{escape(key)}' is not set")
        raise typer.Exit(code=5)

    if json_flag:
        json_output(console, {"key": key, "value": shown[key]} if key else shown)
    elif key is not None:
        console.print(shown[key], markup=False)
    elif not shown:
        console.print("[yellow]No settings stored[/yellow]")
    else:
        rows = [(escape(k), escape(v)) for k, v in sorted(shown.items())]
        format_table(console, f"Settings ({len(shown)})", ["Key", "Value"], rows)
