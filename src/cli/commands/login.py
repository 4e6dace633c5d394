"""Log in to the home server, prompting for credentials when needed."""

import typer
from rich.console import Console
from rich.markup import escape

from src.chat import ChatClient
from src.chat.keys import USER_ID_KEY, USER_NAME_KEY
from src.cli.commands._client import run_with_client
from src.cli.output import format_error, format_success, json_output
from src.cli.prompts import ConsolePrompt
from src.cli.utils import validate_domain, validate_user_name

console = Console()


async def _login(client: ChatClient, edit: bool) -> dict:
    has_user = bool(await client.store.get(USER_ID_KEY) or await client.store.get(USER_NAME_KEY))
    if edit or not has_user:
        if not await client.edit_credentials(ConsolePrompt(console)):
            return {"status": "cancelled"}
    user_name = await client.store.get(USER_NAME_KEY)
    try:
        if user_name is not None:
            validate_user_name(user_name)
        validate_domain(client.session.user_domain)
    except ValueError as e:
        return {"status": "invalid", "error": str(e)}
    ok = await client.login()
    s = client.session
    return {
        "status": "logged_in" if ok else "login_failed",
        "user_id": s.user_id,
        "server": client.sessions.home_server,
    }


def login_command(
    edit: bool = typer.Option(False, "--edit", "-e", help="Edit stored credentials first"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Log in with the cached token or the stored password."""
    result = run_with_client(console, lambda c: _login(c, edit), "log in")

    if json_flag:
        json_output(console, result)
    elif result["status"] == "logged_in":
        format_success(console, f"Logged in as {escape(result['user_id'])}")
    elif result["status"] == "cancelled":
        console.print("[yellow]Cancelled[/yellow]")
    elif result["status"] == "invalid":
        format_error(console, result["error"], hint="Run 'mtxchat login --edit' to fix your credentials")
        raise typer.Exit(code=2)
    else:
        format_error(
            console,
            f"Login failed on {escape(result['server'])}",
            hint="Run 'mtxchat login --edit' to update your credentials",
        )

    if result["status"] != "logged_in":
        raise typer.Exit(code=1)
