"""Shared helpers for commands that talk to the store or the home server."""

import asyncio
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from src.chat import ChatClient
from src.cli.output import format_error
from src.cli.utils import ClientConfig, ConfigError, ConfigManager
from src.client import Transport
from src.state import DatabaseManager, PermissionDeniedError

T = TypeVar("T")


def build_client(config: ClientConfig) -> ChatClient:
    """Create a ChatClient from the CLI configuration."""
    return ChatClient(
        DatabaseManager(config.db_path),
        Transport(timeout=config.http_timeout, max_retries=config.max_retries),
        namespace=config.namespace,
        default_domain=config.default_domain,
        scheme=config.scheme,
        sync_timeout_ms=config.sync_timeout_ms,
    )


def run_with_client(
    console: Console, action: Callable[[ChatClient], Awaitable[T]], error_label: str,
) -> T:
    """Load config, open a client, run ``action`` and map errors to exit codes."""

    async def _run() -> T:
        config = ConfigManager().load()
        async with build_client(config) as client:
            return await action(client)

    try:
        return asyncio.run(_run())
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'mtxchat init' to create a configuration")
        raise typer.Exit(code=1)
    except PermissionDeniedError as e:
        format_error(console, str(e), hint="Keys starting with '__' are reserved")
        raise typer.Exit(code=4)
    except typer.Exit:
        raise
    except Exception as e:
        format_error(console, f"Failed to {error_label}: {e}")
        raise typer.Exit(code=1)
