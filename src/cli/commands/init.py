"""Create the client configuration file."""

import typer
from rich.console import Console

from src.cli.output import format_error, format_success, json_output
from src.cli.utils import ClientConfig, ConfigManager, validate_domain

console = Console()


def init_command(
    domain: str = typer.Option(
        "matrix.org", "--domain", "-d", help="Default home-server domain"
    ),
    scheme: str = typer.Option("https", "--scheme", help="URL scheme for home servers"),
    namespace: str = typer.Option("mtxchat", "--namespace", "-n", help="Store namespace"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing configuration"
    ),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Write ~/.mtxchat/config.yaml with client settings.

    The settings store itself (~/.mtxchat/mtxchat.db) is created on first use.
    """
    try:
        domain = validate_domain(domain)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)
    if scheme not in ("https", "http"):
        format_error(console, f"Invalid scheme '{scheme}'", hint="Valid values: https, http")
        raise typer.Exit(code=2)
    if not namespace.strip():
        format_error(console, "Namespace cannot be empty")
        raise typer.Exit(code=2)

    config = ConfigManager()

    if config.exists() and not force:
        format_error(
            console,
            f"Configuration already exists at {config.config_path}",
            hint="Use --force to overwrite existing configuration",
        )
        raise typer.Exit(code=1)

    saved = config.save(
        ClientConfig(db_path=config.db_path, namespace=namespace.strip(), default_domain=domain, scheme=scheme)
    )

    if json_flag:
        json_output(
            console,
            {
                "status": "initialized",
                "default_domain": saved.default_domain,
                "namespace": saved.namespace,
                "config_path": config.config_path,
                "db_path": saved.db_path,
            },
        )
    else:
        format_success(console, "Client initialized successfully")
        console.print(f"[cyan]Domain:[/cyan]      {saved.default_domain}")
        console.print(f"[cyan]Namespace:[/cyan]   {saved.namespace}")
        console.print(f"[cyan]Config:[/cyan]      {config.config_path}")
