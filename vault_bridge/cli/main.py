"""vault-bridge CLI - Bitwarden session and item access."""

import json
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..config.settings import get_settings
from ..utils.logging import setup_logging
from ..vault import (
    ItemCatalog,
    ProcessRunner,
    SessionManager,
    SessionState,
    VaultError,
    find_tool,
)

app = typer.Typer(
    name="vault-bridge",
    help="Keep the Bitwarden CLI logged in and unlocked, and list vault items.",
    no_args_is_help=True,
)

console = Console()

STATE_STYLES = {
    SessionState.LOGGED_OUT: "red",
    SessionState.LOCKED: "yellow",
    SessionState.UNLOCKED: "green",
}


@app.callback()
def options(
    email: Optional[str] = typer.Option(
        None,
        "--email", "-e",
        help="Account email (default: $BW_EMAIL)",
    ),
    server: Optional[str] = typer.Option(
        None,
        "--server", "-s",
        help="Server URL (default: $BW_SERVER or https://bitwarden.com)",
    ),
    binary: Optional[str] = typer.Option(
        None,
        "--binary",
        help="Path to the bw binary (default: $BW_BINARY or bw)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show debug logging",
    ),
):
    """Global options shared by every command."""
    settings = get_settings()

    if email:
        settings.credentials.email = email
    if server:
        settings.tool.server = server
    if binary:
        settings.tool.binary = binary

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file,
    )


def _runner() -> ProcessRunner:
    settings = get_settings()
    return ProcessRunner(timeout=settings.tool.timeout, env=settings.tool_env())


def _manager() -> SessionManager:
    return SessionManager(get_settings().to_session(), _runner())


@contextmanager
def _vault_errors() -> Iterator[None]:
    try:
        yield
    except VaultError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def status():
    """
    Show the live login state and account of the Bitwarden CLI.
    """
    manager = _manager()

    with _vault_errors():
        state = manager.state()
        style = STATE_STYLES[state]
        console.print(f"State: [{style}]{state.value}[/{style}]")

        if state == SessionState.LOGGED_OUT:
            return

        live = manager.status()

    table = Table(title="Account")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Server", live.server_url)
    table.add_row("Email", live.user_email)
    table.add_row("User ID", live.user_id)
    table.add_row("Last sync", live.last_sync or "never")
    console.print(table)


@app.command()
def unlock(
    raw: bool = typer.Option(
        False,
        "--raw",
        help="Print only the session key",
    ),
):
    """
    Log in as the configured account and unlock the vault.
    """
    manager = _manager()

    with _vault_errors():
        manager.ensure_unlocked()

    if raw:
        typer.echo(manager.session.session_key)
    else:
        console.print(f"[green]Vault unlocked[/green] for {manager.session.email}")


@app.command()
def lock():
    """
    Lock the vault, keeping the login.
    """
    manager = _manager()

    with _vault_errors():
        manager.ensure_locked()

    console.print("[green]Vault locked[/green]")


@app.command()
def logout():
    """
    Log the Bitwarden CLI out.
    """
    manager = _manager()

    with _vault_errors():
        manager.ensure_logged_out()

    console.print("[green]Logged out[/green]")


@app.command()
def sync():
    """
    Unlock if needed and pull the latest vault data.
    """
    manager = _manager()

    with _vault_errors():
        manager.sync()

    console.print("[green]Sync complete[/green]")


@app.command()
def items(
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print items as JSON",
    ),
    enclosed: bool = typer.Option(
        False,
        "--enclose",
        help="Wrap card/identity/login/secure_note blocks in lists (implies --json)",
    ),
):
    """
    List vault items with snake_case field names.
    """
    catalog = ItemCatalog(_manager())

    with _vault_errors():
        listed = catalog.read_items() if enclosed else catalog.list_items()

    if as_json or enclosed:
        typer.echo(json.dumps(listed, indent=2))
        return

    table = Table(title=f"Items ({len(listed)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type", justify="right")
    table.add_column("Folder")

    for item in listed:
        table.add_row(
            str(item.get("id", "")),
            str(item.get("name", "")),
            str(item.get("type", "")),
            str(item.get("folder_id") or ""),
        )

    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"vault-bridge v{__version__}")

    binary = get_settings().tool.binary
    with _vault_errors():
        tool_version = find_tool(binary, _runner())
    console.print(f"{binary} {tool_version}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
