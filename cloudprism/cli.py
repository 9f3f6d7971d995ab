"""
CloudPrism CLI - State store lifecycle for Pulumi stacks.
"""

import logging

import typer
from rich.console import Console

from .settings import get_settings
from .statestore import StateStore, get_state_store

# Setup
app = typer.Typer(
    name="cloudprism",
    help="State store lifecycle for Pulumi stacks",
    add_completion=False,
)
store_app = typer.Typer(help="Open, close and delete the state store")
app.add_typer(store_app, name="store")
console = Console()


def configure_logging(debug: bool = False):
    """Configure logging based on settings, DEBUG when debug is set."""
    settings = get_settings()
    level = (
        logging.DEBUG
        if debug
        else getattr(logging, settings.log_level.upper(), logging.INFO)
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _get_store() -> StateStore:
    return get_state_store(get_settings())


def _handle_command_error(e: Exception, command_type: str) -> None:
    """Print a command failure and exit with code 1.

    Raises:
        SystemExit: Always exits with code 1
    """
    console.print(
        f"\n[bold red]✗ {command_type.capitalize()} failed:[/bold red] {e}"
    )
    raise typer.Exit(code=1)


@app.callback()
def main(
    debug: bool = typer.Option(
        False, "--debug", "-d", help="Enable verbose logging"
    ),
):
    """CloudPrism - manage where Pulumi keeps stack state."""
    configure_logging(debug)


@store_app.command("open")
def open_store():
    """Create the state store if needed and log in to it."""
    try:
        store = _get_store()
        uri = store.open()
        console.print(f"[bold green]✓ State store open:[/bold green] {uri}")
    except Exception as e:
        _handle_command_error(e, "open")


@store_app.command("close")
def close_store():
    """Log out of the state store, keeping its data."""
    try:
        store = _get_store()
        store.close()
        console.print(f"[bold green]✓ State store closed:[/bold green] {store.uri}")
    except Exception as e:
        _handle_command_error(e, "close")


@store_app.command("delete")
def delete_store(
    force: bool = typer.Option(
        False, "--force", "-f", help="Delete all state data first"
    ),
):
    """Delete the state store."""
    try:
        store = _get_store()
        store.delete(force=force)
        console.print(f"[bold green]✓ State store deleted:[/bold green] {store.uri}")
    except Exception as e:
        _handle_command_error(e, "delete")


@app.command()
def version():
    """Show the CloudPrism version."""
    from . import __version__

    console.print(f"cloudprism {__version__}")
