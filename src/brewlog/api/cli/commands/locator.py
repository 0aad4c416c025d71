"""Locator command - Parse and validate record locators."""

import typer
from rich.console import Console
from rich.table import Table

from brewlog.core.domain.errors import MalformedLocatorError
from brewlog.core.domain.locator import CollectionKind, resolve_locator

app = typer.Typer(help="Record locator tools")
console = Console()


@app.command("parse")
def parse_locator(
    uri: str = typer.Argument(..., help="Locator such as at://did:plc:abc/<nsid>/<key>"),
):
    """Parse a locator and show its parts."""
    try:
        parsed = resolve_locator(uri)
    except MalformedLocatorError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1) from exc

    try:
        kind = CollectionKind.from_nsid(parsed.collection).value
    except ValueError:
        kind = "-"

    table = Table(title="Locator")
    table.add_column("Part", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Owner", parsed.owner_id)
    table.add_row("Collection", parsed.collection or "-")
    table.add_row("Kind", kind)
    table.add_row("Record key", parsed.record_key or "-")
    console.print(table)
