"""Profile command - Show a user's public journal."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from brewlog.application.factory import StoreFactory
from brewlog.core.domain.errors import BrewlogError

app = typer.Typer(help="Public profiles")
console = Console()


@app.command("show")
def show_profile(
    ctx: typer.Context,
    actor: str = typer.Argument(..., help="Handle or DID"),
):
    """Show a user's profile with their beans, equipment and brews."""
    global_opts = ctx.obj or {}

    async def _show_profile():
        factory = StoreFactory(settings=global_opts.get("settings"))
        try:
            snapshot = await factory.profile_reader().load_profile(actor)
        except BrewlogError as exc:
            console.print(f"[red]Could not load profile {actor}: {exc.message}[/red]")
            raise typer.Exit(1) from exc
        finally:
            await factory.close()

        profile = snapshot.profile
        data = snapshot.data
        console.print(f"\n[bold]{profile.display_name or profile.handle}[/bold] @{profile.handle}")
        console.print(f"[dim]{profile.did}[/dim]\n")

        summary = Table(title="Collections")
        summary.add_column("Collection", style="cyan")
        summary.add_column("Count", justify="right")
        summary.add_row("Brews", str(len(data.brews)))
        summary.add_row("Beans", str(len(data.beans)))
        summary.add_row("Roasters", str(len(data.roasters)))
        summary.add_row("Grinders", str(len(data.grinders)))
        summary.add_row("Brewers", str(len(data.brewers)))
        console.print(summary)

        if data.beans:
            beans = Table(title="Beans")
            beans.add_column("Name", style="white")
            beans.add_column("Origin")
            beans.add_column("Roaster")
            for bean in data.beans:
                beans.add_row(
                    bean.name, bean.origin or "-", bean.roaster.name if bean.roaster else "-"
                )
            console.print(beans)

    asyncio.run(_show_profile())
