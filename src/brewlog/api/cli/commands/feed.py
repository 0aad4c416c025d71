"""Feed commands - Show and manage the community feed."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from brewlog.application.factory import StoreFactory

app = typer.Typer(help="Community feed")
console = Console()


def _factory(ctx: typer.Context) -> StoreFactory:
    global_opts = ctx.obj or {}
    return StoreFactory(settings=global_opts.get("settings"))


@app.command("show")
def show_feed(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum brews to show"),
):
    """Show recent brews from registered users."""

    async def _show_feed():
        factory = _factory(ctx)
        try:
            items = await factory.feed_service().get_recent_brews(limit)
        finally:
            await factory.close()

        if not items:
            console.print("[yellow]No brews in the feed yet[/yellow]")
            return

        table = Table(title="Recent Brews")
        table.add_column("When", style="dim")
        table.add_column("Who", style="cyan")
        table.add_column("Bean", style="white")
        table.add_column("Method", style="white")
        table.add_column("Rating", justify="right")

        for item in items:
            bean = item.brew.bean
            bean_label = bean.name if bean else "-"
            if bean and bean.roaster:
                bean_label = f"{bean.name} ({bean.roaster.name})"
            table.add_row(
                item.time_ago,
                f"@{item.author.handle}",
                bean_label,
                item.brew.method or "-",
                str(item.brew.rating) if item.brew.rating else "-",
            )
        console.print(table)

    asyncio.run(_show_feed())


@app.command("register")
def register(
    ctx: typer.Context,
    did: str = typer.Argument(..., help="Owner DID to include in the feed"),
):
    """Add a user to the feed."""

    async def _register():
        registry = _factory(ctx).feed_registry()
        try:
            await registry.register(did)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(1) from exc
        console.print(f"[green]Registered {did}[/green]")

    asyncio.run(_register())


@app.command("unregister")
def unregister(
    ctx: typer.Context,
    did: str = typer.Argument(..., help="Owner DID to remove from the feed"),
):
    """Remove a user from the feed."""

    async def _unregister():
        await _factory(ctx).feed_registry().unregister(did)
        console.print(f"[green]Unregistered {did}[/green]")

    asyncio.run(_unregister())


@app.command("owners")
def list_owners(ctx: typer.Context):
    """List users registered for the feed."""

    async def _list_owners():
        owners = await _factory(ctx).feed_registry().list_owners()
        table = Table(title="Feed Owners")
        table.add_column("DID", style="cyan")
        for did in owners:
            table.add_row(did)
        console.print(table)

    asyncio.run(_list_owners())
