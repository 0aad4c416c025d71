"""Brewlog CLI entry point."""

import logging

import structlog
import typer
from rich.console import Console

from brewlog.api.cli.commands import feed, locator, profile
from brewlog.application.config_loader import load_settings
from brewlog.core.domain.errors import ConfigError

app = typer.Typer(
    name="brewlog",
    help="Brewlog - coffee brewing journal on personal data repositories",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register command groups
app.add_typer(feed.app, name="feed", help="Community feed")
app.add_typer(profile.app, name="profile", help="Public profiles")
app.add_typer(locator.app, name="locator", help="Record locator tools")


def configure_logging(debug: bool) -> None:
    """Route structlog output through the stdlib logger at the chosen level."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None, "--config", "-c", help="Path to a YAML settings file"
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """Brewlog CLI."""
    configure_logging(debug)
    try:
        settings = load_settings(config)
    except ConfigError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1) from exc
    # Store global options in context for subcommands
    ctx.obj = {"settings": settings, "debug": debug}


@app.command()
def version():
    """Show brewlog version."""
    from brewlog import __version__

    console.print(f"[bold blue]Version:[/bold blue] [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
