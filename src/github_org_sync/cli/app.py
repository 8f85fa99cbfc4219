"""Main CLI application for GitHub Org Sync."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from github_org_sync import __version__
from github_org_sync.cli import db as db_cmd
from github_org_sync.cli import sync as sync_cmd
from github_org_sync.cli import watermark as watermark_cmd
from github_org_sync.config import get_settings
from github_org_sync.logging import setup_logging

app = typer.Typer(
    name="ghsync",
    help="Incremental sync of a GitHub organization into a relational store.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ghsync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """GitHub Org Sync - issues, pull requests, comments and maintainers."""
    settings = get_settings()
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


app.add_typer(sync_cmd.app, name="sync")
app.add_typer(watermark_cmd.app, name="watermark")
app.add_typer(db_cmd.app, name="db")


if __name__ == "__main__":
    app()
