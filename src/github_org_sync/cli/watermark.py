"""Watermark inspection and rollback commands."""

import json
from datetime import datetime

import typer
from rich.table import Table

from github_org_sync.cli.common import (
    OutputFormatOption,
    RepoFilterOption,
    console,
    require_configuration,
    run_async_command,
)
from github_org_sync.config import get_settings
from github_org_sync.db import Database
from github_org_sync.schemas import EntityKind
from github_org_sync.sync import OutputFormat, WatermarkRow, WatermarkTracker

app = typer.Typer(help="Inspect and reset sync watermarks")


def _fmt(value: datetime | None) -> str:
    return value.isoformat() if value is not None else "[dim]never[/dim]"


@app.command("show")
def show(
    repo: RepoFilterOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show stored watermarks.

    Examples:
        ghsync watermark show
        ghsync watermark show --repo acme/widgets
    """
    settings = get_settings()
    require_configuration(settings, github=False)

    async def _show() -> list[WatermarkRow]:
        async with Database.from_settings(settings) as database:
            return await WatermarkTracker(database).list_all(repo)

    rows = run_async_command(_show())

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps([row.to_dict() for row in rows]))
        return

    if not rows:
        console.print("[yellow]No watermarks stored.[/yellow]")
        return

    table = Table(title="Sync Watermarks")
    table.add_column("Repository", style="cyan")
    table.add_column("Issues")
    table.add_column("Pull Requests")
    table.add_column("Comments")
    for row in rows:
        table.add_row(
            row.repository,
            _fmt(row.last_issue_sync),
            _fmt(row.last_pr_sync),
            _fmt(row.last_comment_sync),
        )
    console.print(table)


@app.command("reset")
def reset(
    repo: str = typer.Argument(..., help="Repository in owner/name format"),
    kind: EntityKind | None = typer.Option(  # noqa: B008
        None,
        "--kind",
        "-k",
        help="Entity kind to reset (default: all)",
    ),
) -> None:
    """Reset watermarks so the next pass is a full sync.

    Examples:
        ghsync watermark reset acme/widgets
        ghsync watermark reset acme/widgets --kind comment
    """
    if "/" not in repo:
        console.print("[red]Error:[/red] Repository must be in owner/name format")
        raise typer.Exit(1)

    settings = get_settings()
    require_configuration(settings, github=False)

    async def _reset() -> bool:
        async with Database.from_settings(settings) as database:
            tracker = WatermarkTracker(database)
            return await tracker.reset(await tracker.resolve_repo(repo), kind)

    cleared = run_async_command(_reset(), error_prefix="Reset failed")
    scope = kind.value if kind else "all"
    if cleared:
        console.print(f"[green]Reset {scope} watermark(s) for {repo}[/green]")
    else:
        console.print(f"[yellow]No {scope} watermark stored for {repo}[/yellow]")
