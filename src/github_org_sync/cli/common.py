"""Common CLI option factories and helpers.

This module centralizes reusable CLI options and provides:
- `run_async_command`: Unified async execution with error handling for CLI commands
- `require_configuration`: Early exit on missing environment variables
- `print_report`: Text or JSON rendering of a sync run report
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from typing import Annotated, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from github_org_sync.config import Settings
from github_org_sync.errors import ConfigurationError
from github_org_sync.sync import MaintainerSyncReport, OutputFormat, SyncRunReport

# Shared console instance for CLI output
console = Console()

T = TypeVar("T")


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Execute async code from synchronous CLI command with unified error handling.

    Catches exceptions, prints user-friendly error messages, and exits with
    code 1.

    Args:
        coro: Async coroutine to execute
        error_prefix: Prefix for error messages (default: "Error")

    Returns:
        Result from the coroutine

    Raises:
        typer.Exit: Re-raised from deliberate exits, or raised with code 1 on error
    """
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from None
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


def require_configuration(
    settings: Settings,
    *,
    github: bool = True,
    allow_token: bool = False,
) -> None:
    """Exit with code 1 unless the database (and GitHub credentials) are configured.

    Runs before any connection is opened.
    """
    try:
        settings.require_database()
        if github:
            settings.require_github_credentials(allow_token=allow_token)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def resolve_org(org: str | None, settings: Settings) -> str:
    """Organization from the argument, else GITHUB_ORG."""
    resolved = org or settings.github_org
    if not resolved:
        console.print(
            "[red]Configuration error:[/red] Missing organization: "
            "pass ORG or set GITHUB_ORG"
        )
        raise typer.Exit(1)
    return resolved


# Typer requires function calls as default arguments, which triggers B008.
# Using Annotated with a centralized type alias keeps the noqa in one place.

OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option(
        "--format",
        "-f",
        help="Output format",
    ),
]
"""Output format option type for CLI commands.

Usage:
    def command(output_format: OutputFormatOption = OutputFormat.TEXT):
"""

OrgArgument = Annotated[
    str | None,
    typer.Argument(
        help="GitHub organization (defaults to GITHUB_ORG)",
    ),
]
"""Optional positional organization argument."""

RepoFilterOption = Annotated[
    str | None,
    typer.Option(
        "--repo",
        "-r",
        help="Filter by repository (owner/name format)",
    ),
]
"""Optional repository filtering option."""


# -----------------------------------------------------------------------------
# Output
# -----------------------------------------------------------------------------


def print_report(report: SyncRunReport, output_format: OutputFormat) -> None:
    """Render a run report.

    Args:
        report: Completed run report
        output_format: TEXT for a summary, JSON for the full report
    """
    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(report.to_dict()))
        return

    if report.failed:
        console.print(f"[red]Sync failed:[/red] {escape(report.fatal_error or '')}")
        return

    title = report.kind.replace("_", " ").title()
    console.print(f"[bold]{title} Sync Complete[/bold] ({report.org})")
    console.print()
    console.print(f"  [green]Repositories synced:[/green]  {report.repos_processed}")
    if report.repos_skipped:
        console.print(f"  [yellow]Repositories skipped:[/yellow] {report.repos_skipped}")
    console.print(f"  [green]Items synced:[/green]         {report.items_synced}")
    if report.items_failed:
        console.print(f"  [red]Items failed:[/red]         {report.items_failed}")

    if isinstance(report, MaintainerSyncReport):
        console.print()
        console.print(f"  Repositories scanned:   {report.repos_scanned}")
        console.print(f"  Maintainers discovered: {report.maintainers_discovered}")
        console.print(f"  Users newly marked:     {report.users_newly_marked}")

    console.print()
    console.print(f"  Duration: {report.duration_seconds:.1f}s")

    if report.errors:
        console.print()
        console.print(f"[bold]Errors ({len(report.errors)}):[/bold]")
        for error in report.errors:
            where = f"#{error.number}" if error.number is not None else error.entity
            console.print(f"  {error.repository} {where}: {error.error_type}: {escape(error.message)}")
