"""Sync commands for GitHub Org Sync."""

import typer

from github_org_sync.cli.common import (
    OrgArgument,
    OutputFormatOption,
    print_report,
    require_configuration,
    resolve_org,
    run_async_command,
)
from github_org_sync.config import Settings, get_settings
from github_org_sync.db import Database
from github_org_sync.github import GitHubClient, PageFetcher
from github_org_sync.sync import (
    CommentSyncOrchestrator,
    IssueSyncOrchestrator,
    MaintainerSyncOrchestrator,
    OutputFormat,
    PullRequestSyncOrchestrator,
    RepoSyncOrchestrator,
    SyncRunReport,
)

app = typer.Typer(help="Sync organization data from GitHub")


async def _run(
    orchestrator_class: type[RepoSyncOrchestrator],
    org: str,
    settings: Settings,
    *,
    allow_token: bool = False,
) -> SyncRunReport:
    async with (
        Database.from_settings(settings) as database,
        GitHubClient.from_settings(settings, allow_token=allow_token) as client,
    ):
        fetcher = PageFetcher(client, page_size=settings.sync.page_size)
        orchestrator = orchestrator_class(database, fetcher, settings)
        return await orchestrator.run(org)


def _sync_command(
    orchestrator_class: type[RepoSyncOrchestrator],
    org: str | None,
    output_format: OutputFormat,
    *,
    allow_token: bool = False,
) -> None:
    settings = get_settings()
    require_configuration(settings, allow_token=allow_token)
    resolved = resolve_org(org, settings)

    report = run_async_command(
        _run(orchestrator_class, resolved, settings, allow_token=allow_token),
        error_prefix="Sync failed",
    )
    print_report(report, output_format)

    # Item and repository errors are reported, not fatal
    if report.failed:
        raise typer.Exit(1)


@app.command("issues")
def sync_issues(
    org: OrgArgument = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Sync repositories and issues of an organization.

    Examples:
        ghsync sync issues acme
        ghsync sync issues --format json
    """
    _sync_command(IssueSyncOrchestrator, org, output_format)


@app.command("pulls")
def sync_pulls(
    org: OrgArgument = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Sync pull requests with diff stats and reviews.

    Examples:
        ghsync sync pulls acme
    """
    _sync_command(PullRequestSyncOrchestrator, org, output_format)


@app.command("comments")
def sync_comments(
    org: OrgArgument = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Sync comments on stored open issues.

    Run `ghsync sync issues` first; repositories and issues come from the database.
    """
    _sync_command(CommentSyncOrchestrator, org, output_format)


@app.command("maintainers")
def sync_maintainers(
    org: OrgArgument = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Discover maintainers of stored repositories.

    Accepts GITHUB_TOKEN in place of GitHub App credentials.

    Examples:
        ghsync sync maintainers acme
        GITHUB_TOKEN=... ghsync sync maintainers acme --format json
    """
    _sync_command(MaintainerSyncOrchestrator, org, output_format, allow_token=True)
