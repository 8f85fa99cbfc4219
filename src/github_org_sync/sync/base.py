"""Repository Sync Orchestrator base.

Drives one entity kind across every repository of an organization:

    PENDING -> FETCHING -> PERSISTING_ITEMS -> ADVANCING_WATERMARK -> DONE
                 |               |
                 +---------------+--> SKIPPED (watermark untouched)

Repositories are processed strictly one after another. Every database
write happens in a short session of its own; no session is held across
a GitHub round trip.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from github_org_sync.config import Settings, get_settings
from github_org_sync.db.repositories import GitHubUserRepository, RepoRepository
from github_org_sync.errors import InvalidEntityError
from github_org_sync.github.pagination import Page, updated_at_of
from github_org_sync.logging import LogContext, bind_item, bind_repo, get_logger
from github_org_sync.schemas import GitHubRepository, RepoData, UserData, parse_payload
from github_org_sync.schemas.enums import EntityKind

from .enums import RepoSyncState
from .results import ItemOutcome, RepoSyncResult, SyncRunReport
from .watermark import WatermarkTracker

if TYPE_CHECKING:
    from github_org_sync.db.engine import Database
    from github_org_sync.github.pagination import PageFetcher

logger = get_logger(__name__)

RawItem = dict[str, Any]


class RepoSyncOrchestrator:
    """Template for per-repository sync runs.

    Subclasses provide the page stream and the per-item write; the base
    class owns repository enumeration, failure isolation, user upserts
    and the watermark step.

    Usage:
        async with Database(url) as database, GitHubClient.from_settings(settings) as client:
            orchestrator = IssueSyncOrchestrator(database, PageFetcher(client))
            report = await orchestrator.run("acme")
    """

    kind: ClassVar[EntityKind]
    """Entity kind synced; selects the watermark column."""

    report_kind: ClassVar[str] = ""

    def __init__(
        self,
        database: Database,
        fetcher: PageFetcher,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            database: Open database handle
            fetcher: Page streams over the GitHub client
            settings: Settings override (defaults to the cached settings)
        """
        self._database = database
        self._fetcher = fetcher
        self._settings = settings or get_settings()
        self._watermarks = WatermarkTracker(database)

    @property
    def watermarks(self) -> WatermarkTracker:
        return self._watermarks

    def new_report(self, org: str) -> SyncRunReport:
        return SyncRunReport(kind=self.report_kind or self.kind.value, org=org)

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    async def run(self, org: str) -> SyncRunReport:
        """Sync every repository of ``org``.

        Never raises for repository or item failures; they are recorded on
        the returned report. A failure to enumerate repositories marks the
        whole run as failed.
        """
        report = self.new_report(org)
        with LogContext(org=org, entity=report.kind):
            logger.info("Starting {} sync for {}", report.kind, org)
            try:
                repos = await self.list_repositories(org, report)
            except Exception as e:
                report.fatal_error = str(e)
                report.record_error(org, "organization", e)
                logger.error("Could not enumerate repositories of {}: {}", org, e)
                report.finish()
                return report

            logger.info("Found {} repositories to sync", len(repos))
            for repo in repos:
                result = await self.sync_repository(repo, report)
                report.repo_results.append(result)

            report.finish()
            logger.info(
                "{} sync for {} complete: {} repos, {} items synced, {} failed, {} errors",
                report.kind,
                org,
                report.repos_processed,
                report.items_synced,
                report.items_failed,
                len(report.errors),
            )
        return report

    async def list_repositories(self, org: str, report: SyncRunReport) -> list[RepoData]:
        """Repositories of ``org`` from the API, after include/exclude filtering.

        A malformed repository entry is recorded on the report and skipped.
        """
        repos: list[RepoData] = []
        async for page in self._fetcher.iter_repository_pages(org):
            for raw in page.items:
                try:
                    repo = parse_payload(GitHubRepository, raw, "repository").to_repo_data()
                except InvalidEntityError as e:
                    report.record_error(raw.get("full_name") or org, "repository", e)
                    logger.warning("Skipping malformed repository entry {}: {}", raw.get("id"), e)
                    continue
                if self._settings.sync.is_included(repo.name):
                    repos.append(repo)
                else:
                    logger.debug("Skipping excluded repository {}", repo.full_name)
        return repos

    async def list_stored_repositories(self, org: str) -> list[RepoData]:
        """Non-archived repositories of ``org`` already in the database."""
        async with self._database.session() as session:
            rows = await RepoRepository(session).list_active(owner=org)
            repos = RepoData.from_orm_list(rows)
        return [repo for repo in repos if self._settings.sync.is_included(repo.name)]

    # -------------------------------------------------------------------------
    # Repository
    # -------------------------------------------------------------------------

    async def sync_repository(self, repo: RepoData, report: SyncRunReport) -> RepoSyncResult:
        result = RepoSyncResult(repository=repo.full_name)
        log = bind_repo(repo.full_name)

        try:
            await self.prepare_repository(repo, report)
            since = await self._watermarks.get(repo.github_id, self.kind)
            log.info(
                "Syncing {} ({})",
                self.kind.value,
                f"since {since.isoformat()}" if since else "full",
            )
            result.state = RepoSyncState.FETCHING
            latest = await self.process_repository(repo, since, result, report)
        except Exception as e:
            return self._skip(repo, result, report, e)

        if result.hold_watermark:
            log.warning("Holding {} watermark after item fetch failures", self.kind.value)
            result.state = RepoSyncState.DONE
            return result

        result.state = RepoSyncState.ADVANCING_WATERMARK
        try:
            result.watermark = await self._watermarks.advance(
                repo.github_id, self.kind, latest or report.started_at
            )
        except Exception as e:
            return self._skip(repo, result, report, e)

        result.state = RepoSyncState.DONE
        log.info(
            "Synced {} {} ({} failed), watermark {}",
            result.items_synced,
            self.kind.value,
            result.items_failed,
            result.watermark.isoformat(),
        )
        return result

    def _skip(
        self,
        repo: RepoData,
        result: RepoSyncResult,
        report: SyncRunReport,
        error: Exception,
    ) -> RepoSyncResult:
        result.state = RepoSyncState.SKIPPED
        result.error = str(error)
        report.record_error(repo.full_name, "repository", error)
        bind_repo(repo.full_name).warning("Skipping repository: {}", error)
        return result

    async def prepare_repository(self, repo: RepoData, report: SyncRunReport) -> None:
        """Hook run before fetching. Upserts the repository row by default."""
        async with self._database.session() as session:
            await RepoRepository(session).upsert(repo, report.started_at)

    async def process_repository(
        self,
        repo: RepoData,
        since: datetime | None,
        result: RepoSyncResult,
        report: SyncRunReport,
    ) -> datetime | None:
        """Drain the page stream, persisting items one at a time.

        Returns:
            The newest ``updated_at`` observed, or None if the stream was empty
        """
        latest: datetime | None = None
        async for page in self.iter_pages(repo, since):
            result.state = RepoSyncState.PERSISTING_ITEMS
            for raw in page.items:
                outcome = await self.persist_one(repo, raw, result, report)
                if outcome.updated_at and (latest is None or outcome.updated_at > latest):
                    latest = outcome.updated_at
            result.state = RepoSyncState.FETCHING
        return latest

    def iter_pages(self, repo: RepoData, since: datetime | None) -> AsyncIterator[Page]:
        """Page stream of the entity kind for one repository."""
        raise NotImplementedError(f"{type(self).__name__} does not stream pages per repository")

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def persist_one(
        self,
        repo: RepoData,
        raw: RawItem,
        result: RepoSyncResult,
        report: SyncRunReport,
        **context: Any,
    ) -> ItemOutcome:
        """Persist one item, recording a failure instead of raising."""
        number = raw.get("number", context.get("issue_number"))
        updated_at = updated_at_of(raw)

        try:
            users = await self.persist_item(repo, raw, report.started_at, **context)
        except Exception as e:
            result.items_failed += 1
            error = report.record_error(repo.full_name, self.kind.value, e, number)
            bind_item(repo.full_name, self.kind.value, number).warning(
                "Failed to persist {}: {}", self.kind.value, e
            )
            return ItemOutcome(number=number, updated_at=updated_at, error=error)

        result.items_synced += 1
        await self.upsert_users(repo, users, report)
        return ItemOutcome(number=number, updated_at=updated_at)

    async def persist_item(
        self,
        repo: RepoData,
        raw: RawItem,
        synced_at: datetime,
        **context: Any,
    ) -> list[UserData]:
        """Write one item in its own transaction.

        Returns:
            Accounts the item references, upserted afterwards
        """
        raise NotImplementedError(f"{type(self).__name__} does not persist raw items")

    async def upsert_users(
        self,
        repo: RepoData,
        users: list[UserData],
        report: SyncRunReport,
    ) -> int:
        """Upsert referenced accounts, each in its own transaction.

        Returns:
            Number of accounts written
        """
        written = 0
        for user in users:
            try:
                async with self._database.session() as session:
                    await GitHubUserRepository(session).upsert(user, report.started_at)
            except Exception as e:
                report.record_error(repo.full_name, "user", e)
                bind_repo(repo.full_name).warning("Failed to upsert user {}: {}", user.login, e)
                continue
            written += 1
        return written
