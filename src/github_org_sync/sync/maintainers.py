"""Maintainer discovery across stored repositories.

Per repository, evidence is collected from up to three sources:

    1. Direct collaborators and their permission tier
    2. The first CODEOWNERS file found
    3. The registry metadata template

Missing collaborator access degrades the repository to file-based
evidence. Candidates are written one transaction each:
user -> assertion -> maintainer flag.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from github_org_sync.db.repositories import GitHubUserRepository, MaintainerRepository
from github_org_sync.errors import DependencyMissingError
from github_org_sync.github.exceptions import GitHubNotFoundError, is_permission_error
from github_org_sync.logging import bind_repo
from github_org_sync.maintainers import (
    Collaborator,
    Evidence,
    MaintainerCandidate,
    MaintainerSignalAggregator,
    MetadataTemplateEvidence,
    OwnershipFileEvidence,
    PermissionEvidence,
    parse_codeowners,
    parse_metadata_template,
)
from github_org_sync.schemas import GitHubUser, RepoData, UserData, parse_payload

from .base import RepoSyncOrchestrator
from .enums import RepoSyncState
from .results import MaintainerSyncReport, RepoSyncResult, SyncRunReport

if TYPE_CHECKING:
    from github_org_sync.config import Settings
    from github_org_sync.db.engine import Database
    from github_org_sync.github.pagination import PageFetcher


class MaintainerSyncOrchestrator(RepoSyncOrchestrator):
    """Discover and persist repository maintainers.

    No watermark: every pass re-evaluates every stored non-archived
    repository, and assertions only ever gain confidence.
    """

    report_kind = "maintainer"

    def __init__(
        self,
        database: Database,
        fetcher: PageFetcher,
        settings: Settings | None = None,
        aggregator: MaintainerSignalAggregator | None = None,
    ) -> None:
        super().__init__(database, fetcher, settings)
        self._aggregator = aggregator or MaintainerSignalAggregator.from_config(
            self._settings.maintainers
        )
        self._newly_marked: set[int] = set()

    def new_report(self, org: str) -> MaintainerSyncReport:
        self._newly_marked = set()
        return MaintainerSyncReport(kind=self.report_kind, org=org)

    async def list_repositories(self, org: str, report: SyncRunReport) -> list[RepoData]:
        return await self.list_stored_repositories(org)

    # -------------------------------------------------------------------------
    # Repository
    # -------------------------------------------------------------------------

    async def sync_repository(self, repo: RepoData, report: SyncRunReport) -> RepoSyncResult:
        result = RepoSyncResult(repository=repo.full_name)
        log = bind_repo(repo.full_name)

        try:
            result.state = RepoSyncState.FETCHING
            evidence, collaborators = await self.collect_evidence(repo, result, report)
            candidates = self._aggregator.aggregate(evidence)
            log.info(
                "Found {} maintainer candidates from {} sources{}",
                len(candidates),
                len(evidence),
                " (degraded)" if result.degraded else "",
            )

            result.state = RepoSyncState.PERSISTING_ITEMS
            for candidate in candidates:
                await self.persist_candidate(repo, candidate, collaborators, result, report)
        except Exception as e:
            return self._skip(repo, result, report, e)

        result.state = RepoSyncState.DONE
        return result

    async def collect_evidence(
        self,
        repo: RepoData,
        result: RepoSyncResult,
        report: SyncRunReport,
    ) -> tuple[list[Evidence], dict[str, Collaborator]]:
        """Gather evidence from every available source.

        Returns:
            Evidence list and the collaborators keyed by lowercase login

        Raises:
            GitHubClientError: If the collaborator fetch fails for a reason
                other than missing permission
        """
        log = bind_repo(repo.full_name)
        evidence: list[Evidence] = []
        collaborators: dict[str, Collaborator] = {}

        try:
            async for page in self._fetcher.iter_collaborator_pages(repo.owner, repo.name):
                for raw in page.items:
                    collaborator = Collaborator.from_payload(raw)
                    collaborators[collaborator.login.lower()] = collaborator
        except Exception as e:
            if not is_permission_error(e):
                raise
            result.degraded = True
            log.warning("No collaborator access, using file evidence only: {}", e)
        else:
            evidence.append(PermissionEvidence(collaborators=tuple(collaborators.values())))

        config = self._settings.maintainers
        for path in config.codeowners_paths:
            text = await self._read_file(repo, path, report)
            if text is not None:
                evidence.append(OwnershipFileEvidence(logins=parse_codeowners(text), path=path))
                break

        text = await self._read_file(repo, config.metadata_template_path, report)
        if text is not None:
            evidence.append(MetadataTemplateEvidence(logins=parse_metadata_template(text)))

        return evidence, collaborators

    async def _read_file(self, repo: RepoData, path: str, report: SyncRunReport) -> str | None:
        try:
            return await self._fetcher.client.get_file_content(repo.owner, repo.name, path)
        except Exception as e:
            report.record_error(repo.full_name, "maintainer_file", e)
            bind_repo(repo.full_name).warning("Could not read {}: {}", path, e)
            return None

    # -------------------------------------------------------------------------
    # Candidates
    # -------------------------------------------------------------------------

    async def resolve_user(
        self,
        candidate: MaintainerCandidate,
        collaborators: dict[str, Collaborator],
    ) -> UserData:
        """Find the account behind a candidate.

        Permission-API identities are used as reported. File-only logins
        are looked up in the database first, then in the users API.

        Raises:
            DependencyMissingError: If the login does not exist on GitHub
        """
        collaborator = collaborators.get(candidate.login.lower())
        if collaborator is not None:
            return UserData(
                github_id=collaborator.user_id,
                login=collaborator.login,
                avatar_url=collaborator.avatar_url,
                type=collaborator.account_type,
            )

        async with self._database.session() as session:
            stored = await GitHubUserRepository(session).get_by_login(candidate.login)
            if stored is not None:
                return UserData.from_orm(stored)

        try:
            raw = await self._fetcher.client.get_user(candidate.login)
        except GitHubNotFoundError as e:
            raise DependencyMissingError("user", candidate.login) from e
        return parse_payload(GitHubUser, raw, "user").to_user_data()

    async def persist_candidate(
        self,
        repo: RepoData,
        candidate: MaintainerCandidate,
        collaborators: dict[str, Collaborator],
        result: RepoSyncResult,
        report: SyncRunReport,
    ) -> bool:
        """Write one candidate; failures are recorded and skipped.

        Returns:
            True if the assertion was written
        """
        sources = [source.value for source in candidate.sources]
        try:
            user = await self.resolve_user(candidate, collaborators)
            async with self._database.session() as session:
                await GitHubUserRepository(session).upsert(user, report.started_at)
                await MaintainerRepository(session).upsert(
                    repo.github_id,
                    user.github_id,
                    source=candidate.best_source.value,
                    sources=sources,
                    confidence=candidate.confidence,
                    confirmed_at=report.started_at,
                )
                newly_marked = await GitHubUserRepository(session).mark_maintainer(
                    user.github_id, sources
                )
        except Exception as e:
            result.items_failed += 1
            report.record_error(repo.full_name, "maintainer", e)
            bind_repo(repo.full_name).warning(
                "Failed to persist maintainer {}: {}", candidate.login, e
            )
            return False

        result.items_synced += 1
        if isinstance(report, MaintainerSyncReport):
            report.maintainers_discovered += 1
            if newly_marked and user.github_id not in self._newly_marked:
                self._newly_marked.add(user.github_id)
                report.users_newly_marked += 1
        bind_repo(repo.full_name).debug(
            "{} maintains via {} ({})",
            candidate.login,
            candidate.best_source.value,
            candidate.confidence,
        )
        return True

