"""Issue comment sync over stored open issues."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from github_org_sync.db.repositories import CommentRepository, IssueRepository
from github_org_sync.logging import bind_item
from github_org_sync.schemas import GitHubComment, RepoData, UserData, parse_payload
from github_org_sync.schemas.enums import EntityKind

from .base import RawItem, RepoSyncOrchestrator
from .enums import RepoSyncState
from .results import RepoSyncResult, SyncRunReport


class CommentSyncOrchestrator(RepoSyncOrchestrator):
    """Incremental comment sync.

    Works from the database: stored non-archived repositories of the org,
    then each repository's stored open issues. Comments are fetched per
    issue since the repository's comment watermark, or since the issue's
    own last complete pass if that is older. Issues no pass has covered
    (stored late, newly included, or never fetched) get their full history.
    If any per-issue fetch fails, the watermark is held so the next pass
    retries the same window.
    """

    kind = EntityKind.COMMENT

    async def list_repositories(self, org: str, report: SyncRunReport) -> list[RepoData]:
        return await self.list_stored_repositories(org)

    async def prepare_repository(self, repo: RepoData, report: SyncRunReport) -> None:
        # Repository rows come from the database already
        return None

    async def process_repository(
        self,
        repo: RepoData,
        since: datetime | None,
        result: RepoSyncResult,
        report: SyncRunReport,
    ) -> datetime | None:
        async with self._database.session() as session:
            open_issues = [
                (issue.github_id, issue.number, issue.comments_synced_at)
                for issue in await IssueRepository(session).list_open(repo.github_id)
            ]

        latest: datetime | None = None
        for issue_github_id, number, marker in open_issues:
            # Issues no comment pass has covered yet get their full history
            issue_since = min(since, marker) if since and marker else None
            try:
                async for page in self._fetcher.iter_comment_pages(
                    repo.owner, repo.name, number, since=issue_since
                ):
                    result.state = RepoSyncState.PERSISTING_ITEMS
                    for raw in page.items:
                        outcome = await self.persist_one(
                            repo,
                            raw,
                            result,
                            report,
                            issue_github_id=issue_github_id,
                            issue_number=number,
                        )
                        if outcome.updated_at and (latest is None or outcome.updated_at > latest):
                            latest = outcome.updated_at
                async with self._database.session() as session:
                    await IssueRepository(session).mark_comments_synced(
                        issue_github_id, report.started_at
                    )
            except Exception as e:
                result.items_failed += 1
                result.hold_watermark = True
                report.record_error(repo.full_name, self.kind.value, e, number)
                bind_item(repo.full_name, self.kind.value, number).warning(
                    "Failed to fetch comments: {}", e
                )
            result.state = RepoSyncState.FETCHING
        return latest

    async def persist_item(
        self,
        repo: RepoData,
        raw: RawItem,
        synced_at: datetime,
        **context: Any,
    ) -> list[UserData]:
        payload = parse_payload(GitHubComment, raw, "comment")
        async with self._database.session() as session:
            await CommentRepository(session).upsert(
                payload.to_comment_data(context["issue_github_id"]), synced_at
            )
        return [payload.user.to_user_data()] if payload.user else []
