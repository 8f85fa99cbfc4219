"""Issue sync: repositories from the API, then their issues."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from github_org_sync.db.repositories import IssueRepository
from github_org_sync.github.pagination import Page
from github_org_sync.schemas import GitHubIssue, RepoData, UserData, parse_payload
from github_org_sync.schemas.enums import EntityKind

from .base import RawItem, RepoSyncOrchestrator


class IssueSyncOrchestrator(RepoSyncOrchestrator):
    """Incremental issue sync.

    Each repository row is upserted before its issues. Pull requests that
    the issues endpoint returns are filtered out by the page stream.
    """

    kind = EntityKind.ISSUE

    def iter_pages(self, repo: RepoData, since: datetime | None) -> AsyncIterator[Page]:
        return self._fetcher.iter_issue_pages(repo.owner, repo.name, since=since)

    async def persist_item(
        self,
        repo: RepoData,
        raw: RawItem,
        synced_at: datetime,
        **context: Any,
    ) -> list[UserData]:
        payload = parse_payload(GitHubIssue, raw, "issue")
        async with self._database.session() as session:
            await IssueRepository(session).upsert(payload.to_issue_data(repo.github_id), synced_at)
        return [user.to_user_data() for user in payload.referenced_users()]
