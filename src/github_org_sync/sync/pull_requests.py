"""Pull request sync with diff stats and reviews."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from github_org_sync.db.repositories import PullRequestRepository
from github_org_sync.github.pagination import Page
from github_org_sync.logging import bind_item
from github_org_sync.schemas import (
    DiffStats,
    GitHubPullRequest,
    RepoData,
    ReviewData,
    UserData,
    parse_payload,
)
from github_org_sync.schemas.enums import EntityKind

from .base import RawItem, RepoSyncOrchestrator


class PullRequestSyncOrchestrator(RepoSyncOrchestrator):
    """Incremental pull request sync.

    Per PR, the diff-stats and review sub-fetches run concurrently and are
    joined before the write. Neither can fail the PR:

        - diff stats unavailable: the stored counts are kept
        - reviews unavailable: the review set is replaced by an empty one
    """

    kind = EntityKind.PULL_REQUEST

    def iter_pages(self, repo: RepoData, since: datetime | None) -> AsyncIterator[Page]:
        return self._fetcher.iter_pull_request_pages(repo.owner, repo.name, since=since)

    async def _diff_stats(self, repo: RepoData, number: int) -> DiffStats | None:
        try:
            return await self._fetcher.fetch_diff_stats(repo.owner, repo.name, number)
        except Exception as e:
            bind_item(repo.full_name, self.kind.value, number).warning(
                "Diff stats unavailable, keeping stored values: {}", e
            )
            return None

    async def _reviews(self, repo: RepoData, number: int) -> list[ReviewData]:
        try:
            return await self._fetcher.fetch_reviews(repo.owner, repo.name, number)
        except Exception as e:
            bind_item(repo.full_name, self.kind.value, number).warning(
                "Reviews unavailable, storing none: {}", e
            )
            return []

    async def persist_item(
        self,
        repo: RepoData,
        raw: RawItem,
        synced_at: datetime,
        **context: Any,
    ) -> list[UserData]:
        payload = parse_payload(GitHubPullRequest, raw, "pull_request")

        stats, reviews = await asyncio.gather(
            self._diff_stats(repo, payload.number),
            self._reviews(repo, payload.number),
        )

        async with self._database.session() as session:
            prs = PullRequestRepository(session)
            pr, _created = await prs.upsert(
                payload.to_pull_request_data(repo.github_id, stats), synced_at
            )
            await prs.replace_reviews(pr.github_id, reviews, synced_at)

        users = [user.to_user_data() for user in payload.referenced_users()]
        known = {user.github_id for user in users}
        for review in reviews:
            if review.reviewer is not None and review.reviewer.github_id not in known:
                known.add(review.reviewer.github_id)
                users.append(review.reviewer)
        return users
