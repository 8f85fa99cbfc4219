"""Sync Watermark Tracker.

Every call opens its own short session, so a watermark write is durable
as soon as the call returns and never shares a transaction with item
writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from github_org_sync.db.repositories import RepoRepository, SyncStateRepository
from github_org_sync.logging import get_logger
from github_org_sync.schemas.enums import EntityKind

if TYPE_CHECKING:
    from github_org_sync.db.engine import Database

logger = get_logger(__name__)


@dataclass(frozen=True)
class WatermarkRow:
    """Watermarks of one repository, for display."""

    repository: str
    last_issue_sync: datetime | None
    last_pr_sync: datetime | None
    last_comment_sync: datetime | None
    updated_at: datetime | None

    def to_dict(self) -> dict[str, str | None]:
        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "repository": self.repository,
            "last_issue_sync": iso(self.last_issue_sync),
            "last_pr_sync": iso(self.last_pr_sync),
            "last_comment_sync": iso(self.last_comment_sync),
            "updated_at": iso(self.updated_at),
        }


class WatermarkTracker:
    """Per-repository, per-entity-kind low watermarks.

    ``None`` means "never synced": the next pass is a full sync.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def get(self, repo_github_id: int, kind: EntityKind) -> datetime | None:
        async with self._database.session() as session:
            return await SyncStateRepository(session).get_watermark(repo_github_id, kind)

    async def advance(
        self,
        repo_github_id: int,
        kind: EntityKind,
        timestamp: datetime,
    ) -> datetime:
        """Move a watermark forward (no-op if ``timestamp`` is not newer).

        Returns:
            The stored watermark after the call
        """
        async with self._database.session() as session:
            stored = await SyncStateRepository(session).advance(repo_github_id, kind, timestamp)
        logger.debug("Watermark {} for repo {} now {}", kind.value, repo_github_id, stored)
        return stored

    async def resolve_repo(self, full_name: str) -> int:
        """Look up the GitHub ID of a stored repository.

        Raises:
            LookupError: If the repository is not stored
        """
        async with self._database.session() as session:
            repo = await RepoRepository(session).get_by_full_name(full_name)
        if repo is None:
            raise LookupError(f"Repository {full_name} is not in the database")
        return repo.github_id

    async def reset(self, repo_github_id: int, kind: EntityKind | None = None) -> bool:
        """Operator rollback of one or all watermarks of a repository.

        Args:
            repo_github_id: Repository GitHub ID
            kind: Entity kind to reset, or None for all

        Returns:
            True if anything was cleared
        """
        async with self._database.session() as session:
            cleared = await SyncStateRepository(session).reset(repo_github_id, kind)
        logger.info(
            "Reset {} watermark(s) for repo {}: {}",
            kind.value if kind else "all",
            repo_github_id,
            "cleared" if cleared else "nothing stored",
        )
        return cleared

    async def list_all(self, full_name: str | None = None) -> list[WatermarkRow]:
        async with self._database.session() as session:
            rows = await SyncStateRepository(session).list_with_repos()
        return [
            WatermarkRow(
                repository=repo.full_name,
                last_issue_sync=state.last_issue_sync,
                last_pr_sync=state.last_pr_sync,
                last_comment_sync=state.last_comment_sync,
                updated_at=state.updated_at,
            )
            for state, repo in rows
            if full_name is None or repo.full_name.lower() == full_name.lower()
        ]
