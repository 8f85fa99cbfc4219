"""Repository for the SyncState model (per-repository watermarks)."""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import Repo, SyncState
from github_org_sync.schemas.base import ensure_utc
from github_org_sync.schemas.enums import EntityKind

from .base import BaseRepository

# One column per entity kind; writes touch only the column of their kind
WATERMARK_COLUMNS: dict[EntityKind, str] = {
    EntityKind.ISSUE: "last_issue_sync",
    EntityKind.PULL_REQUEST: "last_pr_sync",
    EntityKind.COMMENT: "last_comment_sync",
}


class SyncStateRepository(BaseRepository[SyncState]):
    """Field-scoped reads and writes of sync watermarks."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SyncState)

    async def get_watermark(self, repo_github_id: int, kind: EntityKind) -> datetime | None:
        state = await self.get_by_id(repo_github_id)
        if state is None:
            return None
        return getattr(state, WATERMARK_COLUMNS[kind])

    async def advance(
        self,
        repo_github_id: int,
        kind: EntityKind,
        timestamp: datetime,
    ) -> datetime:
        """Move one watermark forward. Never moves it backward.

        Args:
            repo_github_id: Repository GitHub ID
            kind: Entity kind whose column is written
            timestamp: Candidate watermark

        Returns:
            The stored watermark after the call

        Raises:
            DependencyMissingError: If the repository is not stored
        """
        column = WATERMARK_COLUMNS[kind]
        timestamp = ensure_utc(timestamp)

        state = await self.get_by_id(repo_github_id)
        if state is None:
            await self._require_parent(Repo, repo_github_id, "repository")
            state = self.add(SyncState(repo_github_id=repo_github_id))

        current: datetime | None = getattr(state, column)
        if current is None or timestamp > current:
            setattr(state, column, timestamp)
            state.updated_at = datetime.now(UTC)
            await self.flush()
            return timestamp
        return current

    async def reset(self, repo_github_id: int, kind: EntityKind | None = None) -> bool:
        """Clear one watermark, or all of them when kind is None.

        Returns:
            True if a stored watermark was cleared
        """
        state = await self.get_by_id(repo_github_id)
        if state is None:
            return False

        kinds = [kind] if kind is not None else list(EntityKind)
        cleared = False
        for k in kinds:
            column = WATERMARK_COLUMNS[k]
            if getattr(state, column) is not None:
                setattr(state, column, None)
                cleared = True
        if cleared:
            state.updated_at = datetime.now(UTC)
            await self.flush()
        return cleared

    async def list_with_repos(self) -> list[tuple[SyncState, Repo]]:
        """All watermark rows joined to their repository, ordered by name."""
        stmt = (
            select(SyncState, Repo)
            .join(Repo, Repo.github_id == SyncState.repo_github_id)
            .order_by(Repo.full_name)
        )
        result = await self._session.execute(stmt)
        return [(state, repo) for state, repo in result.all()]
