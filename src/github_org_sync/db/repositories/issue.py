"""Repository for the Issue model."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import Issue, Repo
from github_org_sync.schemas.entities import IssueData

from .base import BaseRepository


class IssueRepository(BaseRepository[Issue]):
    """Upserts and lookups for issues."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Issue)

    async def get_by_number(self, repo_github_id: int, number: int) -> Issue | None:
        stmt = select(Issue).where(
            Issue.repo_github_id == repo_github_id,
            Issue.number == number,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_open(self, repo_github_id: int) -> list[Issue]:
        """Open issues of a repository ordered by number.

        Args:
            repo_github_id: Parent repository GitHub ID

        Returns:
            List of open issues
        """
        stmt = (
            select(Issue)
            .where(Issue.repo_github_id == repo_github_id, Issue.state == "open")
            .order_by(Issue.number)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, data: IssueData, synced_at: datetime) -> tuple[Issue, bool]:
        """Insert or update an issue keyed by its GitHub ID.

        Args:
            data: Canonical issue record
            synced_at: Run start timestamp

        Returns:
            Tuple of (issue, created)

        Raises:
            DependencyMissingError: If the parent repository is not stored
        """
        await self._require_parent(Repo, data.repo_github_id, "repository")

        values = {**data.model_dump(), "synced_at": synced_at}
        existing = await self.get_by_id(data.github_id)
        if existing is None:
            issue = self.add(Issue(**values))
            await self.flush()
            return issue, True

        self._apply(existing, values)
        await self.flush()
        return existing, False

    async def mark_comments_synced(self, github_id: int, synced_at: datetime) -> None:
        """Record a complete comment fetch for one issue.

        The upsert never touches this marker, so it survives issue
        updates, closing and reopening.
        """
        issue = await self._require_parent(Issue, github_id, "issue")
        if issue.comments_synced_at is None or synced_at > issue.comments_synced_at:
            issue.comments_synced_at = synced_at
            await self.flush()
