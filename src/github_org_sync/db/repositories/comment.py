"""Repository for the IssueComment model."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import Issue, IssueComment
from github_org_sync.schemas.entities import CommentData

from .base import BaseRepository


class CommentRepository(BaseRepository[IssueComment]):
    """Upserts for issue comments keyed by comment ID."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, IssueComment)

    async def list_for_issue(self, issue_github_id: int) -> list[IssueComment]:
        stmt = (
            select(IssueComment)
            .where(IssueComment.issue_github_id == issue_github_id)
            .order_by(IssueComment.created_at, IssueComment.comment_github_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, data: CommentData, synced_at: datetime) -> tuple[IssueComment, bool]:
        """Insert or update a comment.

        Args:
            data: Canonical comment record
            synced_at: Run start timestamp

        Returns:
            Tuple of (comment, created)

        Raises:
            DependencyMissingError: If the parent issue is not stored
        """
        await self._require_parent(Issue, data.issue_github_id, "issue")

        values = {
            "issue_github_id": data.issue_github_id,
            "author_login": data.author_login,
            "body": data.body,
            "created_at": data.created_at,
            "updated_at": data.updated_at,
            "synced_at": synced_at,
        }
        existing = await self.get_by_id(data.github_id)
        if existing is None:
            comment = self.add(IssueComment(comment_github_id=data.github_id, **values))
            await self.flush()
            return comment, True

        self._apply(existing, values)
        await self.flush()
        return existing, False
