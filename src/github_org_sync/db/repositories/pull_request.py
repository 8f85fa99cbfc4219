"""Repository for PullRequest model CRUD operations."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import PullRequest, PullRequestReview, Repo
from github_org_sync.schemas.entities import PullRequestData, ReviewData

from .base import BaseRepository

_DIFF_STAT_FIELDS = ("additions", "deletions", "changed_files")


class PullRequestRepository(BaseRepository[PullRequest]):
    """Repository for PullRequest entities and their review sets.

    Rules:
        - Diff stats passed as None keep the previously stored values
        - Reviews are replaced wholesale inside the caller's transaction
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PullRequest)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_number(self, repo_github_id: int, number: int) -> PullRequest | None:
        """Get a PR by repository and PR number.

        Args:
            repo_github_id: Repository GitHub ID
            number: PR number

        Returns:
            PullRequest or None if not found
        """
        stmt = select(PullRequest).where(
            PullRequest.repo_github_id == repo_github_id,
            PullRequest.number == number,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_reviews(self, pr_github_id: int) -> list[PullRequestReview]:
        """Stored reviews of a PR ordered by submission time."""
        stmt = (
            select(PullRequestReview)
            .where(PullRequestReview.pr_github_id == pr_github_id)
            .order_by(PullRequestReview.submitted_at, PullRequestReview.reviewer_login)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Upsert Methods
    # -------------------------------------------------------------------------

    async def upsert(
        self,
        data: PullRequestData,
        synced_at: datetime,
    ) -> tuple[PullRequest, bool]:
        """Insert or update a PR keyed by its GitHub ID.

        Args:
            data: Canonical pull request record
            synced_at: Run start timestamp

        Returns:
            Tuple of (PullRequest, created) where created=True if new

        Raises:
            DependencyMissingError: If the parent repository is not stored
        """
        await self._require_parent(Repo, data.repo_github_id, "repository")

        values: dict[str, object] = {**data.model_dump(), "synced_at": synced_at}
        for field in _DIFF_STAT_FIELDS:
            if values[field] is None:
                del values[field]

        existing = await self.get_by_id(data.github_id)
        if existing is None:
            pr = self.add(PullRequest(**values))
            await self.flush()
            return pr, True

        self._apply(existing, values)
        await self.flush()
        return existing, False

    async def replace_reviews(
        self,
        pr_github_id: int,
        reviews: list[ReviewData],
        synced_at: datetime,
    ) -> list[PullRequestReview]:
        """Replace the stored review set of a PR.

        Deletes then inserts within the session's open transaction, so
        the old set stays visible to readers until the caller commits.
        Reviews sharing (reviewer, submitted_at) are collapsed to the last one.

        Args:
            pr_github_id: PR GitHub ID (must already be stored)
            reviews: Complete current review list
            synced_at: Run start timestamp

        Returns:
            The inserted review rows
        """
        await self._require_parent(PullRequest, pr_github_id, "pull_request")

        unique: dict[tuple[str, datetime], ReviewData] = {}
        for review in reviews:
            unique[(review.reviewer_login, review.submitted_at)] = review

        await self._session.execute(
            delete(PullRequestReview).where(PullRequestReview.pr_github_id == pr_github_id)
        )
        rows = [
            self.add(
                PullRequestReview(
                    pr_github_id=pr_github_id,
                    reviewer_login=review.reviewer_login,
                    state=review.state.value,
                    submitted_at=review.submitted_at,
                    synced_at=synced_at,
                )
            )
            for review in sorted(unique.values(), key=lambda r: (r.submitted_at, r.reviewer_login))
        ]
        await self.flush()
        return rows
