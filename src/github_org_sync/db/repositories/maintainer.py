"""Repository for the RepoMaintainer model."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import GitHubUser, Repo, RepoMaintainer

from .base import BaseRepository


class MaintainerRepository(BaseRepository[RepoMaintainer]):
    """Maintainer assertions keyed by (repository, user).

    Confidence never decreases; the recorded source is the one that
    produced the highest confidence seen so far.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, RepoMaintainer)

    async def get(self, repo_github_id: int, github_user_id: int) -> RepoMaintainer | None:
        stmt = select(RepoMaintainer).where(
            RepoMaintainer.repo_github_id == repo_github_id,
            RepoMaintainer.github_user_id == github_user_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_repo(self, repo_github_id: int) -> list[RepoMaintainer]:
        """Assertions for a repository, highest confidence first."""
        stmt = (
            select(RepoMaintainer)
            .where(RepoMaintainer.repo_github_id == repo_github_id)
            .order_by(RepoMaintainer.confidence.desc(), RepoMaintainer.github_user_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(
        self,
        repo_github_id: int,
        github_user_id: int,
        *,
        source: str,
        sources: list[str],
        confidence: int,
        confirmed_at: datetime,
    ) -> tuple[RepoMaintainer, bool]:
        """Insert or merge a maintainer assertion.

        Args:
            repo_github_id: Repository GitHub ID
            github_user_id: User GitHub ID
            source: Best source of this pass
            sources: Every source of this pass
            confidence: Confidence of the best source
            confirmed_at: Run start timestamp

        Returns:
            Tuple of (assertion, created)

        Raises:
            DependencyMissingError: If the repository or user is not stored
        """
        await self._require_parent(Repo, repo_github_id, "repository")
        await self._require_parent(GitHubUser, github_user_id, "user")

        existing = await self.get(repo_github_id, github_user_id)
        if existing is None:
            assertion = self.add(
                RepoMaintainer(
                    repo_github_id=repo_github_id,
                    github_user_id=github_user_id,
                    source=source,
                    sources=sorted(set(sources)),
                    confidence=confidence,
                    first_detected_at=confirmed_at,
                    last_confirmed_at=confirmed_at,
                )
            )
            await self.flush()
            return assertion, True

        values: dict[str, object] = {
            "sources": sorted(set(existing.sources or []) | set(sources)),
            "last_confirmed_at": max(existing.last_confirmed_at, confirmed_at),
        }
        if confidence > existing.confidence:
            values["confidence"] = confidence
            values["source"] = source
        self._apply(existing, values)
        await self.flush()
        return existing, False
