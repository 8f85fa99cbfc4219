"""Repository for the Repo model."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import Repo
from github_org_sync.logging import get_logger
from github_org_sync.schemas.entities import RepoData

from .base import BaseRepository

logger = get_logger(__name__)


class RepoRepository(BaseRepository[Repo]):
    """Upserts and lookups for organization repositories."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Repo)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_full_name(self, full_name: str) -> Repo | None:
        """Get a repository by its full name (owner/repo), case-insensitively.

        A name can outlive a deleted repository; the active, most recently
        synced row wins.

        Args:
            full_name: Full repository name (e.g., "acme/widgets")

        Returns:
            Repo or None if not found
        """
        stmt = (
            select(Repo)
            .where(func.lower(Repo.full_name) == full_name.lower())
            .order_by(Repo.archived, Repo.synced_at.desc().nulls_last())
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def list_active(self, owner: str | None = None) -> list[Repo]:
        """Non-archived repositories ordered by full name.

        Args:
            owner: Restrict to one organization/user (case-insensitive)

        Returns:
            List of repositories
        """
        stmt = select(Repo).where(Repo.archived.is_(False))
        if owner:
            stmt = stmt.where(func.lower(Repo.owner) == owner.lower())
        stmt = stmt.order_by(Repo.full_name)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Upsert
    # -------------------------------------------------------------------------

    async def upsert(self, data: RepoData, synced_at: datetime) -> tuple[Repo, bool]:
        """Insert or update a repository keyed by its GitHub ID.

        Other rows holding the same full name belong to repositories that
        were deleted or renamed away; they are archived so only the live
        repository is synced under that name. A renamed repository is
        restored the next time its own ID is upserted.

        Args:
            data: Canonical repository record
            synced_at: Run start timestamp

        Returns:
            Tuple of (repo, created)
        """
        await self._archive_name_clashes(data)

        values = data.model_dump()
        existing = await self.get_by_id(data.github_id)
        if existing is None:
            repo = self.add(Repo(**values, synced_at=synced_at))
            await self.flush()
            return repo, True

        self._apply(existing, {**values, "synced_at": synced_at})
        await self.flush()
        return existing, False

    async def _archive_name_clashes(self, data: RepoData) -> None:
        stmt = select(Repo).where(
            func.lower(Repo.full_name) == data.full_name.lower(),
            Repo.github_id != data.github_id,
            Repo.archived.is_(False),
        )
        result = await self._session.execute(stmt)
        for stale in result.scalars().all():
            logger.warning(
                "Archiving repository {} ({}): name now belongs to {}",
                stale.full_name,
                stale.github_id,
                data.github_id,
            )
            stale.archived = True
