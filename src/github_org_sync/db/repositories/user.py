"""Repository for the GitHubUser model."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import GitHubUser
from github_org_sync.errors import DependencyMissingError
from github_org_sync.schemas.entities import UserData
from github_org_sync.schemas.github_api import is_bot_account

from .base import BaseRepository


class GitHubUserRepository(BaseRepository[GitHubUser]):
    """User registry shared by every sync.

    Rules:
        - login, avatar_url and type always take the latest value
        - name is only overwritten by a non-empty value
        - is_maintainer is never cleared
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, GitHubUser)

    async def get_by_login(self, login: str) -> GitHubUser | None:
        """Get a user by login, case-insensitively.

        Args:
            login: GitHub username

        Returns:
            GitHubUser or None if not found
        """
        stmt = select(GitHubUser).where(func.lower(GitHubUser.login) == login.lower())
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def upsert(self, data: UserData, seen_at: datetime) -> tuple[GitHubUser, bool]:
        """Insert or update a user keyed by GitHub ID.

        Args:
            data: Canonical user record
            seen_at: Run start timestamp

        Returns:
            Tuple of (user, created)
        """
        existing = await self.get_by_id(data.github_id)
        if existing is None:
            user = self.add(
                GitHubUser(
                    github_id=data.github_id,
                    login=data.login,
                    avatar_url=data.avatar_url,
                    name=data.name,
                    type=data.type,
                    is_maintainer=False,
                    maintainer_sources=[],
                    first_seen=seen_at,
                    last_seen=seen_at,
                )
            )
            await self.flush()
            return user, True

        self._apply(
            existing,
            {
                "login": data.login,
                "avatar_url": data.avatar_url,
                "type": data.type,
                "name": data.name or existing.name,
                "first_seen": min(existing.first_seen, seen_at),
                "last_seen": max(existing.last_seen, seen_at),
            },
        )
        await self.flush()
        return existing, False

    async def mark_maintainer(self, github_id: int, sources: list[str]) -> bool:
        """Flag a user as a maintainer and merge the evidence sources.

        Automation accounts are never flagged.

        Args:
            github_id: User GitHub ID
            sources: Evidence sources naming this user

        Returns:
            True if the user was not a maintainer before this call

        Raises:
            DependencyMissingError: If the user is not stored
        """
        user = await self.get_by_id(github_id)
        if user is None:
            raise DependencyMissingError("user", github_id)
        if is_bot_account(user.login, user.type):
            return False

        newly_marked = not user.is_maintainer
        self._apply(
            user,
            {
                "is_maintainer": True,
                "maintainer_sources": sorted(set(user.maintainer_sources or []) | set(sources)),
            },
        )
        await self.flush()
        return newly_marked
