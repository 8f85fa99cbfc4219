"""Base repository pattern implementation for async SQLAlchemy.

Provides common session handling and the lookups shared by every
upsert repository.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_sync.db.models import Base
from github_org_sync.errors import DependencyMissingError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Base repository with common async session handling.

    The caller owns the session and its transaction; repositories only
    add and flush.

    Usage:
        class IssueRepository(BaseRepository[Issue]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, Issue)
    """

    def __init__(self, session: AsyncSession, model_class: type[ModelT]) -> None:
        """Initialize the repository with a session.

        Args:
            session: Async SQLAlchemy session (caller manages lifecycle)
            model_class: The SQLAlchemy model class this repository manages
        """
        self._session = session
        self._model_class = model_class

    # -------------------------------------------------------------------------
    # Common Read Operations
    # -------------------------------------------------------------------------

    async def get_by_id(self, id: int) -> ModelT | None:
        """Get an entity by its primary key.

        Args:
            id: Primary key (the GitHub ID for synced entities)

        Returns:
            Entity or None if not found
        """
        return await self._session.get(self._model_class, id)

    async def count(self) -> int:
        """Count total entities of this type."""
        stmt = select(func.count()).select_from(self._model_class)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    # -------------------------------------------------------------------------
    # Common Write Operations
    # -------------------------------------------------------------------------

    def add(self, entity: ModelT) -> ModelT:
        """Add an entity to the session (does not flush)."""
        self._session.add(entity)
        return entity

    async def flush(self) -> None:
        """Flush pending changes without committing the transaction."""
        await self._session.flush()

    async def _require_parent(self, model: type[Base], key: int, kind: str) -> Any:
        """Load a parent row or fail the child write.

        Args:
            model: Parent model class
            key: Parent primary key
            kind: Parent entity kind for the error message

        Returns:
            The parent entity

        Raises:
            DependencyMissingError: If the parent row does not exist
        """
        parent = await self._session.get(model, key)
        if parent is None:
            raise DependencyMissingError(kind, key)
        return parent

    @staticmethod
    def _apply(entity: Base, values: dict[str, Any]) -> bool:
        """Assign values onto an entity, returning True if anything changed."""
        changed = False
        for key, value in values.items():
            if getattr(entity, key) != value:
                setattr(entity, key, value)
                changed = True
        return changed
