"""Async SQLAlchemy engine and session management.

A :class:`Database` is an explicit resource handle: it is opened once per
run, passed to every component that needs sessions, and closed on exit.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, pool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from github_org_sync.db.models import Base
from github_org_sync.logging import get_logger

if TYPE_CHECKING:
    from github_org_sync.config import Settings

logger = get_logger(__name__)


def normalize_database_url(url: str) -> str:
    """Select an async driver for plain postgres/sqlite URLs."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Connection pool handle with a session factory.

    Usage:
        async with Database(url) as database:
            async with database.session() as session:
                await session.execute(select(Repo))
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self._url = normalize_database_url(url)
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        """Build a handle from settings (raises if DATABASE_URL is unset)."""
        return cls(settings.require_database(), echo=False)

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return

        kwargs: dict[str, Any] = {"echo": self._echo, "future": True}
        if self._url.startswith("sqlite"):
            if ":memory:" in self._url or self._url.rstrip("/").endswith("sqlite+aiosqlite:"):
                # One shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = pool.StaticPool
            else:
                # Required for SQLite to prevent "database is locked"
                kwargs["poolclass"] = pool.NullPool
        else:
            kwargs["pool_pre_ping"] = True

        self._engine = create_async_engine(self._url, **kwargs)
        if self._url.startswith("sqlite"):
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.debug("Opened database {}", self._engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        """Dispose the engine and close all pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def __aenter__(self) -> Database:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scoped to one unit of work.

        Commits on normal exit, rolls back and re-raises on error.
        """
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    async def create_tables(self) -> None:
        """Create all tables. Production schemas are managed by Alembic."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
