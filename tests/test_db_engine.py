"""Tests for database engine and session management."""

import pytest
from sqlalchemy import text

from github_org_sync.config import Settings
from github_org_sync.db import Database, Repo, normalize_database_url
from github_org_sync.errors import ConfigurationError
from tests.conftest import MEMORY_URL
from tests.factories import make_repo


class TestNormalizeDatabaseUrl:
    """Tests for driver selection."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgres://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("sqlite:///./sync.db", "sqlite+aiosqlite:///./sync.db"),
            ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
        ],
    )
    def test_normalize(self, url, expected):
        assert normalize_database_url(url) == expected


class TestDatabase:
    """Tests for the Database handle."""

    async def test_create_tables(self, database):
        async with database.engine.connect() as conn:
            result = await conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result.fetchall()}

        assert {
            "repos",
            "issues",
            "pull_requests",
            "pull_request_reviews",
            "issue_comments",
            "github_users",
            "repo_maintainers",
            "sync_state",
        } <= tables

    async def test_session_commits_on_success(self, database):
        async with database.session() as session:
            make_repo(session)

        async with database.session() as session:
            assert await session.get(Repo, 1001) is not None

    async def test_session_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            async with database.session() as session:
                make_repo(session)
                await session.flush()
                raise RuntimeError("boom")

        async with database.session() as session:
            assert await session.get(Repo, 1001) is None

    async def test_session_requires_open(self):
        database = Database(MEMORY_URL)

        with pytest.raises(RuntimeError):
            async with database.session():
                pass

    async def test_context_manager_closes(self):
        async with Database(MEMORY_URL) as database:
            assert database.is_open
        assert not database.is_open

    async def test_open_is_idempotent(self):
        database = Database(MEMORY_URL)
        await database.open()
        engine = database.engine
        await database.open()

        assert database.engine is engine
        await database.close()

    def test_from_settings_requires_url(self):
        with pytest.raises(ConfigurationError):
            Database.from_settings(Settings(_env_file=None, database_url=""))
