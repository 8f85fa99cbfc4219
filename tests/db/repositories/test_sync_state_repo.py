"""Tests for SyncStateRepository (watermark storage)."""

import pytest

from github_org_sync.db.repositories import SyncStateRepository
from github_org_sync.errors import DependencyMissingError
from github_org_sync.schemas import EntityKind
from tests.conftest import JAN_15, JAN_16, JAN_20
from tests.factories import make_repo


class TestAdvance:
    """Watermark advance tests."""

    async def test_missing_watermark_is_none(self, db_session):
        make_repo(db_session)
        await db_session.flush()

        assert await SyncStateRepository(db_session).get_watermark(1001, EntityKind.ISSUE) is None

    async def test_first_advance_creates_row(self, db_session):
        make_repo(db_session)
        await db_session.flush()
        states = SyncStateRepository(db_session)

        stored = await states.advance(1001, EntityKind.ISSUE, JAN_15)

        assert stored == JAN_15
        assert await states.get_watermark(1001, EntityKind.ISSUE) == JAN_15

    async def test_never_moves_backward(self, db_session):
        make_repo(db_session)
        await db_session.flush()
        states = SyncStateRepository(db_session)

        await states.advance(1001, EntityKind.ISSUE, JAN_20)
        stored = await states.advance(1001, EntityKind.ISSUE, JAN_15)

        assert stored == JAN_20
        assert await states.get_watermark(1001, EntityKind.ISSUE) == JAN_20

    async def test_kinds_are_independent(self, db_session):
        make_repo(db_session)
        await db_session.flush()
        states = SyncStateRepository(db_session)

        await states.advance(1001, EntityKind.ISSUE, JAN_20)
        await states.advance(1001, EntityKind.COMMENT, JAN_15)

        assert await states.get_watermark(1001, EntityKind.ISSUE) == JAN_20
        assert await states.get_watermark(1001, EntityKind.COMMENT) == JAN_15
        assert await states.get_watermark(1001, EntityKind.PULL_REQUEST) is None

    async def test_requires_repository(self, db_session):
        with pytest.raises(DependencyMissingError):
            await SyncStateRepository(db_session).advance(404, EntityKind.ISSUE, JAN_15)


class TestReset:
    """Watermark reset tests."""

    async def test_reset_one_kind(self, db_session):
        make_repo(db_session)
        await db_session.flush()
        states = SyncStateRepository(db_session)
        await states.advance(1001, EntityKind.ISSUE, JAN_15)
        await states.advance(1001, EntityKind.PULL_REQUEST, JAN_16)

        assert await states.reset(1001, EntityKind.ISSUE) is True

        assert await states.get_watermark(1001, EntityKind.ISSUE) is None
        assert await states.get_watermark(1001, EntityKind.PULL_REQUEST) == JAN_16

    async def test_reset_all(self, db_session):
        make_repo(db_session)
        await db_session.flush()
        states = SyncStateRepository(db_session)
        await states.advance(1001, EntityKind.ISSUE, JAN_15)
        await states.advance(1001, EntityKind.COMMENT, JAN_16)

        assert await states.reset(1001) is True
        for kind in EntityKind:
            assert await states.get_watermark(1001, kind) is None

    async def test_reset_without_row(self, db_session):
        assert await SyncStateRepository(db_session).reset(1001) is False

    async def test_advance_after_reset(self, db_session):
        """A reset watermark accepts an older value again."""
        make_repo(db_session)
        await db_session.flush()
        states = SyncStateRepository(db_session)
        await states.advance(1001, EntityKind.ISSUE, JAN_20)
        await states.reset(1001, EntityKind.ISSUE)

        assert await states.advance(1001, EntityKind.ISSUE, JAN_15) == JAN_15
