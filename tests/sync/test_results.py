"""Tests for sync result objects and the watermark tracker."""

from datetime import timedelta

import pytest

from github_org_sync.errors import DependencyMissingError
from github_org_sync.schemas import EntityKind
from github_org_sync.sync import (
    RepoSyncResult,
    RepoSyncState,
    SyncError,
    SyncRunReport,
    WatermarkTracker,
)
from tests.conftest import JAN_15, JAN_20
from tests.factories import make_repo


class TestSyncError:
    """Tests for SyncError."""

    def test_from_exception(self):
        error = SyncError.from_exception(
            "acme/widgets", "issue", DependencyMissingError("repository", 1001), number=7
        )

        assert error.to_dict() == {
            "repository": "acme/widgets",
            "entity": "issue",
            "error": "Missing parent repository 1001",
            "error_type": "DependencyMissingError",
            "number": 7,
        }

    def test_number_omitted_when_absent(self):
        error = SyncError.from_exception("acme/widgets", "repository", RuntimeError("boom"))

        assert "number" not in error.to_dict()


class TestSyncRunReport:
    """Tests for SyncRunReport aggregation."""

    def test_counters(self):
        report = SyncRunReport(kind="issue", org="acme")
        report.repo_results = [
            RepoSyncResult("acme/a", RepoSyncState.DONE, items_synced=3, items_failed=1),
            RepoSyncResult("acme/b", RepoSyncState.SKIPPED),
            RepoSyncResult("acme/c", RepoSyncState.DONE, items_synced=2),
        ]

        assert report.repos_processed == 2
        assert report.repos_skipped == 1
        assert report.items_synced == 5
        assert report.items_failed == 1
        assert report.failed is False

    def test_duration(self):
        report = SyncRunReport(kind="issue", org="acme", started_at=JAN_15)
        report.completed_at = JAN_15 + timedelta(seconds=90)

        assert report.duration_seconds == 90.0

    def test_to_dict(self):
        report = SyncRunReport(kind="comment", org="acme")
        report.repo_results.append(
            RepoSyncResult("acme/a", RepoSyncState.DONE, items_synced=1, watermark=JAN_20)
        )
        report.record_error("acme/a", "comment", ValueError("bad"), 4)
        report.finish()

        data = report.to_dict()

        assert data["summary"]["kind"] == "comment"
        assert data["summary"]["errors"] == 1
        assert data["repositories"][0]["watermark"] == "2024-01-20T16:00:00+00:00"
        assert data["repositories"][0]["state"] == "done"
        assert data["errors"][0]["number"] == 4


class TestWatermarkTracker:
    """Tests for WatermarkTracker (own session per call)."""

    @pytest.fixture
    async def tracker(self, database):
        async with database.session() as session:
            make_repo(session)
        return WatermarkTracker(database)

    async def test_advance_is_durable(self, tracker, database):
        await tracker.advance(1001, EntityKind.ISSUE, JAN_20)

        assert await WatermarkTracker(database).get(1001, EntityKind.ISSUE) == JAN_20

    async def test_advance_never_regresses(self, tracker):
        await tracker.advance(1001, EntityKind.PULL_REQUEST, JAN_20)

        assert await tracker.advance(1001, EntityKind.PULL_REQUEST, JAN_15) == JAN_20

    async def test_resolve_repo(self, tracker):
        assert await tracker.resolve_repo("ACME/Widgets") == 1001

    async def test_resolve_unknown_repo(self, tracker):
        with pytest.raises(LookupError):
            await tracker.resolve_repo("acme/missing")

    async def test_reset_and_list(self, tracker):
        await tracker.advance(1001, EntityKind.ISSUE, JAN_15)
        await tracker.advance(1001, EntityKind.COMMENT, JAN_20)

        assert await tracker.reset(1001, EntityKind.ISSUE) is True

        rows = await tracker.list_all()
        assert len(rows) == 1
        assert rows[0].repository == "acme/widgets"
        assert rows[0].last_issue_sync is None
        assert rows[0].last_comment_sync == JAN_20
        assert rows[0].to_dict()["last_pr_sync"] is None

    async def test_list_filtered_by_repository(self, tracker):
        await tracker.advance(1001, EntityKind.ISSUE, JAN_15)

        assert await tracker.list_all("acme/other") == []
        assert len(await tracker.list_all("acme/widgets")) == 1
