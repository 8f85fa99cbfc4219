"""Tests for the ghsync CLI."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from github_org_sync import __version__
from github_org_sync.cli.app import app
from github_org_sync.config import Settings
from github_org_sync.db import Database
from github_org_sync.db.repositories import SyncStateRepository
from github_org_sync.logging import reset_logging
from github_org_sync.schemas import EntityKind
from github_org_sync.sync import RepoSyncResult, RepoSyncState, SyncRunReport
from tests.conftest import JAN_15, JAN_20
from tests.factories import make_repo

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """The app callback configures logging against the runner's streams."""
    yield
    reset_logging()


def patched_settings(settings: Settings):
    """Patch every module that reads settings in the CLI."""
    return [
        patch("github_org_sync.cli.app.get_settings", return_value=settings),
        patch("github_org_sync.cli.sync.get_settings", return_value=settings),
        patch("github_org_sync.cli.watermark.get_settings", return_value=settings),
        patch("github_org_sync.cli.db.get_settings", return_value=settings),
    ]


def invoke(settings: Settings, args: list[str]):
    patches = patched_settings(settings)
    for p in patches:
        p.start()
    try:
        return runner.invoke(app, args)
    finally:
        for p in patches:
            p.stop()


@pytest.fixture
def file_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'sync.db'}",
        github_org="acme",
    )


def seed_watermarks(settings: Settings) -> None:
    async def seed() -> None:
        async with Database.from_settings(settings) as database:
            await database.create_tables()
            async with database.session() as session:
                make_repo(session)
            async with database.session() as session:
                states = SyncStateRepository(session)
                await states.advance(1001, EntityKind.ISSUE, JAN_15)
                await states.advance(1001, EntityKind.COMMENT, JAN_20)

    asyncio.run(seed())


class TestGlobalFlags:
    """Tests for global CLI flags."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_global_help_shows_flags(self):
        result = runner.invoke(app, ["--help"])

        assert "--verbose" in result.stdout
        assert "--quiet" in result.stdout

    @pytest.mark.parametrize("command", ["issues", "pulls", "comments", "maintainers"])
    def test_sync_commands_registered(self, command):
        result = runner.invoke(app, ["sync", command, "--help"])

        assert result.exit_code == 0


class TestConfigurationErrors:
    """Commands exit with code 1 before connecting when configuration is missing."""

    def test_missing_database_url(self):
        result = invoke(Settings(_env_file=None, github_org="acme"), ["sync", "issues"])

        assert result.exit_code == 1
        assert "DATABASE_URL" in result.stdout

    def test_missing_app_credentials(self, file_settings):
        result = invoke(file_settings, ["sync", "pulls"])

        assert result.exit_code == 1
        assert "APP_ID" in result.stdout

    def test_maintainers_mention_token(self, file_settings):
        result = invoke(file_settings, ["sync", "maintainers"])

        assert result.exit_code == 1
        assert "GITHUB_TOKEN" in result.stdout

    def test_missing_org(self, settings):
        settings.github_org = ""

        result = invoke(settings, ["sync", "issues"])

        assert result.exit_code == 1
        assert "GITHUB_ORG" in result.stdout

    def test_watermark_show_requires_database(self):
        result = invoke(Settings(_env_file=None), ["watermark", "show"])

        assert result.exit_code == 1


class TestSyncCommands:
    """Exit codes and output of sync commands (orchestration mocked)."""

    @staticmethod
    def report(fatal_error: str | None = None) -> SyncRunReport:
        report = SyncRunReport(kind="issue", org="acme", fatal_error=fatal_error)
        report.repo_results.append(RepoSyncResult("acme/widgets", RepoSyncState.DONE, items_synced=3))
        report.record_error("acme/widgets", "issue", ValueError("bad [payload]"), 7)
        report.finish()
        return report

    def test_item_errors_exit_zero(self, settings):
        with patch("github_org_sync.cli.sync._run", new=AsyncMock(return_value=self.report())):
            result = invoke(settings, ["sync", "issues", "acme"])

        assert result.exit_code == 0
        assert "Items synced" in result.stdout
        assert "bad [payload]" in result.stdout

    def test_json_output(self, settings):
        with patch("github_org_sync.cli.sync._run", new=AsyncMock(return_value=self.report())):
            result = invoke(settings, ["sync", "issues", "--format", "json"])

        data = json.loads(result.stdout)
        assert data["summary"]["items_synced"] == 3
        assert data["errors"][0]["number"] == 7

    def test_enumeration_failure_exits_one(self, settings):
        failed = self.report(fatal_error="Not Found")
        with patch("github_org_sync.cli.sync._run", new=AsyncMock(return_value=failed)):
            result = invoke(settings, ["sync", "issues"])

        assert result.exit_code == 1
        assert "Not Found" in result.stdout

    def test_org_argument_overrides_setting(self, settings):
        run = AsyncMock(return_value=self.report())
        with patch("github_org_sync.cli.sync._run", new=run):
            invoke(settings, ["sync", "comments", "other-org"])

        assert run.call_args.args[1] == "other-org"


class TestWatermarkCommands:
    """Watermark show/reset against a file database."""

    def test_show_json(self, file_settings):
        seed_watermarks(file_settings)

        result = invoke(file_settings, ["watermark", "show", "--format", "json"])

        assert result.exit_code == 0
        rows = json.loads(result.stdout)
        assert rows[0]["repository"] == "acme/widgets"
        assert rows[0]["last_issue_sync"].startswith("2024-01-15")
        assert rows[0]["last_pr_sync"] is None

    def test_reset_one_kind(self, file_settings):
        seed_watermarks(file_settings)

        result = invoke(file_settings, ["watermark", "reset", "acme/widgets", "--kind", "issue"])
        assert result.exit_code == 0

        rows = json.loads(invoke(file_settings, ["watermark", "show", "--format", "json"]).stdout)
        assert rows[0]["last_issue_sync"] is None
        assert rows[0]["last_comment_sync"] is not None

    def test_reset_unknown_repository(self, file_settings):
        seed_watermarks(file_settings)

        result = invoke(file_settings, ["watermark", "reset", "acme/missing"])

        assert result.exit_code == 1
        assert "not in the database" in result.stdout

    def test_reset_requires_owner_name(self, file_settings):
        result = invoke(file_settings, ["watermark", "reset", "widgets"])

        assert result.exit_code == 1


class TestDbCommands:
    """Tests for db init."""

    def test_init_creates_tables(self, file_settings):
        result = invoke(file_settings, ["db", "init"])

        assert result.exit_code == 0
        assert "created" in result.stdout
