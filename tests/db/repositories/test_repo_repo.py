"""Tests for RepoRepository."""

from github_org_sync.db.repositories import RepoRepository
from tests.conftest import JAN_15, JAN_20
from tests.factories import make_repo, repo_data


class TestRepoRepositoryQuery:
    """Query method tests for RepoRepository."""

    async def test_get_by_full_name_case_insensitive(self, db_session):
        make_repo(db_session, owner="acme", name="Widgets")
        await db_session.flush()

        result = await RepoRepository(db_session).get_by_full_name("ACME/widgets")

        assert result is not None
        assert result.full_name == "acme/Widgets"

    async def test_list_active_excludes_archived(self, db_session):
        make_repo(db_session, github_id=1, name="b-live")
        make_repo(db_session, github_id=2, name="a-live")
        make_repo(db_session, github_id=3, name="old", archived=True)
        make_repo(db_session, github_id=4, owner="other", name="elsewhere")
        await db_session.flush()

        repos = await RepoRepository(db_session).list_active(owner="acme")

        assert [r.name for r in repos] == ["a-live", "b-live"]


class TestRepoRepositoryUpsert:
    """Upsert tests for RepoRepository."""

    async def test_upsert_creates(self, db_session):
        repo, created = await RepoRepository(db_session).upsert(repo_data(), JAN_15)

        assert created is True
        assert repo.full_name == "acme/widgets"
        assert repo.synced_at == JAN_15

    async def test_upsert_is_idempotent(self, db_session):
        repos = RepoRepository(db_session)
        await repos.upsert(repo_data(), JAN_15)
        repo, created = await repos.upsert(repo_data(), JAN_15)

        assert created is False
        assert await repos.count() == 1
        assert repo.archived is False

    async def test_upsert_updates_in_place(self, db_session):
        repos = RepoRepository(db_session)
        await repos.upsert(repo_data(), JAN_15)
        repo, created = await repos.upsert(repo_data(archived=True), JAN_20)

        assert created is False
        assert repo.archived is True
        assert repo.synced_at == JAN_20
        assert await repos.count() == 1

    async def test_recreated_repository_archives_stale_row(self, db_session):
        repos = RepoRepository(db_session)
        await repos.upsert(repo_data(github_id=1001), JAN_15)

        repo, created = await repos.upsert(repo_data(github_id=2001), JAN_20)

        assert created is True
        assert repo.archived is False
        stale = await repos.get_by_id(1001)
        assert stale.archived is True
        assert [r.github_id for r in await repos.list_active(owner="acme")] == [2001]
        assert (await repos.get_by_full_name("acme/widgets")).github_id == 2001

    async def test_renamed_repository_is_restored(self, db_session):
        repos = RepoRepository(db_session)
        await repos.upsert(repo_data(github_id=1001), JAN_15)
        await repos.upsert(repo_data(github_id=2001), JAN_20)

        # The old repository shows up again under a new name
        repo, created = await repos.upsert(repo_data(github_id=1001, name="widgets-legacy"), JAN_20)

        assert created is False
        assert repo.archived is False
        assert repo.full_name == "acme/widgets-legacy"
        assert (await repos.get_by_id(2001)).archived is False
