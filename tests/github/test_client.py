"""Tests for GitHubClient.

Tests cover:
- Credential selection (App installation vs token)
- Parameter passing and JSON decoding
- Error mapping of githubkit failures
- File content decoding
- User-account fallback for repository listing
"""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from githubkit import AppInstallationAuthStrategy
from githubkit.exception import RequestFailed

from github_org_sync.config import Settings
from github_org_sync.errors import ConfigurationError
from github_org_sync.github.client import GitHubClient
from github_org_sync.github.exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
    is_permission_error,
)
from tests.factories import make_github_issue, make_github_repo


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def json_response(payload):
    """Create a MagicMock that behaves like a githubkit response."""
    response = MagicMock()
    response.json.return_value = payload
    return response


def request_failed(status_code: int, headers: dict[str, str] | None = None) -> RequestFailed:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    return RequestFailed(response)


# -----------------------------------------------------------------------------
# Test Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_github():
    """Create a mock githubkit GitHub client."""
    with patch("github_org_sync.github.client.GitHub") as mock_class:
        mock_instance = MagicMock()
        mock_class.return_value = mock_instance
        yield mock_instance


# -----------------------------------------------------------------------------
# Test: Initialization
# -----------------------------------------------------------------------------
class TestGitHubClientInit:
    """Tests for GitHubClient initialization."""

    def test_init_with_token(self):
        client = GitHubClient(token="test-token")
        assert client._auth == "test-token"

    def test_init_with_app_credentials(self):
        client = GitHubClient(app_id="1", private_key="pem", installation_id="42")

        assert isinstance(client._auth, AppInstallationAuthStrategy)

    def test_app_credentials_take_precedence(self):
        client = GitHubClient(token="t", app_id="1", private_key="pem", installation_id=42)

        assert isinstance(client._auth, AppInstallationAuthStrategy)

    def test_init_without_credentials_raises(self):
        with pytest.raises(GitHubAuthenticationError):
            GitHubClient()

    def test_from_settings_uses_app(self, settings):
        client = GitHubClient.from_settings(settings)

        assert isinstance(client._auth, AppInstallationAuthStrategy)

    def test_from_settings_token_when_allowed(self):
        settings = Settings(_env_file=None, github_token="ghp_test")

        client = GitHubClient.from_settings(settings, allow_token=True)

        assert client._auth == "ghp_test"

    def test_from_settings_rejects_token_only_by_default(self):
        settings = Settings(_env_file=None, github_token="ghp_test")

        with pytest.raises(ConfigurationError):
            GitHubClient.from_settings(settings)

    async def test_context_manager_drops_client(self, mock_github):
        async with GitHubClient(token="test-token") as client:
            assert client._github is mock_github
        assert client._client is None


# -----------------------------------------------------------------------------
# Test: Requests
# -----------------------------------------------------------------------------
class TestRequests:
    """Tests for parameter passing and decoding."""

    async def test_list_issues_page_omits_missing_since(self, mock_github):
        mock_github.rest.issues.async_list_for_repo = AsyncMock(
            return_value=json_response([make_github_issue()])
        )

        items = await GitHubClient(token="t").list_issues_page("acme", "widgets", page=2, per_page=50)

        assert items[0]["number"] == 1
        kwargs = mock_github.rest.issues.async_list_for_repo.call_args.kwargs
        assert "since" not in kwargs
        assert kwargs["page"] == 2
        assert kwargs["per_page"] == 50
        assert kwargs["state"] == "all"

    async def test_org_listing_falls_back_to_user(self, mock_github):
        mock_github.rest.repos.async_list_for_org = AsyncMock(side_effect=request_failed(404))
        mock_github.rest.repos.async_list_for_user = AsyncMock(
            return_value=json_response([make_github_repo(owner="octocat")])
        )

        repos = await GitHubClient(token="t").list_org_repos_page("octocat", page=1, per_page=100)

        assert repos[0]["full_name"] == "octocat/widgets"
        assert mock_github.rest.repos.async_list_for_user.call_args.kwargs["username"] == "octocat"


# -----------------------------------------------------------------------------
# Test: File Content
# -----------------------------------------------------------------------------
class TestGetFileContent:
    """Tests for get_file_content."""

    async def test_decodes_base64(self, mock_github):
        encoded = base64.b64encode(b"* @alice\n").decode()
        mock_github.rest.repos.async_get_content = AsyncMock(
            return_value=json_response({"type": "file", "content": encoded})
        )

        text = await GitHubClient(token="t").get_file_content("acme", "widgets", "CODEOWNERS")

        assert text == "* @alice\n"

    async def test_missing_file_is_none(self, mock_github):
        mock_github.rest.repos.async_get_content = AsyncMock(side_effect=request_failed(404))

        assert await GitHubClient(token="t").get_file_content("acme", "widgets", "CODEOWNERS") is None

    async def test_directory_is_none(self, mock_github):
        mock_github.rest.repos.async_get_content = AsyncMock(
            return_value=json_response([{"type": "file", "name": "a"}])
        )

        assert await GitHubClient(token="t").get_file_content("acme", "widgets", ".github") is None

    async def test_undecodable_content_raises(self, mock_github):
        mock_github.rest.repos.async_get_content = AsyncMock(
            return_value=json_response({"type": "file", "content": "@@not-base64@@"})
        )

        with pytest.raises(GitHubClientError):
            await GitHubClient(token="t").get_file_content("acme", "widgets", "CODEOWNERS")


# -----------------------------------------------------------------------------
# Test: Error Mapping
# -----------------------------------------------------------------------------
class TestErrorMapping:
    """Tests for converting githubkit failures."""

    @pytest.mark.parametrize(
        ("status", "headers", "expected"),
        [
            (401, {}, GitHubAuthenticationError),
            (403, {}, GitHubPermissionError),
            (403, {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1705312800"}, GitHubRateLimitError),
            (429, {}, GitHubRateLimitError),
            (404, {}, GitHubNotFoundError),
            (500, {}, GitHubClientError),
        ],
    )
    async def test_status_mapping(self, mock_github, status, headers, expected):
        mock_github.rest.users.async_get_by_username = AsyncMock(
            side_effect=request_failed(status, headers)
        )

        with pytest.raises(expected):
            await GitHubClient(token="t").get_user("ghost")

    async def test_rate_limit_reset_time(self, mock_github):
        mock_github.rest.users.async_get_by_username = AsyncMock(
            side_effect=request_failed(403, {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1705312800"})
        )

        with pytest.raises(GitHubRateLimitError) as exc_info:
            await GitHubClient(token="t").get_user("ghost")

        assert exc_info.value.reset_at is not None
        assert exc_info.value.reset_at.year == 2024


class TestIsPermissionError:
    """Tests for permission classification."""

    def test_permission_error(self):
        assert is_permission_error(GitHubPermissionError("Access forbidden")) is True

    def test_rate_limit_is_not_permission(self):
        assert is_permission_error(GitHubRateLimitError("GitHub rate limit exceeded")) is False

    def test_message_marker(self):
        assert is_permission_error(GitHubClientError("Must have push access to view collaborators"))

    def test_other_errors(self):
        assert is_permission_error(GitHubNotFoundError("Not Found")) is False
