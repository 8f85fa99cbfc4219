"""Async GitHub API client wrapper using githubkit.

Each method issues exactly one REST request and returns the decoded JSON
body. Paging loops live in :mod:`github_org_sync.github.pagination`;
retries and rate-limit waits are left to the HTTP transport.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from githubkit import AppInstallationAuthStrategy, GitHub
from githubkit.exception import RequestFailed

from github_org_sync.logging import get_logger

from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
)

if TYPE_CHECKING:
    from github_org_sync.config import Settings

logger = get_logger(__name__)

JSONList = list[dict[str, Any]]


class GitHubClient:
    """Async GitHub API client authenticated as an App installation or with a token.

    Usage:
        async with GitHubClient.from_settings(settings) as client:
            issues = await client.list_issues_page("acme", "widgets", page=1, per_page=100)

    Or without context manager:
        client = GitHubClient(token="ghp_...")
        repos = await client.list_org_repos_page("acme", page=1, per_page=100)
        await client.close()
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        app_id: str | None = None,
        private_key: str | None = None,
        installation_id: str | int | None = None,
    ) -> None:
        """Initialize the GitHub client.

        App credentials take precedence over a token when both are given.

        Args:
            token: Personal access token
            app_id: GitHub App ID
            private_key: GitHub App private key (PEM)
            installation_id: Installation of the App on the organization

        Raises:
            GitHubAuthenticationError: If no usable credentials are given.
        """
        self._auth: AppInstallationAuthStrategy | str
        if app_id and private_key and installation_id:
            self._auth = AppInstallationAuthStrategy(app_id, private_key, int(installation_id))
        elif token:
            self._auth = token
        else:
            raise GitHubAuthenticationError(
                "GitHub credentials required. Set APP_ID, PRIVATE_KEY and INSTALLATION_ID."
            )
        self._client: GitHub[Any] | None = None

    @classmethod
    def from_settings(cls, settings: Settings, *, allow_token: bool = False) -> GitHubClient:
        """Build a client from settings.

        Raises:
            ConfigurationError: If the required credentials are missing
        """
        settings.require_github_credentials(allow_token=allow_token)
        if settings.has_app_credentials:
            return cls(
                app_id=settings.app_id,
                private_key=settings.private_key_pem,
                installation_id=settings.installation_id,
            )
        return cls(token=settings.github_token)

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance."""
        if self._client is None:
            self._client = GitHub(self._auth)
        return self._client

    async def close(self) -> None:
        """Drop the underlying githubkit client."""
        if self._client is not None:
            self._client = None

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    async def _request(self, method: Callable[..., Awaitable[Any]], **params: Any) -> Any:
        """Call a githubkit endpoint and decode its JSON body."""
        # githubkit treats omitted arguments as "not sent"; None would be sent literally
        params = {key: value for key, value in params.items() if value is not None}
        try:
            resp = await method(**params)
        except RequestFailed as e:
            raise self._handle_error(e) from e
        return resp.json()

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------
    async def list_org_repos_page(self, org: str, *, page: int, per_page: int) -> JSONList:
        """List one page of an organization's repositories.

        Falls back to the user repository listing when ``org`` is a user account.

        Args:
            org: Organization (or user) login
            page: 1-based page number
            per_page: Results per page (max 100)

        Returns:
            Raw repository objects
        """
        try:
            return await self._request(
                self._github.rest.repos.async_list_for_org,
                org=org,
                type="all",
                sort="full_name",
                per_page=per_page,
                page=page,
            )
        except GitHubNotFoundError:
            logger.debug("{} is not an organization, listing user repositories", org)

        return await self._request(
            self._github.rest.repos.async_list_for_user,
            username=org,
            type="owner",
            sort="full_name",
            per_page=per_page,
            page=page,
        )

    async def list_collaborators_page(
        self,
        owner: str,
        repo: str,
        *,
        page: int,
        per_page: int,
    ) -> JSONList:
        """List one page of direct collaborators (requires push access)."""
        return await self._request(
            self._github.rest.repos.async_list_collaborators,
            owner=owner,
            repo=repo,
            affiliation="direct",
            per_page=per_page,
            page=page,
        )

    async def get_file_content(self, owner: str, repo: str, path: str) -> str | None:
        """Get a file's decoded text from the default branch.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path inside the repository

        Returns:
            File text, or None if the path does not exist or is not a file
        """
        try:
            data = await self._request(
                self._github.rest.repos.async_get_content,
                owner=owner,
                repo=repo,
                path=path,
            )
        except GitHubNotFoundError:
            return None

        if not isinstance(data, dict) or data.get("type") != "file":
            return None
        content = data.get("content") or ""
        try:
            return base64.b64decode(content).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise GitHubClientError(f"Undecodable content for {owner}/{repo}:{path}: {e}") from e

    # -------------------------------------------------------------------------
    # Issues & Comments
    # -------------------------------------------------------------------------
    async def list_issues_page(
        self,
        owner: str,
        repo: str,
        *,
        page: int,
        per_page: int,
        since: datetime | None = None,
    ) -> JSONList:
        """List one page of issues (pull requests included), most recently updated first.

        Args:
            owner: Repository owner
            repo: Repository name
            page: 1-based page number
            per_page: Results per page (max 100)
            since: Only items updated at or after this time

        Returns:
            Raw issue objects
        """
        return await self._request(
            self._github.rest.issues.async_list_for_repo,
            owner=owner,
            repo=repo,
            state="all",
            sort="updated",
            direction="desc",
            since=since,
            per_page=per_page,
            page=page,
        )

    async def list_issue_comments_page(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int,
        per_page: int,
        since: datetime | None = None,
    ) -> JSONList:
        """List one page of comments on an issue."""
        return await self._request(
            self._github.rest.issues.async_list_comments,
            owner=owner,
            repo=repo,
            issue_number=number,
            since=since,
            per_page=per_page,
            page=page,
        )

    # -------------------------------------------------------------------------
    # Pull Requests
    # -------------------------------------------------------------------------
    async def list_pull_requests_page(
        self,
        owner: str,
        repo: str,
        *,
        page: int,
        per_page: int,
    ) -> JSONList:
        """List one page of pull requests, most recently updated first.

        This endpoint has no ``since`` parameter.
        """
        return await self._request(
            self._github.rest.pulls.async_list,
            owner=owner,
            repo=repo,
            state="all",
            sort="updated",
            direction="desc",
            per_page=per_page,
            page=page,
        )

    async def list_pull_request_files_page(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int,
        per_page: int,
    ) -> JSONList:
        return await self._request(
            self._github.rest.pulls.async_list_files,
            owner=owner,
            repo=repo,
            pull_number=number,
            per_page=per_page,
            page=page,
        )

    async def list_pull_request_reviews_page(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int,
        per_page: int,
    ) -> JSONList:
        return await self._request(
            self._github.rest.pulls.async_list_reviews,
            owner=owner,
            repo=repo,
            pull_number=number,
            per_page=per_page,
            page=page,
        )

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------
    async def get_user(self, login: str) -> dict[str, Any]:
        """Get a user or organization account by login.

        Raises:
            GitHubNotFoundError: If the login does not exist
        """
        return await self._request(self._github.rest.users.async_get_by_username, username=login)

    # -------------------------------------------------------------------------
    # Error Handling
    # -------------------------------------------------------------------------
    def _handle_error(self, error: RequestFailed) -> GitHubClientError:
        """Convert githubkit exceptions to our custom exceptions."""
        status = error.response.status_code
        headers = error.response.headers

        if status == 401:
            return GitHubAuthenticationError("Invalid GitHub credentials", status_code=status)
        elif status in (403, 429):
            if status == 429 or headers.get("x-ratelimit-remaining") == "0":
                reset_ts = int(headers.get("x-ratelimit-reset", "0") or 0)
                reset_at = datetime.fromtimestamp(reset_ts, tz=UTC) if reset_ts else None
                return GitHubRateLimitError("GitHub rate limit exceeded", reset_at=reset_at)
            return GitHubPermissionError(f"Access forbidden: {error}", status_code=status)
        elif status == 404:
            return GitHubNotFoundError(str(error), status_code=status)
        else:
            return GitHubClientError(f"GitHub API error ({status}): {error}", status_code=status)
