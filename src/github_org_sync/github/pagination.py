"""Lazy page streams over GitHub list endpoints.

A stream requests page 1, 2, ... until a page comes back shorter than the
page size (or empty). Empty pages are never yielded, so a source holding
exactly ``k * page_size`` items produces exactly ``k`` pages. Streams are
not seekable: resuming means starting a new stream with a later ``since``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from github_org_sync.logging import get_logger
from github_org_sync.schemas.base import ensure_utc
from github_org_sync.schemas.entities import DiffStats, ReviewData
from github_org_sync.schemas.github_api import (
    GitHubFile,
    GitHubReview,
    parse_payload,
    summarize_files,
)

if TYPE_CHECKING:
    from .client import GitHubClient

logger = get_logger(__name__)

RawItem = dict[str, Any]
FetchPage = Callable[[int], Awaitable[list[RawItem]]]

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page:
    """One non-empty page of raw API items."""

    items: list[RawItem]
    number: int
    """1-based page number."""
    has_more: bool
    """True when another page may follow."""


async def iterate_pages(
    fetch_page: FetchPage,
    page_size: int,
    *,
    keep: Callable[[RawItem], bool] | None = None,
) -> AsyncIterator[Page]:
    """Yield pages from a page-numbered endpoint.

    Args:
        fetch_page: Coroutine function returning the raw items of one page
        page_size: Size requested per page; a shorter page ends the stream
        keep: Optional item filter applied after the page-size check

    Yields:
        Non-empty pages in order
    """
    number = 1
    while True:
        raw = await fetch_page(number)
        if not raw:
            return

        has_more = len(raw) >= page_size
        items = [item for item in raw if keep(item)] if keep else list(raw)
        if items:
            yield Page(items=items, number=number, has_more=has_more)
        if not has_more:
            return
        number += 1


def updated_at_of(item: RawItem) -> datetime | None:
    """Parse an item's ``updated_at`` timestamp, if present and valid."""
    value = item.get("updated_at")
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None


def _is_plain_issue(item: RawItem) -> bool:
    return not item.get("pull_request")


class PageFetcher:
    """Page streams for every list endpoint the sync uses.

    Usage:
        fetcher = PageFetcher(client, page_size=100)
        async for page in fetcher.iter_issue_pages("acme", "widgets", since=watermark):
            for raw in page.items:
                ...
    """

    def __init__(self, client: GitHubClient, page_size: int = MAX_PAGE_SIZE) -> None:
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self._client = client
        self._page_size = page_size

    @property
    def client(self) -> GitHubClient:
        return self._client

    @property
    def page_size(self) -> int:
        return self._page_size

    # -------------------------------------------------------------------------
    # Page Streams
    # -------------------------------------------------------------------------

    def iter_repository_pages(self, org: str) -> AsyncIterator[Page]:
        async def fetch(page: int) -> list[RawItem]:
            return await self._client.list_org_repos_page(org, page=page, per_page=self._page_size)

        return iterate_pages(fetch, self._page_size)

    def iter_issue_pages(
        self,
        owner: str,
        repo: str,
        since: datetime | None = None,
    ) -> AsyncIterator[Page]:
        """Issues updated at or after ``since``, pull requests excluded."""

        async def fetch(page: int) -> list[RawItem]:
            return await self._client.list_issues_page(
                owner, repo, page=page, per_page=self._page_size, since=since
            )

        return iterate_pages(fetch, self._page_size, keep=_is_plain_issue)

    async def iter_pull_request_pages(
        self,
        owner: str,
        repo: str,
        since: datetime | None = None,
    ) -> AsyncIterator[Page]:
        """Pull requests updated at or after ``since``.

        The endpoint has no server-side ``since``; results come sorted by
        ``updated_at`` descending, so the stream stops at the first item
        older than the boundary.
        """

        async def fetch(page: int) -> list[RawItem]:
            return await self._client.list_pull_requests_page(
                owner, repo, page=page, per_page=self._page_size
            )

        boundary = ensure_utc(since) if since is not None else None
        async for page in iterate_pages(fetch, self._page_size):
            if boundary is None:
                yield page
                continue

            fresh: list[RawItem] = []
            reached_boundary = False
            for item in page.items:
                updated_at = updated_at_of(item)
                if updated_at is not None and updated_at < boundary:
                    reached_boundary = True
                    break
                fresh.append(item)

            if fresh:
                yield Page(
                    items=fresh,
                    number=page.number,
                    has_more=page.has_more and not reached_boundary,
                )
            if reached_boundary:
                return

    def iter_collaborator_pages(self, owner: str, repo: str) -> AsyncIterator[Page]:
        async def fetch(page: int) -> list[RawItem]:
            return await self._client.list_collaborators_page(
                owner, repo, page=page, per_page=self._page_size
            )

        return iterate_pages(fetch, self._page_size)

    def iter_comment_pages(
        self,
        owner: str,
        repo: str,
        number: int,
        since: datetime | None = None,
    ) -> AsyncIterator[Page]:
        async def fetch(page: int) -> list[RawItem]:
            return await self._client.list_issue_comments_page(
                owner, repo, number, page=page, per_page=self._page_size, since=since
            )

        return iterate_pages(fetch, self._page_size)

    # -------------------------------------------------------------------------
    # Pull Request Sub-fetches
    # -------------------------------------------------------------------------

    async def fetch_diff_stats(self, owner: str, repo: str, number: int) -> DiffStats:
        """Sum additions/deletions over every page of a PR's changed files."""

        async def fetch(page: int) -> list[RawItem]:
            return await self._client.list_pull_request_files_page(
                owner, repo, number, page=page, per_page=self._page_size
            )

        files: list[GitHubFile] = []
        async for page in iterate_pages(fetch, self._page_size):
            files.extend(parse_payload(GitHubFile, raw, "file") for raw in page.items)
        return summarize_files(files)

    async def fetch_reviews(self, owner: str, repo: str, number: int) -> list[ReviewData]:
        """All submitted reviews of a PR. Never-submitted reviews are dropped."""

        async def fetch(page: int) -> list[RawItem]:
            return await self._client.list_pull_request_reviews_page(
                owner, repo, number, page=page, per_page=self._page_size
            )

        reviews: list[ReviewData] = []
        async for page in iterate_pages(fetch, self._page_size):
            for raw in page.items:
                try:
                    review = parse_payload(GitHubReview, raw, "review").to_review_data()
                except ValueError as e:
                    # Review state outside ReviewState
                    logger.warning("Skipping review {} on #{}: {}", raw.get("id"), number, e)
                    continue
                if review is not None:
                    reviews.append(review)
        return reviews
