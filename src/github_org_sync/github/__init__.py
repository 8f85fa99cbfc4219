"""GitHub API access.

This module provides:
- GitHubClient: one-request-per-call async client (App installation or token auth)
- PageFetcher: lazy page streams and PR sub-fetches on top of the client
- The GitHub error taxonomy and permission classification
"""

from .client import GitHubClient
from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
    is_permission_error,
)
from .pagination import Page, PageFetcher, iterate_pages

__all__ = [
    # Client
    "GitHubClient",
    # Pagination
    "Page",
    "PageFetcher",
    "iterate_pages",
    # Exceptions
    "GitHubAuthenticationError",
    "GitHubClientError",
    "GitHubNotFoundError",
    "GitHubPermissionError",
    "GitHubRateLimitError",
    "is_permission_error",
]
