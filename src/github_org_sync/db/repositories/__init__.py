"""Repository pattern implementation for database access.

Each repository wraps one model and exposes idempotent upserts keyed by
GitHub identifiers. Sessions and transactions belong to the caller.
"""

from .base import BaseRepository
from .comment import CommentRepository
from .issue import IssueRepository
from .maintainer import MaintainerRepository
from .pull_request import PullRequestRepository
from .repo import RepoRepository
from .sync_state import WATERMARK_COLUMNS, SyncStateRepository
from .user import GitHubUserRepository

__all__ = [
    "BaseRepository",
    "CommentRepository",
    "GitHubUserRepository",
    "IssueRepository",
    "MaintainerRepository",
    "PullRequestRepository",
    "RepoRepository",
    "SyncStateRepository",
    "WATERMARK_COLUMNS",
]
