"""Pydantic schemas for GitHub Org Sync.

GitHub payload models validate API responses; entity records are what
the upsert store persists.
"""

from .base import SchemaBase, ensure_utc
from .entities import (
    CommentData,
    DiffStats,
    IssueData,
    PullRequestData,
    RepoData,
    ReviewData,
    UserData,
)
from .enums import EntityKind, MaintainerSource, PermissionTier, ReviewState
from .github_api import (
    GitHubCollaborator,
    GitHubComment,
    GitHubFile,
    GitHubIssue,
    GitHubLabel,
    GitHubPullRequest,
    GitHubRepository,
    GitHubReview,
    GitHubUser,
    is_bot_account,
    parse_payload,
    summarize_files,
)

__all__ = [
    # Base
    "SchemaBase",
    "ensure_utc",
    # Entity records
    "CommentData",
    "DiffStats",
    "IssueData",
    "PullRequestData",
    "RepoData",
    "ReviewData",
    "UserData",
    # Enums
    "EntityKind",
    "MaintainerSource",
    "PermissionTier",
    "ReviewState",
    # GitHub API
    "GitHubCollaborator",
    "GitHubComment",
    "GitHubFile",
    "GitHubIssue",
    "GitHubLabel",
    "GitHubPullRequest",
    "GitHubRepository",
    "GitHubReview",
    "GitHubUser",
    "is_bot_account",
    "parse_payload",
    "summarize_files",
]
