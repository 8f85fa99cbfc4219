"""Database module for GitHub Org Sync."""

from github_org_sync.db.engine import Database, normalize_database_url
from github_org_sync.db.models import (
    Base,
    GitHubUser,
    Issue,
    IssueComment,
    PullRequest,
    PullRequestReview,
    Repo,
    RepoMaintainer,
    SyncState,
)
from github_org_sync.db.repositories import (
    BaseRepository,
    CommentRepository,
    GitHubUserRepository,
    IssueRepository,
    MaintainerRepository,
    PullRequestRepository,
    RepoRepository,
    SyncStateRepository,
)

__all__ = [
    # Models
    "Base",
    "GitHubUser",
    "Issue",
    "IssueComment",
    "PullRequest",
    "PullRequestReview",
    "Repo",
    "RepoMaintainer",
    "SyncState",
    # Engine
    "Database",
    "normalize_database_url",
    # Repositories
    "BaseRepository",
    "CommentRepository",
    "GitHubUserRepository",
    "IssueRepository",
    "MaintainerRepository",
    "PullRequestRepository",
    "RepoRepository",
    "SyncStateRepository",
]
