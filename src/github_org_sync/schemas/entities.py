"""Canonical records written by the upsert store.

Each record is keyed by the stable GitHub identifier of the entity; the
store never sees raw API payloads.
"""

from datetime import datetime

from pydantic import Field

from .base import SchemaBase
from .enums import ReviewState


class RepoData(SchemaBase):
    """Repository row."""

    github_id: int
    owner: str = Field(max_length=100)
    name: str = Field(max_length=100)
    full_name: str = Field(max_length=200)
    private: bool = False
    archived: bool = False
    pushed_at: datetime | None = None
    updated_at: datetime | None = None


class UserData(SchemaBase):
    """GitHub account referenced by any synced entity."""

    github_id: int
    login: str = Field(max_length=100)
    avatar_url: str | None = None
    name: str | None = None
    type: str = "User"


class IssueData(SchemaBase):
    """Issue row. Pull requests are stored separately."""

    github_id: int
    repo_github_id: int
    number: int
    title: str
    body: str | None = None
    state: str
    author_login: str | None = None
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None


class DiffStats(SchemaBase):
    """Line and file counts summed over a pull request's changed files."""

    additions: int = 0
    deletions: int = 0
    changed_files: int = 0


class PullRequestData(IssueData):
    """Pull request row.

    Diff stats of ``None`` mean "unknown for this pass": the store keeps
    whatever it had before.
    """

    draft: bool = False
    merged: bool = False
    merged_at: datetime | None = None
    merge_commit_sha: str | None = None
    additions: int | None = None
    deletions: int | None = None
    changed_files: int | None = None


class ReviewData(SchemaBase):
    """Submitted review on a pull request."""

    reviewer_login: str
    state: ReviewState
    submitted_at: datetime
    reviewer: UserData | None = Field(default=None, exclude=True)
    """Reviewer account, for the user upsert. Not stored on the review row."""


class CommentData(SchemaBase):
    """Issue comment row."""

    github_id: int
    issue_github_id: int
    author_login: str | None = None
    body: str | None = None
    created_at: datetime
    updated_at: datetime
