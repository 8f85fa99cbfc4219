"""Pydantic schemas for parsing GitHub API responses.

These schemas map directly to the GitHub REST API response structure and
convert into the canonical records of :mod:`.entities`.
See: https://docs.github.com/en/rest
"""

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError

from github_org_sync.errors import InvalidEntityError

from .entities import (
    CommentData,
    DiffStats,
    IssueData,
    PullRequestData,
    RepoData,
    ReviewData,
    UserData,
)
from .enums import PermissionTier, ReviewState

PayloadT = TypeVar("PayloadT", bound=BaseModel)

# Review authors can be deleted accounts; GitHub shows them as "ghost"
GHOST_LOGIN = "ghost"


class GitHubUser(BaseModel):
    """GitHub user object from API responses."""

    login: str = Field(description="GitHub username")
    id: int = Field(description="GitHub user ID")
    type: str = Field(default="User", description="User, Bot or Organization")
    avatar_url: str | None = Field(default=None, description="Avatar image URL")
    name: str | None = Field(default=None, description="Display name (users endpoint only)")

    def to_user_data(self) -> UserData:
        return UserData(
            github_id=self.id,
            login=self.login,
            avatar_url=self.avatar_url,
            name=self.name,
            type=self.type,
        )


class GitHubLabel(BaseModel):
    """GitHub label object from API responses."""

    name: str = Field(description="Label name")


class GitHubRepository(BaseModel):
    """Repository object from the org/user repository listing."""

    id: int = Field(description="Repository ID")
    name: str = Field(description="Repository name")
    full_name: str = Field(description="owner/name")
    owner: GitHubUser = Field(description="Owning account")
    private: bool = Field(default=False)
    archived: bool = Field(default=False)
    pushed_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)

    def to_repo_data(self) -> RepoData:
        return RepoData(
            github_id=self.id,
            owner=self.owner.login,
            name=self.name,
            full_name=self.full_name,
            private=self.private,
            archived=self.archived,
            pushed_at=self.pushed_at,
            updated_at=self.updated_at,
        )


class GitHubIssue(BaseModel):
    """Issue object from GET /repos/{owner}/{repo}/issues."""

    id: int = Field(description="Issue ID")
    number: int = Field(description="Issue number")
    title: str = Field(description="Issue title")
    body: str | None = Field(default=None)
    state: str = Field(description="open or closed")
    user: GitHubUser | None = Field(default=None, description="Author")
    labels: list[GitHubLabel] = Field(default_factory=list)
    assignees: list[GitHubUser] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
    pull_request: dict[str, Any] | None = Field(
        default=None,
        description="Present when the issue is a pull request",
    )

    def to_issue_data(self, repo_github_id: int) -> IssueData:
        return IssueData(
            github_id=self.id,
            repo_github_id=repo_github_id,
            number=self.number,
            title=self.title,
            body=self.body,
            state=self.state,
            author_login=self.user.login if self.user else None,
            labels=[label.name for label in self.labels],
            assignees=[assignee.login for assignee in self.assignees],
            created_at=self.created_at,
            updated_at=self.updated_at,
            closed_at=self.closed_at,
        )

    def referenced_users(self) -> list[GitHubUser]:
        """Author and assignees, deduplicated by account ID."""
        return _unique_users([self.user, *self.assignees])


class GitHubPullRequest(BaseModel):
    """Pull request object from GET /repos/{owner}/{repo}/pulls.

    The list endpoint has no diff stats and no ``merged`` flag; merge
    status is derived from ``merged_at``.
    """

    id: int = Field(description="Pull request ID")
    number: int = Field(description="PR number")
    title: str = Field(description="PR title")
    body: str | None = Field(default=None)
    state: str = Field(description="open or closed")
    draft: bool = Field(default=False)
    user: GitHubUser | None = Field(default=None, description="Author")
    labels: list[GitHubLabel] = Field(default_factory=list)
    assignees: list[GitHubUser] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    merge_commit_sha: str | None = None
    merged: bool | None = None

    @property
    def is_merged(self) -> bool:
        if self.merged is not None:
            return self.merged
        return self.merged_at is not None

    def to_pull_request_data(
        self,
        repo_github_id: int,
        stats: DiffStats | None = None,
    ) -> PullRequestData:
        """
        Factory method to convert to the canonical pull request record.

        Args:
            repo_github_id: GitHub ID of the parent repository
            stats: Diff stats from the files endpoint, None if unavailable

        Returns:
            PullRequestData ready for upsert
        """
        return PullRequestData(
            github_id=self.id,
            repo_github_id=repo_github_id,
            number=self.number,
            title=self.title,
            body=self.body,
            state=self.state,
            draft=self.draft,
            author_login=self.user.login if self.user else None,
            labels=[label.name for label in self.labels],
            assignees=[assignee.login for assignee in self.assignees],
            created_at=self.created_at,
            updated_at=self.updated_at,
            closed_at=self.closed_at,
            merged=self.is_merged,
            merged_at=self.merged_at,
            merge_commit_sha=self.merge_commit_sha,
            additions=stats.additions if stats else None,
            deletions=stats.deletions if stats else None,
            changed_files=stats.changed_files if stats else None,
        )

    def referenced_users(self) -> list[GitHubUser]:
        return _unique_users([self.user, *self.assignees])


class GitHubReview(BaseModel):
    """GitHub review object from reviews endpoint."""

    id: int = Field(description="Review ID")
    user: GitHubUser | None = Field(default=None, description="Reviewer (None if deleted)")
    state: str = Field(description="Review state (APPROVED, CHANGES_REQUESTED, COMMENTED, etc.)")
    submitted_at: datetime | None = Field(default=None, description="When review was submitted")

    def to_review_data(self) -> ReviewData | None:
        """Canonical review, or None for reviews that were never submitted."""
        if self.submitted_at is None:
            return None
        return ReviewData(
            reviewer_login=self.user.login if self.user else GHOST_LOGIN,
            state=ReviewState(self.state.upper()),
            submitted_at=self.submitted_at,
            reviewer=self.user.to_user_data() if self.user else None,
        )


class GitHubComment(BaseModel):
    """Issue comment object from GET /repos/{owner}/{repo}/issues/{n}/comments."""

    id: int = Field(description="Comment ID")
    user: GitHubUser | None = Field(default=None)
    body: str | None = Field(default=None)
    created_at: datetime
    updated_at: datetime

    def to_comment_data(self, issue_github_id: int) -> CommentData:
        return CommentData(
            github_id=self.id,
            issue_github_id=issue_github_id,
            author_login=self.user.login if self.user else None,
            body=self.body,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class GitHubFile(BaseModel):
    """GitHub file object from files endpoint."""

    filename: str = Field(description="File path")
    additions: int = Field(default=0, description="Lines added")
    deletions: int = Field(default=0, description="Lines deleted")


class GitHubCollaborator(GitHubUser):
    """Collaborator object from GET /repos/{owner}/{repo}/collaborators."""

    role_name: str | None = Field(default=None, description="admin, maintain, write, triage, read")
    permissions: dict[str, bool] = Field(default_factory=dict)

    @property
    def tier(self) -> PermissionTier:
        """Highest permission tier granted to this collaborator."""
        if self.role_name:
            try:
                return PermissionTier(self.role_name.lower())
            except ValueError:
                # Custom repository roles fall back to the permission flags
                pass
        for flag, tier in _PERMISSION_FLAGS:
            if self.permissions.get(flag):
                return tier
        return PermissionTier.READ


_PERMISSION_FLAGS = (
    ("admin", PermissionTier.ADMIN),
    ("maintain", PermissionTier.MAINTAIN),
    ("push", PermissionTier.WRITE),
    ("triage", PermissionTier.TRIAGE),
    ("pull", PermissionTier.READ),
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def parse_payload(model: type[PayloadT], raw: Any, kind: str) -> PayloadT:
    """Validate a raw API payload.

    Args:
        model: Payload schema to validate against
        raw: Decoded JSON object
        kind: Entity kind used in the error message

    Returns:
        Validated payload instance

    Raises:
        InvalidEntityError: If the payload does not match the schema
    """
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise InvalidEntityError(kind, f"{location}: {first['msg']}") from e


def summarize_files(files: list[GitHubFile]) -> DiffStats:
    """Sum additions and deletions across a pull request's files."""
    return DiffStats(
        additions=sum(f.additions for f in files),
        deletions=sum(f.deletions for f in files),
        changed_files=len(files),
    )


def is_bot_account(login: str, account_type: str | None = None) -> bool:
    """Check for automation accounts (GitHub Apps and conventional bot logins)."""
    if account_type == "Bot":
        return True
    lowered = login.lower()
    return lowered.endswith("[bot]") or lowered.endswith("-bot")


def _unique_users(users: list[GitHubUser | None]) -> list[GitHubUser]:
    seen: set[int] = set()
    unique: list[GitHubUser] = []
    for user in users:
        if user is None or user.id in seen:
            continue
        seen.add(user.id)
        unique.append(user)
    return unique
