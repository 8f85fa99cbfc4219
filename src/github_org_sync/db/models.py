"""SQLAlchemy ORM models for GitHub Org Sync.

Every synced entity is keyed by its GitHub identifier, so re-running a
sync updates rows in place instead of duplicating them.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)
from sqlalchemy.types import JSON, TypeDecorator

from github_org_sync.schemas.enums import ReviewState


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware datetime that always round-trips as UTC.

    SQLite drops tzinfo on read; values coming back naive are UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    type_annotation_map = {datetime: UTCDateTime}


# ------------------------------------------------------------------------------
# Repository model
# ------------------------------------------------------------------------------
class Repo(Base):
    """Repository of the synced organization."""

    __tablename__ = "repos"

    github_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(String(100), index=True)
    name: Mapped[str] = mapped_column(String(100))
    full_name: Mapped[str] = mapped_column(String(200), index=True)
    private: Mapped[bool] = mapped_column(default=False)
    archived: Mapped[bool] = mapped_column(default=False)
    pushed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    synced_at: Mapped[datetime | None] = mapped_column(nullable=True)

    issues: Mapped[list["Issue"]] = relationship(
        back_populates="repo",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    pull_requests: Mapped[list["PullRequest"]] = relationship(
        back_populates="repo",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Repo(github_id={self.github_id}, full_name='{self.full_name}')>"


# ------------------------------------------------------------------------------
# Issue model
# ------------------------------------------------------------------------------
class Issue(Base):
    """GitHub issue (pull requests are stored in their own table)."""

    __tablename__ = "issues"

    github_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    repo_github_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("repos.github_id", ondelete="CASCADE"), index=True
    )
    number: Mapped[int] = mapped_column()
    title: Mapped[str] = mapped_column(String(1024))
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str] = mapped_column(String(20), index=True)
    author_login: Mapped[str | None] = mapped_column(String(100), nullable=True)
    labels: Mapped[list[str]] = mapped_column(JSON, default=list)
    assignees: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column()
    updated_at: Mapped[datetime] = mapped_column()
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    synced_at: Mapped[datetime] = mapped_column()
    comments_synced_at: Mapped[datetime | None] = mapped_column(nullable=True)
    """Start of the last comment pass that fetched this issue completely."""

    repo: Mapped["Repo"] = relationship(back_populates="issues")
    comments: Mapped[list["IssueComment"]] = relationship(
        back_populates="issue",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("repo_github_id", "number", name="uq_issue_repo_number"),)

    def __repr__(self) -> str:
        return f"<Issue(github_id={self.github_id}, repo={self.repo_github_id}, number={self.number})>"


# ------------------------------------------------------------------------------
# PullRequest model
# ------------------------------------------------------------------------------
class PullRequest(Base):
    """GitHub pull request with diff stats and its current review set."""

    __tablename__ = "pull_requests"

    github_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    repo_github_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("repos.github_id", ondelete="CASCADE"), index=True
    )
    number: Mapped[int] = mapped_column()
    title: Mapped[str] = mapped_column(String(1024))
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str] = mapped_column(String(20), index=True)
    draft: Mapped[bool] = mapped_column(default=False)
    author_login: Mapped[str | None] = mapped_column(String(100), nullable=True)
    labels: Mapped[list[str]] = mapped_column(JSON, default=list)
    assignees: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Null until the files endpoint has answered at least once
    additions: Mapped[int | None] = mapped_column(nullable=True)
    deletions: Mapped[int | None] = mapped_column(nullable=True)
    changed_files: Mapped[int | None] = mapped_column(nullable=True)

    merged: Mapped[bool] = mapped_column(default=False)
    merged_at: Mapped[datetime | None] = mapped_column(nullable=True)
    merge_commit_sha: Mapped[str | None] = mapped_column(String(40), nullable=True)

    created_at: Mapped[datetime] = mapped_column()
    updated_at: Mapped[datetime] = mapped_column()
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    synced_at: Mapped[datetime] = mapped_column()

    repo: Mapped["Repo"] = relationship(back_populates="pull_requests")
    reviews: Mapped[list["PullRequestReview"]] = relationship(
        back_populates="pull_request",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("repo_github_id", "number", name="uq_pr_repo_number"),)

    def __repr__(self) -> str:
        return (
            f"<PullRequest(github_id={self.github_id}, repo={self.repo_github_id}, "
            f"number={self.number})>"
        )


# ------------------------------------------------------------------------------
# PullRequestReview model
# ------------------------------------------------------------------------------
class PullRequestReview(Base):
    """Submitted review. The set per pull request is replaced on every sync."""

    __tablename__ = "pull_request_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pr_github_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("pull_requests.github_id", ondelete="CASCADE"), index=True
    )
    reviewer_login: Mapped[str] = mapped_column(String(100))
    state: Mapped[str] = mapped_column(String(30))
    submitted_at: Mapped[datetime] = mapped_column()
    synced_at: Mapped[datetime] = mapped_column()

    pull_request: Mapped["PullRequest"] = relationship(back_populates="reviews")

    __table_args__ = (
        CheckConstraint(
            "state IN ({})".format(", ".join(f"'{s.value}'" for s in ReviewState)),
            name="ck_review_state",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<PullRequestReview(pr={self.pr_github_id}, reviewer='{self.reviewer_login}', "
            f"state={self.state})>"
        )


# ------------------------------------------------------------------------------
# IssueComment model
# ------------------------------------------------------------------------------
class IssueComment(Base):
    """Comment on an issue. Upstream deletions are not reconciled."""

    __tablename__ = "issue_comments"

    comment_github_id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    issue_github_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("issues.github_id", ondelete="CASCADE"), index=True
    )
    author_login: Mapped[str | None] = mapped_column(String(100), nullable=True)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column()
    updated_at: Mapped[datetime] = mapped_column()
    synced_at: Mapped[datetime] = mapped_column()

    issue: Mapped["Issue"] = relationship(back_populates="comments")

    def __repr__(self) -> str:
        return f"<IssueComment(id={self.comment_github_id}, issue={self.issue_github_id})>"


# ------------------------------------------------------------------------------
# GitHubUser model
# ------------------------------------------------------------------------------
class GitHubUser(Base):
    """Account referenced by any synced entity.

    ``is_maintainer`` only ever goes from False to True.
    """

    __tablename__ = "github_users"

    github_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    login: Mapped[str] = mapped_column(String(100), index=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    type: Mapped[str] = mapped_column(String(20), default="User")
    is_maintainer: Mapped[bool] = mapped_column(default=False)
    maintainer_sources: Mapped[list[str]] = mapped_column(JSON, default=list)
    first_seen: Mapped[datetime] = mapped_column()
    last_seen: Mapped[datetime] = mapped_column()

    def __repr__(self) -> str:
        return f"<GitHubUser(github_id={self.github_id}, login='{self.login}')>"


# ------------------------------------------------------------------------------
# RepoMaintainer model
# ------------------------------------------------------------------------------
class RepoMaintainer(Base):
    """Maintainer assertion for one (repository, user) pair."""

    __tablename__ = "repo_maintainers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    repo_github_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("repos.github_id", ondelete="CASCADE"), index=True
    )
    github_user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("github_users.github_id", ondelete="CASCADE"), index=True
    )
    source: Mapped[str] = mapped_column(String(50))  # highest-confidence source
    sources: Mapped[list[str]] = mapped_column(JSON, default=list)  # every source seen
    confidence: Mapped[int] = mapped_column()
    first_detected_at: Mapped[datetime] = mapped_column()
    last_confirmed_at: Mapped[datetime] = mapped_column()

    user: Mapped["GitHubUser"] = relationship()

    __table_args__ = (
        UniqueConstraint("repo_github_id", "github_user_id", name="uq_repo_maintainer"),
        CheckConstraint("confidence BETWEEN 0 AND 100", name="ck_maintainer_confidence"),
    )

    def __repr__(self) -> str:
        return (
            f"<RepoMaintainer(repo={self.repo_github_id}, user={self.github_user_id}, "
            f"source='{self.source}', confidence={self.confidence})>"
        )


# ------------------------------------------------------------------------------
# SyncState model
# ------------------------------------------------------------------------------
class SyncState(Base):
    """Per-repository watermarks, one column per entity kind."""

    __tablename__ = "sync_state"

    repo_github_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("repos.github_id", ondelete="CASCADE"),
        primary_key=True,
        autoincrement=False,
    )
    last_issue_sync: Mapped[datetime | None] = mapped_column(nullable=True)
    last_pr_sync: Mapped[datetime | None] = mapped_column(nullable=True)
    last_comment_sync: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<SyncState(repo={self.repo_github_id})>"
