"""Result objects for sync operations.

Structured results provide consistent interfaces for monitoring,
error handling, and CLI output. Failures are values here, never
exceptions escaping the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .enums import RepoSyncState


@dataclass
class SyncError:
    """One recorded failure of a run."""

    repository: str
    """Full repository name (owner/repo)."""

    entity: str
    """What failed: repository, issue, pull_request, comment, user, maintainer, ..."""

    message: str

    error_type: str

    number: int | None = None
    """Issue/PR number, when the failure concerns one."""

    @classmethod
    def from_exception(
        cls,
        repository: str,
        entity: str,
        error: BaseException,
        number: int | None = None,
    ) -> SyncError:
        return cls(
            repository=repository,
            entity=entity,
            message=str(error),
            error_type=type(error).__name__,
            number=number,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "repository": self.repository,
            "entity": self.entity,
            "error": self.message,
            "error_type": self.error_type,
        }
        if self.number is not None:
            result["number"] = self.number
        return result


@dataclass
class RepoSyncResult:
    """Result of syncing a single repository."""

    repository: str
    """Full repository name (owner/repo)."""

    state: RepoSyncState = RepoSyncState.PENDING

    items_synced: int = 0
    """Items persisted successfully."""

    items_failed: int = 0
    """Items recorded as errors and skipped."""

    watermark: datetime | None = None
    """Watermark after this pass (None if not advanced)."""

    hold_watermark: bool = False
    """Set when a per-item fetch failed and the watermark must not move."""

    degraded: bool = False
    """Set when a signal source was unavailable (maintainer sync)."""

    error: str | None = None
    """Repository-level failure message, when skipped."""

    @property
    def skipped(self) -> bool:
        return self.state == RepoSyncState.SKIPPED

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository,
            "state": self.state.value,
            "items_synced": self.items_synced,
            "items_failed": self.items_failed,
            "watermark": self.watermark.isoformat() if self.watermark else None,
            "degraded": self.degraded,
            "error": self.error,
        }


@dataclass
class SyncRunReport:
    """Result of one orchestrator run across an organization."""

    kind: str
    """Entity kind synced by the run."""

    org: str

    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    completed_at: datetime | None = None

    repo_results: list[RepoSyncResult] = field(default_factory=list)

    errors: list[SyncError] = field(default_factory=list)

    fatal_error: str | None = None
    """Set when the run could not enumerate repositories at all."""

    @property
    def failed(self) -> bool:
        return self.fatal_error is not None

    @property
    def repos_processed(self) -> int:
        """Repositories that reached DONE."""
        return sum(1 for r in self.repo_results if r.state == RepoSyncState.DONE)

    @property
    def repos_skipped(self) -> int:
        return sum(1 for r in self.repo_results if r.skipped)

    @property
    def items_synced(self) -> int:
        return sum(r.items_synced for r in self.repo_results)

    @property
    def items_failed(self) -> int:
        return sum(r.items_failed for r in self.repo_results)

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def record_error(
        self,
        repository: str,
        entity: str,
        error: BaseException,
        number: int | None = None,
    ) -> SyncError:
        entry = SyncError.from_exception(repository, entity, error, number)
        self.errors.append(entry)
        return entry

    def finish(self) -> None:
        self.completed_at = datetime.now(UTC)

    def summary(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "org": self.org,
            "repos_processed": self.repos_processed,
            "repos_skipped": self.repos_skipped,
            "items_synced": self.items_synced,
            "items_failed": self.items_failed,
            "errors": len(self.errors),
            "fatal_error": self.fatal_error,
            "duration_seconds": round(self.duration_seconds, 2),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": self.summary(),
            "repositories": [r.to_dict() for r in self.repo_results],
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class MaintainerSyncReport(SyncRunReport):
    """Maintainer run with discovery counters."""

    maintainers_discovered: int = 0
    """Assertions written across all repositories."""

    users_newly_marked: int = 0
    """Distinct users flagged as maintainers for the first time in this run."""

    @property
    def repos_scanned(self) -> int:
        return self.repos_processed

    def summary(self) -> dict[str, Any]:
        return {
            **super().summary(),
            "repos_scanned": self.repos_scanned,
            "maintainers_discovered": self.maintainers_discovered,
            "users_newly_marked": self.users_newly_marked,
        }


@dataclass(frozen=True)
class ItemOutcome:
    """Outcome of persisting one fetched item."""

    number: int | None
    updated_at: datetime | None
    """Used for the watermark whether or not the item persisted."""
    error: SyncError | None = None
