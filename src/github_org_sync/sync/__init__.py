"""Sync orchestration.

This module provides:
- RepoSyncOrchestrator: per-repository template with failure isolation
- Issue, pull request, comment and maintainer orchestrators
- WatermarkTracker: per-repository, per-kind incremental sync boundaries
- Result objects returned by every run
"""

from .base import RepoSyncOrchestrator
from .comments import CommentSyncOrchestrator
from .enums import OutputFormat, RepoSyncState
from .issues import IssueSyncOrchestrator
from .maintainers import MaintainerSyncOrchestrator
from .pull_requests import PullRequestSyncOrchestrator
from .results import (
    ItemOutcome,
    MaintainerSyncReport,
    RepoSyncResult,
    SyncError,
    SyncRunReport,
)
from .watermark import WatermarkRow, WatermarkTracker

__all__ = [
    # Orchestrators
    "CommentSyncOrchestrator",
    "IssueSyncOrchestrator",
    "MaintainerSyncOrchestrator",
    "PullRequestSyncOrchestrator",
    "RepoSyncOrchestrator",
    # Results
    "ItemOutcome",
    "MaintainerSyncReport",
    "RepoSyncResult",
    "SyncError",
    "SyncRunReport",
    # Enums
    "OutputFormat",
    "RepoSyncState",
    # Watermarks
    "WatermarkRow",
    "WatermarkTracker",
]
