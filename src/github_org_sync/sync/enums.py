"""Enums for sync operations."""

from enum import Enum


class RepoSyncState(str, Enum):
    """Lifecycle of one repository within a sync run."""

    PENDING = "pending"
    FETCHING = "fetching"
    PERSISTING_ITEMS = "persisting_items"
    ADVANCING_WATERMARK = "advancing_watermark"
    DONE = "done"
    SKIPPED = "skipped"
    """Repository-level failure before the watermark step; watermark untouched."""


class OutputFormat(str, Enum):
    """Output format for CLI commands."""

    TEXT = "text"
    """Human-readable text output."""

    JSON = "json"
    """Machine-readable JSON output."""
