"""Enums shared between schemas, the store and the sync layer."""

from enum import Enum


class EntityKind(str, Enum):
    """Entity kinds that carry their own sync watermark."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    COMMENT = "comment"


class ReviewState(str, Enum):
    """Pull request review states accepted by the store."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class PermissionTier(str, Enum):
    """Collaborator permission tiers, lowest first."""

    READ = "read"
    TRIAGE = "triage"
    WRITE = "write"
    MAINTAIN = "maintain"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def at_least(self, other: "PermissionTier") -> bool:
        return self.rank >= other.rank


_TIER_ORDER = list(PermissionTier)


class MaintainerSource(str, Enum):
    """Evidence sources for a maintainer assertion.

    Declaration order is the tie-break when two sources carry the same confidence.
    """

    PERMISSIONS = "github-permissions"
    CODEOWNERS = "codeowners"
    BCR_METADATA = "bcr-metadata"

    @property
    def precedence(self) -> int:
        return list(MaintainerSource).index(self)
