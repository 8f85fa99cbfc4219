"""Maintainer detection: evidence parsing and aggregation."""

from .aggregator import DEFAULT_CONFIDENCE, MaintainerCandidate, MaintainerSignalAggregator
from .evidence import (
    Collaborator,
    Evidence,
    MetadataTemplateEvidence,
    OwnershipFileEvidence,
    PermissionEvidence,
    parse_codeowners,
    parse_metadata_template,
)

__all__ = [
    "DEFAULT_CONFIDENCE",
    "Collaborator",
    "Evidence",
    "MaintainerCandidate",
    "MaintainerSignalAggregator",
    "MetadataTemplateEvidence",
    "OwnershipFileEvidence",
    "PermissionEvidence",
    "parse_codeowners",
    "parse_metadata_template",
]
