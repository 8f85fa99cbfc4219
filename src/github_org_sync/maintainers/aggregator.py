"""Maintainer Signal Aggregator.

Folds evidence from independent sources into one ranked candidate list.
The result depends only on the set of evidence, never on the order in
which it was collected.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from github_org_sync.schemas.enums import MaintainerSource, PermissionTier
from github_org_sync.schemas.github_api import is_bot_account

from .evidence import Evidence, PermissionEvidence

if TYPE_CHECKING:
    from github_org_sync.config import MaintainerConfig

DEFAULT_CONFIDENCE: dict[MaintainerSource, int] = {
    MaintainerSource.PERMISSIONS: 100,
    MaintainerSource.CODEOWNERS: 90,
    MaintainerSource.BCR_METADATA: 80,
}


@dataclass(frozen=True)
class MaintainerCandidate:
    """One identity believed to maintain a repository."""

    login: str
    user_id: int | None
    """Known only when the permission API named this identity."""
    best_source: MaintainerSource
    confidence: int
    sources: tuple[MaintainerSource, ...]
    """Every source that named this identity, strongest first."""

    def to_dict(self) -> dict[str, object]:
        return {
            "login": self.login,
            "user_id": self.user_id,
            "source": self.best_source.value,
            "confidence": self.confidence,
            "sources": [s.value for s in self.sources],
        }


@dataclass
class _Accumulator:
    logins: set[str] = field(default_factory=set)
    canonical_login: str | None = None
    user_id: int | None = None
    sources: set[MaintainerSource] = field(default_factory=set)


class MaintainerSignalAggregator:
    """Deterministic reducer from evidence to maintainer candidates.

    Rules:
        - Automation accounts are never candidates
        - Collaborators count only at ``min_tier`` or above
        - Identities match case-insensitively on login
        - A candidate's confidence is the maximum over the sources naming it
    """

    def __init__(
        self,
        confidences: Mapping[MaintainerSource, int] | None = None,
        min_tier: PermissionTier = PermissionTier.WRITE,
    ) -> None:
        self._confidences = {**DEFAULT_CONFIDENCE, **(confidences or {})}
        self._min_tier = min_tier

    @classmethod
    def from_config(cls, config: MaintainerConfig) -> MaintainerSignalAggregator:
        return cls(
            confidences={
                MaintainerSource.PERMISSIONS: config.permission_confidence,
                MaintainerSource.CODEOWNERS: config.codeowners_confidence,
                MaintainerSource.BCR_METADATA: config.metadata_confidence,
            },
            min_tier=PermissionTier(config.min_permission),
        )

    def confidence_for(self, source: MaintainerSource) -> int:
        return self._confidences[source]

    def _rank(self, source: MaintainerSource) -> tuple[int, int]:
        # Higher confidence first, declaration order breaks ties
        return (-self._confidences[source], source.precedence)

    def aggregate(self, evidence: Iterable[Evidence]) -> list[MaintainerCandidate]:
        """Reduce evidence to candidates sorted by login.

        Args:
            evidence: Evidence values in any order

        Returns:
            One candidate per identity
        """
        identities: dict[str, _Accumulator] = {}

        for item in evidence:
            if isinstance(item, PermissionEvidence):
                for collaborator in item.collaborators:
                    if is_bot_account(collaborator.login, collaborator.account_type):
                        continue
                    if not collaborator.tier.at_least(self._min_tier):
                        continue
                    acc = identities.setdefault(collaborator.login.lower(), _Accumulator())
                    acc.logins.add(collaborator.login)
                    acc.sources.add(item.source)
                    # Permission API identities are authoritative for login and ID
                    acc.canonical_login = collaborator.login
                    acc.user_id = collaborator.user_id
            else:
                for login in item.logins:
                    if is_bot_account(login):
                        continue
                    acc = identities.setdefault(login.lower(), _Accumulator())
                    acc.logins.add(login)
                    acc.sources.add(item.source)

        candidates: list[MaintainerCandidate] = []
        for key in sorted(identities):
            acc = identities[key]
            sources = tuple(sorted(acc.sources, key=self._rank))
            best = sources[0]
            candidates.append(
                MaintainerCandidate(
                    login=acc.canonical_login or min(acc.logins),
                    user_id=acc.user_id,
                    best_source=best,
                    confidence=self._confidences[best],
                    sources=sources,
                )
            )
        return candidates
