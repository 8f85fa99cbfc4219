"""Maintainer evidence variants and the parsers that produce them.

Each signal source is reduced to an immutable evidence value before
aggregation; the aggregator never talks to GitHub or the database.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar

from github_org_sync.logging import get_logger
from github_org_sync.schemas.enums import MaintainerSource, PermissionTier
from github_org_sync.schemas.github_api import GitHubCollaborator, parse_payload

logger = get_logger(__name__)


@dataclass(frozen=True)
class Collaborator:
    """Direct collaborator as reported by the permission API."""

    login: str
    user_id: int
    account_type: str
    tier: PermissionTier
    avatar_url: str | None = None

    @classmethod
    def from_payload(cls, raw: dict[str, Any]) -> Collaborator:
        """Build from a raw collaborator object.

        Raises:
            InvalidEntityError: If the payload lacks login or id
        """
        payload = parse_payload(GitHubCollaborator, raw, "collaborator")
        return cls(
            login=payload.login,
            user_id=payload.id,
            account_type=payload.type,
            tier=payload.tier,
            avatar_url=payload.avatar_url,
        )


@dataclass(frozen=True)
class PermissionEvidence:
    """Collaborators and their permission tiers."""

    source: ClassVar[MaintainerSource] = MaintainerSource.PERMISSIONS
    collaborators: tuple[Collaborator, ...]


@dataclass(frozen=True)
class OwnershipFileEvidence:
    """Individual owners listed in a CODEOWNERS file."""

    source: ClassVar[MaintainerSource] = MaintainerSource.CODEOWNERS
    logins: tuple[str, ...]
    path: str | None = None


@dataclass(frozen=True)
class MetadataTemplateEvidence:
    """Maintainers listed in a registry metadata template."""

    source: ClassVar[MaintainerSource] = MaintainerSource.BCR_METADATA
    logins: tuple[str, ...]


Evidence = PermissionEvidence | OwnershipFileEvidence | MetadataTemplateEvidence


# -----------------------------------------------------------------------------
# Parsers
# -----------------------------------------------------------------------------
def parse_codeowners(text: str) -> tuple[str, ...]:
    """Extract individual ``@login`` owners from a CODEOWNERS file.

    Team owners (``@org/team``) and e-mail owners are ignored, as are
    comments. Logins are returned in first-seen order without duplicates.

    Args:
        text: File contents

    Returns:
        Tuple of logins without the leading ``@``
    """
    seen: dict[str, str] = {}
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        # First token is the path pattern
        for token in line.split()[1:]:
            if not token.startswith("@"):
                continue
            login = token[1:]
            if not login or "/" in login:
                continue
            seen.setdefault(login.lower(), login)
    return tuple(seen.values())


def parse_metadata_template(text: str) -> tuple[str, ...]:
    """Extract maintainer logins from a ``metadata.template.json`` document.

    Accepts entries that are objects with a ``github`` key, or bare strings.
    An unparseable document yields no logins.

    Args:
        text: File contents

    Returns:
        Tuple of logins in document order without duplicates
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Unparseable metadata template: {}", e)
        return ()
    if not isinstance(document, dict):
        return ()

    seen: dict[str, str] = {}
    for entry in document.get("maintainers") or []:
        if isinstance(entry, dict):
            login = entry.get("github")
        elif isinstance(entry, str):
            login = entry
        else:
            login = None
        if isinstance(login, str):
            login = login.strip().lstrip("@")
            if login:
                seen.setdefault(login.lower(), login)
    return tuple(seen.values())
