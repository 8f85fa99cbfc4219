"""Error taxonomy shared by the store, the orchestrators and the CLI.

GitHub transport errors live in :mod:`github_org_sync.github.exceptions`.
"""


class GitHubOrgSyncError(Exception):
    """Base exception for this package."""

    pass


class ConfigurationError(GitHubOrgSyncError):
    """Required configuration is missing or invalid.

    Raised before any repository is touched; the CLI maps it to exit code 1.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class ItemError(GitHubOrgSyncError):
    """Base class for failures scoped to a single synced record."""

    pass


class InvalidEntityError(ItemError):
    """An API payload failed canonical schema validation."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(f"Invalid {kind} payload: {message}")
        self.kind = kind


class DependencyMissingError(ItemError):
    """A child write referenced a parent row that does not exist."""

    def __init__(self, kind: str, key: object) -> None:
        super().__init__(f"Missing parent {kind} {key!r}")
        self.kind = kind
        self.key = key
