"""GitHub client exceptions."""

from datetime import datetime

# Substrings GitHub uses in permission-denied responses
PERMISSION_MARKERS = (
    "must have push access",
    "push access to view",
    "resource not accessible by integration",
    "forbidden",
)


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthenticationError(GitHubClientError):
    """Raised when authentication fails (401) or no credentials are configured."""

    pass


class GitHubPermissionError(GitHubClientError):
    """Raised on 403 responses that are not rate limiting."""

    pass


class GitHubRateLimitError(GitHubClientError):
    """Raised when rate limit is exceeded (403/429 with rate limit headers)."""

    def __init__(self, message: str, reset_at: datetime | None = None) -> None:
        super().__init__(message, status_code=403)
        self.reset_at = reset_at


class GitHubNotFoundError(GitHubClientError):
    """Raised when a resource is not found (404)."""

    pass


def is_permission_error(error: BaseException) -> bool:
    """Check whether a failure means "the credentials may not see this".

    Rate limiting is never a permission error.
    """
    if isinstance(error, GitHubRateLimitError):
        return False
    if isinstance(error, GitHubPermissionError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in PERMISSION_MARKERS)
