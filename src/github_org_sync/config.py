"""Configuration settings for GitHub Org Sync."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_org_sync.errors import ConfigurationError


class SyncConfig(BaseModel):
    """Configuration for repository enumeration and paging.

    Controls the page size used for every list endpoint and which
    repositories of the organization take part in a sync.
    """

    page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Items requested per API page (GitHub caps this at 100)",
    )

    include_repos: list[str] = Field(
        default_factory=list,
        description="If set, only these repository names are synced",
    )
    exclude_repos: list[str] = Field(
        default_factory=list,
        description="Repository names that are never synced",
    )

    def is_included(self, name: str) -> bool:
        """Check a repository name against the include/exclude lists."""
        if self.include_repos and name not in self.include_repos:
            return False
        return name not in self.exclude_repos


class MaintainerConfig(BaseModel):
    """Configuration for maintainer detection.

    Each evidence source carries a confidence; the highest one wins when
    sources disagree about an identity.
    """

    permission_confidence: int = Field(
        default=100,
        ge=0,
        le=100,
        description="Confidence for collaborators with write access or higher",
    )
    codeowners_confidence: int = Field(
        default=90,
        ge=0,
        le=100,
        description="Confidence for users named in a CODEOWNERS file",
    )
    metadata_confidence: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Confidence for users named in the registry metadata template",
    )
    min_permission: Literal["write", "maintain", "admin"] = Field(
        default="write",
        description="Lowest collaborator permission that counts as a maintainer",
    )
    codeowners_paths: list[str] = Field(
        default_factory=lambda: [".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS"],
        description="Locations probed for a CODEOWNERS file, first match wins",
    )
    metadata_template_path: str = Field(
        default=".bcr/metadata.template.json",
        description="Location of the registry metadata template",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Database
    # --------------------------------------------------------------------------
    database_url: str = Field(
        default="",
        description="Database connection string (postgresql:// or sqlite+aiosqlite://)",
    )

    # --------------------------------------------------------------------------
    # GitHub API
    # --------------------------------------------------------------------------
    github_org: str = Field(
        default="",
        description="Organization to sync when none is given on the command line",
    )
    app_id: str = Field(
        default="",
        description="GitHub App ID",
    )
    private_key: str = Field(
        default="",
        description="GitHub App private key (PEM)",
    )
    installation_id: str = Field(
        default="",
        description="GitHub App installation ID",
    )
    github_token: str = Field(
        default="",
        description="Personal access token (accepted for maintainer sync only)",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Sync Configuration
    # --------------------------------------------------------------------------
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Repository filtering and paging configuration",
    )
    maintainers: MaintainerConfig = Field(
        default_factory=MaintainerConfig,
        description="Maintainer detection configuration",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )

    # --------------------------------------------------------------------------
    # Validation Helpers
    # --------------------------------------------------------------------------
    @property
    def has_app_credentials(self) -> bool:
        """True when all three GitHub App values are present."""
        return bool(self.app_id and self.private_key and self.installation_id)

    @property
    def private_key_pem(self) -> str:
        """Private key with escaped newlines restored (single-line env values)."""
        return self.private_key.replace("\\n", "\n")

    def require_database(self) -> str:
        """Return the database URL or raise if it is not configured.

        Raises:
            ConfigurationError: If DATABASE_URL is empty
        """
        if not self.database_url:
            raise ConfigurationError(
                "Missing required environment variable: DATABASE_URL",
                missing=["DATABASE_URL"],
            )
        return self.database_url

    def require_github_credentials(self, *, allow_token: bool = False) -> None:
        """Ensure GitHub credentials are configured.

        Args:
            allow_token: Accept GITHUB_TOKEN in place of App credentials

        Raises:
            ConfigurationError: Naming every missing variable
        """
        if self.has_app_credentials:
            return
        if allow_token and self.github_token:
            return

        missing = [
            env_name
            for env_name, value in (
                ("APP_ID", self.app_id),
                ("PRIVATE_KEY", self.private_key),
                ("INSTALLATION_ID", self.installation_id),
            )
            if not value
        ]
        message = f"Missing required environment variables: {', '.join(missing)}"
        if allow_token:
            message += " (or set GITHUB_TOKEN)"
        raise ConfigurationError(message, missing=missing)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
