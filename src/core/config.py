"""Configuration management for taskquest."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="./data/taskquest.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Reward Configuration (fallback when no system_settings record exists)
    task_completion_base: float = Field(
        default=10.0, ge=0, description="Base coins per difficulty point for a completed task"
    )
    complexity_multiplier: float = Field(
        default=1.0, ge=0, description="Multiplier applied on top of the completion base"
    )

    # Optimistic Concurrency
    version_conflict_max_retries: int = Field(
        default=3, ge=0, description="Extra read-modify-write attempts before a version conflict is surfaced"
    )

    # Listing
    default_page_limit: int = Field(default=20, ge=1, description="Default page size for task listings")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production."""
        return self.environment.lower() == "production"


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_FORBIDDEN: int = 403
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_UNPROCESSABLE: int = 422
    HTTP_SERVICE_UNAVAILABLE: int = 503

    # Pagination
    MAX_PAGE_LIMIT: int = 100

    # Actor headers (identity is resolved upstream)
    HEADER_USER_ID: str = "X-User-Id"
    HEADER_USER_NAME: str = "X-User-Name"
    HEADER_USER_ROLE: str = "X-User-Role"

    # Chat
    SYSTEM_AUTHOR: str = "system"
    SYSTEM_AUTHOR_NAME: str = "System"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
