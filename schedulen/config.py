"""
Configuration management for ScheduleN.

Every setting maps to an upper-case environment variable (DATABASE_URL,
SESSION_SECRET_KEY, UNTIMED_EXPORT_START, ...). A .env file in the working
directory is read as well.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_SESSION_SECRET = "dev-insecure-session-secret"


class Settings(BaseSettings):
    """
    ScheduleN runtime settings.

    Development defaults run against a local SQLite file with an insecure
    session secret; production must override both.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/schedulen.db",
        description="Database connection URL"
    )
    db_pool_size: int = Field(
        default=20,
        ge=1,
        description="Maximum number of pooled connections (PostgreSQL only)"
    )
    db_pool_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Seconds to wait for a pooled connection before failing"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Recycle pooled connections after this many seconds"
    )
    auto_create_schema: bool = Field(
        default=True,
        description="Create missing tables at startup (use Alembic in production)"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    # Event password sessions
    session_secret_key: str = Field(
        default=DEVELOPMENT_SESSION_SECRET,
        description="Secret used to sign per-event session cookies"
    )
    session_max_age_seconds: int = Field(
        default=24 * 60 * 60,
        gt=0,
        description="Lifetime of a per-event session cookie"
    )
    password_hash_iterations: int = Field(
        default=260_000,
        ge=1,
        description="PBKDF2 iterations for newly stored event passwords"
    )

    # Calendar export
    ical_product_id: str = Field(
        default="-//ScheduleN//ScheduleN App//EN",
        description="PRODID written into exported calendars"
    )
    ical_uid_domain: str = Field(
        default="schedulen.app",
        description="Domain suffix for generated VEVENT UIDs"
    )
    attendees_label: str = Field(
        default="Attendees",
        description="Localized prefix for the attendee line in exported descriptions"
    )
    untimed_export_start: Optional[str] = Field(
        default=None,
        description="HH:MM start for options without a time; all-day export when unset"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("untimed_export_start")
    @classmethod
    def validate_untimed_export_start(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        hours, _, minutes = v.partition(":")
        if not (hours.isdigit() and minutes.isdigit() and len(minutes) == 2):
            raise ValueError("untimed_export_start must be HH:MM")
        if int(hours) > 23 or int(minutes) > 59:
            raise ValueError("untimed_export_start must be a valid time of day")
        return f"{int(hours):02d}:{minutes}"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        """Check if PostgreSQL is the configured database."""
        return "postgresql" in self.database_url.lower()

    @property
    def uses_sqlite(self) -> bool:
        """Check if SQLite is the configured database."""
        return self.database_url.lower().startswith("sqlite")

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        if self.uses_sqlite:
            errors.append(
                "Production requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string."
            )

        if self.session_secret_key == DEVELOPMENT_SESSION_SECRET:
            errors.append("SESSION_SECRET_KEY must be set in production.")

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings, read from the environment on first use.

    Tests build Settings directly instead, or call get_settings.cache_clear().
    """
    return Settings()
