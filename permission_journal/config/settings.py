"""
Configuration Management for Money Permission Journal

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The store location, startup timeout and insight thresholds are the only
knobs the journal has, and all of them are validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_STORE_NAME = "MoneyPermissionJournal.sqlite"


def default_db_path() -> str:
    """Application-private location of the journal database."""
    return str(Path.home() / ".permission_journal" / DEFAULT_STORE_NAME)


class StoreSettings(BaseSettings):
    """Local database configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JOURNAL_STORE_",
        extra="ignore"
    )

    db_path: str = Field(
        default_factory=default_db_path,
        description="Path to the SQLite database file"
    )
    in_memory: bool = Field(
        default=False,
        description="Use a volatile in-memory database (discarded on exit)"
    )
    init_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="How long initialize() waits for the store to open"
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo SQL statements (debugging only)"
    )

    @field_validator('db_path')
    @classmethod
    def expand_db_path(cls, v: str) -> str:
        """Expand ~ so the store never ends up in a literal '~' directory."""
        if not v.strip():
            raise ValueError("db_path cannot be empty")
        return str(Path(v).expanduser())


class InsightSettings(BaseSettings):
    """Thresholds used by the derived statistics."""

    model_config = SettingsConfigDict(
        env_prefix="JOURNAL_INSIGHTS_",
        extra="ignore"
    )

    high_impact_threshold: int = Field(
        default=8,
        ge=1,
        le=10,
        description="Minimum emotional impact for the high-impact gallery"
    )
    uncategorized_label: str = Field(
        default="Uncategorized",
        min_length=1,
        description="Group name for permissions without a category"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )
    log_format: str = Field(
        default="json",
        pattern="^(json|console)$",
        description="Render logs as JSON lines or for a terminal"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

    @property
    def insights(self) -> InsightSettings:
        return InsightSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings(settings: Optional[Settings] = None) -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for each section that failed.
    """
    results = {}
    settings = settings or get_settings()

    for name in ("store", "insights", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
