"""
Configuration Management for the Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.
Every variable is prefixed with EXPENSE_TRACKER_, e.g.:

    EXPENSE_TRACKER_DATA_FILE=/srv/expenses.csv
    EXPENSE_TRACKER_DEFAULT_CURRENCY=usd

DESIGN DECISION: All static configuration is centralized here.
The one value that changes at runtime (the session currency) lives in
config.session and is seeded from AppSettings.default_currency.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATA_FILENAME = "expense_tracker_data.csv"


def _default_data_file() -> Path:
    return Path.home() / DEFAULT_DATA_FILENAME


class StorageSettings(BaseSettings):
    """Flat-file persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_file: Path = Field(
        default_factory=_default_data_file,
        description="File used by save/load when no explicit path is given"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a save is attempted on transient I/O errors"
    )

    @field_validator('data_file')
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_currency: str = Field(
        default="SAR",
        description="Currency code the session starts with"
    )
    log_level: str = Field(
        default="INFO",
        description="Standard logging level name"
    )
    audit_history_size: int = Field(
        default=500,
        ge=1,
        description="How many audit events are kept in memory"
    )

    @field_validator('default_currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are stored trimmed and upper-cased."""
        v = v.strip().upper()
        if not v:
            raise ValueError("default_currency cannot be empty")
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
