"""
Configuration Management for the Bookkeeping Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see where records live and how views are paged,
and ensures configuration is validated at startup.
"""

import re
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


STORAGE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKKEEPING_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Key-value backend: 'file' persists to disk, 'memory' is process-local"
    )
    data_dir: Path = Field(
        default=Path(".bookkeeping"),
        description="Directory holding one file per storage key"
    )
    records_key: str = Field(
        default="bookkeeping_records_v1",
        description="Storage key under which the record collection lives"
    )

    @field_validator("records_key")
    @classmethod
    def validate_records_key(cls, v: str) -> str:
        """The key doubles as a file name for the file backend."""
        if not STORAGE_KEY_PATTERN.fullmatch(v):
            raise ValueError(
                "records_key may only contain letters, digits, '.', '_' or '-'"
            )
        return v


class LedgerSettings(BaseSettings):
    """Ledger view and input configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKKEEPING_LEDGER_",
        extra="ignore"
    )

    group_page_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Date groups revealed per page in the month view"
    )
    export_indent: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Indentation of exported JSON"
    )
    max_category_length: int = Field(
        default=50,
        ge=1,
        description="Maximum category label length accepted from input"
    )
    max_note_length: int = Field(
        default=200,
        ge=1,
        description="Maximum note length accepted from input"
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

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )


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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

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


def validate_all_settings() -> dict:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "ledger", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
