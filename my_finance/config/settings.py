"""
Configuration Management for My Finance

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local snapshot storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MY_FINANCE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_path: Path = Field(
        default=Path("finance_data.json"),
        description="Path of the JSON snapshot file"
    )
    audit_log_path: Optional[Path] = Field(
        default=None,
        description="Path of the JSON-lines audit log (disabled if unset)"
    )

    @field_validator('data_path')
    @classmethod
    def validate_data_path(cls, v: Path) -> Path:
        """Reject a data path that points at a directory."""
        if v.exists() and v.is_dir():
            raise ValueError(f"Snapshot path {v} is a directory")
        return v


class FastForexSettings(BaseSettings):
    """FastForex exchange-rate API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FASTFOREX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="FastForex API key (fallback rate is used when missing)"
    )
    base_url: str = Field(
        default="https://api.fastforex.io",
        description="FastForex API base URL"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="HTTP timeout for a single rate request"
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

    # Money
    fallback_exchange_rate: Decimal = Field(
        default=Decimal("117"),
        gt=0,
        description="EUR to RSD rate used when the rate source is unavailable"
    )
    default_currency: str = Field(
        default="RSD",
        pattern="^(RSD|EUR)$",
        description="Currency wealth totals are reported in"
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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def fastforex(self) -> FastForexSettings:
        return FastForexSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "fastforex", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    # A missing API key is valid configuration, but worth surfacing
    if results.get("fastforex"):
        results["fastforex_api_key_set"] = settings.fastforex.api_key is not None

    return results
