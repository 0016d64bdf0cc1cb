"""Configuration package."""

from my_finance.config.settings import (
    AppSettings,
    FastForexSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "FastForexSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
