"""Configuration package."""

from permission_journal.config.settings import (
    AppSettings,
    InsightSettings,
    Settings,
    StoreSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "InsightSettings",
    "Settings",
    "StoreSettings",
    "get_settings",
    "validate_all_settings",
]
