"""Configuration package."""

from subsentry.config.settings import (
    DEFAULT_EXCHANGE_RATES,
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_EXCHANGE_RATES",
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
