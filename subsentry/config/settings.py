"""
Configuration Management for SubSentry

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Exchange rates are configuration, not live data.
The ledger converts every cost into the canonical currency with the
static table loaded here. Rates are never fetched over the network.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from subsentry.models.subscription import Currency


DEFAULT_EXCHANGE_RATES = {
    Currency.USD: Decimal("83.00"),
    Currency.EUR: Decimal("90.00"),
    Currency.GBP: Decimal("105.00"),
}


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets key-value backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    store_sheet_name: str = Field(
        default="KeyValueStore",
        description="Name of the worksheet holding key/value rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from SUBSENTRY_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUBSENTRY_",
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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Money
    canonical_currency: Currency = Field(
        default=Currency.INR,
        description="Currency all totals are normalized to"
    )
    exchange_rates: dict[Currency, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_EXCHANGE_RATES),
        description="Units of canonical currency per one unit of each foreign currency"
    )

    # Renewal alerts
    renewal_alert_window_days: int = Field(
        default=30,
        ge=0,
        le=366,
        description="How far ahead renewals are reported"
    )
    red_alert_threshold_days: int = Field(
        default=7,
        ge=0,
        description="Renewals this close are flagged red instead of amber"
    )

    # Storage
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which key-value backend to use"
    )

    @field_validator('exchange_rates')
    @classmethod
    def validate_exchange_rates(cls, v: dict[Currency, Decimal]) -> dict[Currency, Decimal]:
        """Rates must be strictly positive."""
        for currency, rate in v.items():
            if rate <= 0:
                raise ValueError(f"Exchange rate for {currency.value} must be positive")
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

    # Sub-settings are loaded lazily so a missing Sheets config
    # doesn't stop an in-memory run.

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry describing each failure.
    """
    results = {}

    settings = get_settings()
    sections = {
        "app": lambda: settings.app,
        "google_sheets": lambda: settings.google_sheets,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
