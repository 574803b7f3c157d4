"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so the storage backend, the budget
alert bands and the reporting defaults can be seen (and overridden) in
one place.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Persistence backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="memory",
        pattern="^(memory|json)$",
        description="Which collection storage to use"
    )
    data_dir: Path = Field(
        default=Path.home() / ".finance_tracker",
        description="Directory holding one JSON file per collection"
    )
    write_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a collection write before giving up"
    )


class LedgerSettings(BaseSettings):
    """Ledger, budget and reporting defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_LEDGER_",
        extra="ignore"
    )

    currency: str = Field(
        default="IDR",
        min_length=3,
        max_length=3,
        description="ISO currency code for display"
    )
    locale: str = Field(
        default="id-ID",
        description="Locale used by presentation layers"
    )

    # Budget progress bands
    budget_warning_ratio: float = Field(
        default=0.5,
        gt=0.0,
        le=1.0,
        description="Spent/amount ratio at which a budget turns 'warning'"
    )
    budget_alert_ratio: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Spent/amount ratio at which a budget turns 'alert'"
    )

    # Reporting
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many transactions the recent list shows"
    )
    trend_months: int = Field(
        default=6,
        ge=1,
        le=36,
        description="Number of months in the income/expense trend"
    )

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_bands(self) -> "LedgerSettings":
        """The warning band must start below the alert band."""
        if self.budget_warning_ratio >= self.budget_alert_ratio:
            raise ValueError("budget_warning_ratio must be lower than budget_alert_ratio")
        return self


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
        description="Minimum level for the structured log"
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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
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
