"""
Configuration Management for the Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Window sizes and feed limits live next to the storage settings so the
dashboard behaviour can be tuned without code changes.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from expense_tracker.models.summary import TransactionCountPolicy


class SummarySettings(BaseSettings):
    """Aggregation windows and feed limits."""

    model_config = SettingsConfigDict(
        env_prefix="SUMMARY_",
        extra="ignore"
    )

    monthly_window: int = Field(
        default=6,
        ge=1,
        description="Number of most recent non-empty months in the monthly series"
    )
    daily_window: int = Field(
        default=30,
        ge=1,
        description="Number of most recent non-empty days in the daily series"
    )
    feed_size: int = Field(
        default=10,
        ge=0,
        description="Maximum entries in the recent transactions feed"
    )
    recent_income_limit: int = Field(
        default=10,
        ge=0,
        description="How many of the latest income records feed the activity list"
    )
    list_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum records returned by a list query"
    )
    transaction_count_policy: TransactionCountPolicy = Field(
        default=TransactionCountPolicy.FILTERED,
        description="How the combined transaction count is derived"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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

    # Sheet names within the spreadsheet
    income_sheet_name: str = Field(
        default="Income",
        description="Name of the sheet for income records"
    )
    expense_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expense records"
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
        description="Level for the structured logger"
    )
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Where records are stored"
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
    def summary(self) -> SummarySettings:
        return SummarySettings()

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

    Returns a dict of {setting_name: is_valid}, with a
    {setting_name}_error entry for each failure. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("summary", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
