"""
Configuration for Expense Insight

Every tunable is read from the environment (or a .env file) through
pydantic-settings, one class per concern:

    GOOGLE_SHEETS_*   ledger spreadsheet and credentials
    INSIGHTS_*        look-back windows and the bucket cap
    (no prefix)       log level, display time zone, upload limit
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Where the ledger lives."""

    model_config = SettingsConfigDict(env_prefix="GOOGLE_SHEETS_", extra="ignore")

    credentials_path: str = Field(..., description="Service account JSON key file")
    spreadsheet_id: str
    expenses_sheet_name: str = "Expenses"
    audit_sheet_name: str = "AuditLog"

    @field_validator('credentials_path')
    @classmethod
    def warn_if_missing(cls, v: str) -> str:
        # The key may be mounted after startup, so only warn
        if not Path(v).exists():
            import warnings
            warnings.warn(f"Google credentials file not found at {v}")
        return v


class AggregationSettings(BaseSettings):
    """Time-series windows (in days) and how many buckets a series keeps."""

    model_config = SettingsConfigDict(env_prefix="INSIGHTS_", extra="ignore")

    daily_window_days: int = Field(default=7, ge=1)
    weekly_window_days: int = Field(default=28, ge=1)
    # 12 x 30 days, not a calendar year
    monthly_window_days: int = Field(default=360, ge=1)
    max_buckets: int = Field(default=10, ge=1, le=100)


class AppSettings(BaseSettings):
    """Process-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    log_level: str = "INFO"
    display_timezone: str = Field(
        default="UTC",
        description="IANA zone used to derive local calendar dates"
    )
    max_upload_size_mb: int = Field(default=5, ge=1, le=50)

    @field_validator('display_timezone')
    @classmethod
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.display_timezone)

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Sections load on access, so Google credentials are only required once
    the Sheets ledger is actually used.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def aggregation(self) -> AggregationSettings:
        return AggregationSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Cached settings; call get_settings.cache_clear() to reload."""
    return Settings()


def resolve_timezone(name: Optional[str] = None) -> ZoneInfo:
    """The named zone, or the configured display zone when None."""
    if name is None:
        return get_settings().app.tzinfo
    return ZoneInfo(name)
