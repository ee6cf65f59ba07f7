"""Configuration package."""

from expense_insight.config.settings import (
    AggregationSettings,
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    resolve_timezone,
)

__all__ = [
    "AggregationSettings",
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "resolve_timezone",
]
