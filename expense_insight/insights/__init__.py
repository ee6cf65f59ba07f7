"""Spending insights derived from the ledger's expense set."""

from expense_insight.insights.aggregator import (
    bucket_label,
    compute_category_breakdown,
    compute_overview,
    compute_time_series,
    positive_categories,
    week_start,
    window_days,
)

__all__ = [
    "bucket_label",
    "compute_category_breakdown",
    "compute_overview",
    "compute_time_series",
    "positive_categories",
    "week_start",
    "window_days",
]
