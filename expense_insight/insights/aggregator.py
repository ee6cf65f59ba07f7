"""
Spending Aggregator

Two independent views over an expense snapshot:

CATEGORY BREAKDOWN
    Sum of amounts per category label. Zero totals are kept; hiding them
    is up to the display (see `positive_categories`).

TIME SERIES
    Sum of amounts per calendar bucket within a look-back window:

    daily    last 7 days     "Jan 4"
    weekly   last 28 days    "Week of Dec 29"   (weeks start on Sunday)
    monthly  last 360 days   "Jan 2025"

    A record is kept when `now - window < timestamp`. Buckets are ordered
    by first appearance while scanning the records in the order given,
    NOT by date, and only the last `max_buckets` of them are kept.

    NOTE: With unsorted input this truncation can drop the most recent
    period while keeping an older one. The behaviour is intentional and
    pinned by tests; sort the records first if chronological trimming is
    wanted.

Every function is pure: nothing is cached between calls. Sums use float
addition and are never rounded here.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable, Optional, Sequence, Union

import structlog

from expense_insight.config import AggregationSettings, get_settings, resolve_timezone
from expense_insight.models.expense import ExpenseRecord, NormalizedExpense, to_timestamp_ns
from expense_insight.models.insight import (
    CategoryTotal,
    Granularity,
    SpendingOverview,
    TimeBucket,
    TimeBucketSeries,
)


logger = structlog.get_logger(__name__)

# Fixed English abbreviations so labels do not depend on the OS locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

NANOS_PER_DAY = 24 * 60 * 60 * 1_000_000_000


def compute_category_breakdown(records: Iterable[ExpenseRecord]) -> list[CategoryTotal]:
    """Total amount per category, in first-seen category order."""
    totals: dict[str, float] = {}
    for record in records:
        totals[record.category] = totals.get(record.category, 0.0) + float(record.amount)
    return [
        CategoryTotal(category=category, total_amount=total)
        for category, total in totals.items()
    ]


def positive_categories(summary: Iterable[CategoryTotal]) -> list[CategoryTotal]:
    """Drop categories whose total is not positive (display filter)."""
    return [entry for entry in summary if entry.total_amount > 0]


def window_days(
    granularity: Granularity,
    settings: Optional[AggregationSettings] = None,
) -> int:
    """Look-back window, in days, for a granularity."""
    settings = settings or get_settings().aggregation
    return {
        Granularity.DAILY: settings.daily_window_days,
        Granularity.WEEKLY: settings.weekly_window_days,
        Granularity.MONTHLY: settings.monthly_window_days,
    }[granularity]


def week_start(day: date) -> date:
    """The Sunday on or before `day`."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _month_day(day: date) -> str:
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day}"


def bucket_label(day: date, granularity: Granularity) -> str:
    """Label of the bucket a local calendar date falls into."""
    if granularity == Granularity.DAILY:
        return _month_day(day)
    if granularity == Granularity.WEEKLY:
        return f"Week of {_month_day(week_start(day))}"
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.year}"


def _local_date(moment: datetime, zone: tzinfo) -> date:
    """Calendar date of `moment` in `zone`, or its UTC date at the edges of the calendar."""
    try:
        return moment.astimezone(zone).date()
    except OverflowError:
        logger.warning("local_date_out_of_range", moment=moment.isoformat())
        return moment.date()


def compute_time_series(
    records: Iterable[NormalizedExpense],
    granularity: Union[Granularity, str],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    settings: Optional[AggregationSettings] = None,
) -> TimeBucketSeries:
    """
    Bucket expenses by day, week or month within the look-back window.

    Args:
        records: Expense snapshot, scanned in the given order
        granularity: daily, weekly or monthly
        now: Reference instant (defaults to the current time; naive means UTC)
        tz: Zone used to find each record's local calendar date
            (defaults to the configured display zone)
        settings: Window sizes and bucket cap (defaults to configured values)
    """
    granularity = Granularity(granularity)
    settings = settings or get_settings().aggregation
    zone = tz or resolve_timezone()

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff_ns = to_timestamp_ns(now) - window_days(granularity, settings) * NANOS_PER_DAY

    totals: dict[str, float] = {}
    for record in records:
        if not cutoff_ns < record.timestamp_ns:
            continue
        key = bucket_label(_local_date(record.occurred_at, zone), granularity)
        totals[key] = totals.get(key, 0.0) + float(record.amount)

    kept = list(totals.items())[-settings.max_buckets:]

    return TimeBucketSeries(
        granularity=granularity,
        reference_time=now,
        buckets=[TimeBucket(label=label, total_amount=total) for label, total in kept],
    )


def compute_overview(
    summary: Sequence[CategoryTotal],
    records: Sequence[ExpenseRecord],
) -> SpendingOverview:
    """Headline numbers: all-time total, expense count, active categories."""
    return SpendingOverview(
        total_spending=sum(entry.total_amount for entry in summary),
        expense_count=len(records),
        active_categories=len(positive_categories(summary)),
    )
