"""
Insight Models

Derived views over an expense snapshot: category totals, time-bucketed
totals and the headline overview numbers. Totals are floats because the
aggregation sums with floating point and never rounds; rounding to
currency precision belongs to whoever displays them.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Granularity(str, Enum):
    """Bucket size for the spending-over-time series."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class CategoryTotal(BaseModel):
    """Total spend for one category label."""

    category: str = Field(..., min_length=1)
    total_amount: float


class TimeBucket(BaseModel):
    """Total spend for one labelled period."""

    label: str
    total_amount: float


class TimeBucketSeries(BaseModel):
    """
    Ordered buckets for one granularity.

    Buckets are in first-seen order, not chronological order.
    """

    granularity: Granularity
    reference_time: datetime = Field(
        ...,
        description="The 'now' the look-back window was measured from"
    )
    buckets: list[TimeBucket] = Field(default_factory=list)

    @property
    def labels(self) -> list[str]:
        return [bucket.label for bucket in self.buckets]

    def as_pairs(self) -> list[tuple[str, float]]:
        return [(bucket.label, bucket.total_amount) for bucket in self.buckets]


class SpendingOverview(BaseModel):
    """Headline numbers for the overview screen."""

    total_spending: float = 0.0
    expense_count: int = Field(default=0, ge=0)
    active_categories: int = Field(default=0, ge=0)
