"""
Core Data Models for Expense Insight

These models define the schemas for every expense flowing through the system:

1. ExpenseInput - raw values from the manual form or a CSV row
2. NormalizedExpense - the only shape the ledger accepts
3. ExpenseRecord - what the ledger hands back, with its category label
4. Ingestion results - rejection reasons, decode and import outcomes

DESIGN DECISION: NormalizedExpense enforces its invariants in the model
itself, so an invalid amount, a blank description or a missing timestamp
can never reach the ledger even if a caller bypasses the normalizer.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
NANOS_PER_MILLI = 1_000_000


def to_timestamp_ns(moment: datetime) -> int:
    """
    Convert an aware datetime to UTC nanoseconds since the epoch.

    Precision is milliseconds: the value is always a multiple of 1_000_000.
    """
    if moment.tzinfo is None:
        raise ValueError("Timestamp conversion requires an aware datetime")
    millis = (moment - EPOCH) // timedelta(milliseconds=1)
    return millis * NANOS_PER_MILLI


def timestamp_ns_to_datetime(timestamp_ns: int) -> datetime:
    """Aware UTC datetime for a nanosecond timestamp (microsecond precision)."""
    return EPOCH + timedelta(microseconds=timestamp_ns // 1000)


# =============================================================================
# ENUMS
# =============================================================================

class ExpenseSource(str, Enum):
    """Input channel an expense arrived through."""
    MANUAL = "manual"
    CSV = "csv"


class RejectionReason(str, Enum):
    """
    Why an input could not be normalized.

    Checks run in declaration order; the first failing check wins.
    """
    INVALID_AMOUNT = "invalid_amount"
    MISSING_DESCRIPTION = "missing_description"
    INVALID_DATE = "invalid_date"


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class ExpenseInput(BaseModel):
    """
    Raw expense values before normalization.

    Nothing here is trusted: amount and date may be malformed text,
    the description may be blank, and the date may be missing entirely.
    """

    amount: Any = None
    description: Optional[str] = None
    date: Any = None
    source: ExpenseSource = ExpenseSource.MANUAL


class NormalizedExpense(BaseModel):
    """
    A validated expense, ready for submission.

    CRITICAL: This is the only shape accepted by the ledger.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Trimmed, non-empty description"
    )
    timestamp_ns: int = Field(
        ...,
        description="UTC nanoseconds since the epoch"
    )
    source: ExpenseSource

    @property
    def occurred_at(self) -> datetime:
        """When the expense happened, as an aware UTC datetime."""
        return timestamp_ns_to_datetime(self.timestamp_ns)


class ExpenseRecord(NormalizedExpense):
    """
    An expense as stored by the ledger.

    The category is assigned by the ledger and treated as an opaque label.
    """

    expense_id: str = Field(
        ...,
        min_length=1,
        description="Ledger identity/ordering key"
    )
    category: str = Field(
        default="other",
        min_length=1,
        description="Category label assigned by the ledger"
    )


# =============================================================================
# INGESTION RESULTS
# =============================================================================

class NormalizationResult(BaseModel):
    """Outcome of normalizing one input: an expense or a rejection."""

    expense: Optional[NormalizedExpense] = None
    rejection: Optional[RejectionReason] = None
    message: Optional[str] = None

    @model_validator(mode='after')
    def exactly_one_outcome(self) -> 'NormalizationResult':
        if (self.expense is None) == (self.rejection is None):
            raise ValueError("Result must carry either an expense or a rejection")
        return self

    @property
    def ok(self) -> bool:
        return self.expense is not None

    @classmethod
    def accepted(cls, expense: NormalizedExpense) -> 'NormalizationResult':
        return cls(expense=expense)

    @classmethod
    def rejected(cls, reason: RejectionReason, message: str) -> 'NormalizationResult':
        return cls(rejection=reason, message=message)


class RowRejection(BaseModel):
    """A CSV row the normalizer refused."""

    line_number: int = Field(
        ...,
        ge=1,
        description="1-based line number in the uploaded file"
    )
    reason: RejectionReason
    message: str


class CsvDecodeResult(BaseModel):
    """Expenses decoded from a CSV file plus the rows that were skipped."""

    expenses: list[NormalizedExpense] = Field(default_factory=list)
    rejections: list[RowRejection] = Field(default_factory=list)
    dropped_short_rows: int = Field(
        default=0,
        ge=0,
        description="Rows with fewer than 3 fields (never shown to the user)"
    )


class SubmitFailure(BaseModel):
    """One submission the ledger refused during a bulk import."""

    index: int = Field(
        ...,
        ge=0,
        description="Position of the expense in the import sequence"
    )
    description: str
    error: str


class Notification(BaseModel):
    """A user-visible message produced by an ingestion flow."""

    level: str = Field(
        ...,
        pattern="^(success|error)$",
    )
    message: str


class ImportOutcome(BaseModel):
    """
    Result of a bulk import.

    Partial success is a normal terminal state: both counters can be
    non-zero at the same time.
    """

    success_count: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)
    is_empty: bool = Field(
        default=False,
        description="No valid expenses were found, nothing was submitted"
    )
    failures: list[SubmitFailure] = Field(default_factory=list)
    skipped_rows: list[RowRejection] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.success_count + self.error_count

    def notifications(self) -> list[Notification]:
        """Messages to show once the import has finished."""
        if self.is_empty:
            return [Notification(level="error", message="No valid expenses found in CSV")]

        messages = []
        if self.success_count > 0:
            messages.append(Notification(
                level="success",
                message=f"Successfully imported {_expenses(self.success_count)}",
            ))
        if self.error_count > 0:
            messages.append(Notification(
                level="error",
                message=f"Failed to import {_expenses(self.error_count)}",
            ))
        return messages


def _expenses(count: int) -> str:
    return f"{count} expense{'s' if count > 1 else ''}"
