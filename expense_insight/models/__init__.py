"""
Data Models Package

This package contains all Pydantic models used in Expense Insight.
All data flowing through the system must conform to these schemas.
"""

from expense_insight.models.expense import (
    CsvDecodeResult,
    ExpenseInput,
    ExpenseRecord,
    ExpenseSource,
    ImportOutcome,
    NormalizationResult,
    NormalizedExpense,
    Notification,
    RejectionReason,
    RowRejection,
    SubmitFailure,
    timestamp_ns_to_datetime,
    to_timestamp_ns,
)
from expense_insight.models.insight import (
    CategoryTotal,
    Granularity,
    SpendingOverview,
    TimeBucket,
    TimeBucketSeries,
)
from expense_insight.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CsvDecodeResult",
    "ExpenseInput",
    "ExpenseRecord",
    "ExpenseSource",
    "ImportOutcome",
    "NormalizationResult",
    "NormalizedExpense",
    "Notification",
    "RejectionReason",
    "RowRejection",
    "SubmitFailure",
    "timestamp_ns_to_datetime",
    "to_timestamp_ns",
    # Insight models
    "CategoryTotal",
    "Granularity",
    "SpendingOverview",
    "TimeBucket",
    "TimeBucketSeries",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
