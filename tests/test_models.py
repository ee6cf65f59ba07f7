"""
Tests for Expense Insight

Test strategy:
1. Unit tests for individual components (models, normalizer, aggregator)
2. Integration tests for flows (with an in-memory ledger)
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from expense_insight.models.expense import (
    ExpenseRecord,
    ExpenseSource,
    ImportOutcome,
    NormalizationResult,
    NormalizedExpense,
    RejectionReason,
    SubmitFailure,
    timestamp_ns_to_datetime,
    to_timestamp_ns,
)
from expense_insight.models.insight import Granularity, TimeBucket, TimeBucketSeries
from expense_insight.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_normalized_expense_creation(self):
        """Test NormalizedExpense model creation."""
        expense = NormalizedExpense(
            amount=Decimal("25.50"),
            description="Grocery",
            timestamp_ns=1_735_948_800_000_000_000,
            source=ExpenseSource.CSV,
        )
        assert expense.amount == Decimal("25.5")
        assert expense.source == ExpenseSource.CSV

    def test_normalized_expense_strips_whitespace(self):
        """Test that whitespace is stripped from the description."""
        expense = NormalizedExpense(
            amount=Decimal("1"),
            description="  Coffee  ",
            timestamp_ns=0,
            source=ExpenseSource.MANUAL,
        )
        assert expense.description == "Coffee"

    def test_normalized_expense_rejects_zero_amount(self):
        """Test that a zero amount can never be constructed."""
        with pytest.raises(ValueError):
            NormalizedExpense(
                amount=Decimal("0"),
                description="Test",
                timestamp_ns=0,
                source=ExpenseSource.MANUAL,
            )

    def test_normalized_expense_rejects_blank_description(self):
        """Test that an all-whitespace description is rejected."""
        with pytest.raises(ValueError):
            NormalizedExpense(
                amount=Decimal("5"),
                description="   ",
                timestamp_ns=0,
                source=ExpenseSource.MANUAL,
            )

    def test_normalized_expense_is_frozen(self):
        """Test that a normalized expense cannot be mutated."""
        expense = NormalizedExpense(
            amount=Decimal("5"),
            description="Lunch",
            timestamp_ns=0,
            source=ExpenseSource.MANUAL,
        )
        with pytest.raises(ValueError):
            expense.amount = Decimal("-1")

    def test_occurred_at(self):
        """Test conversion of the nanosecond timestamp back to a datetime."""
        expense = NormalizedExpense(
            amount=Decimal("5"),
            description="Lunch",
            timestamp_ns=1_735_948_800_000_000_000,
            source=ExpenseSource.MANUAL,
        )
        assert expense.occurred_at == datetime(2025, 1, 4, tzinfo=timezone.utc)

    def test_expense_record_defaults_category(self):
        """Test that a record without a label falls back to 'other'."""
        record = ExpenseRecord(
            expense_id="abc",
            amount=Decimal("12"),
            description="Bus",
            timestamp_ns=0,
            source=ExpenseSource.MANUAL,
        )
        assert record.category == "other"


class TestTimestamps:
    """Tests for timestamp helpers."""

    def test_to_timestamp_ns_is_millisecond_aligned(self):
        moment = datetime(2025, 1, 4, 10, 30, 15, 123456, tzinfo=timezone.utc)
        ns = to_timestamp_ns(moment)
        assert ns % 1_000_000 == 0
        assert timestamp_ns_to_datetime(ns) == moment.replace(microsecond=123000)

    def test_to_timestamp_ns_requires_aware_datetime(self):
        with pytest.raises(ValueError):
            to_timestamp_ns(datetime(2025, 1, 4))

    def test_epoch(self):
        assert to_timestamp_ns(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0


class TestNormalizationResult:
    """Tests for the normalize() result type."""

    def test_rejected_result(self):
        result = NormalizationResult.rejected(
            RejectionReason.INVALID_AMOUNT, "Please enter a valid amount"
        )
        assert result.ok is False
        assert result.expense is None

    def test_result_requires_exactly_one_outcome(self):
        with pytest.raises(ValueError):
            NormalizationResult()


class TestImportOutcome:
    """Tests for import result reporting."""

    def test_partial_success_shows_both_messages(self):
        """Partial success is a normal terminal state with two messages."""
        outcome = ImportOutcome(
            success_count=4,
            error_count=1,
            failures=[SubmitFailure(index=2, description="Taxi", error="timeout")],
        )
        notes = outcome.notifications()
        assert [n.level for n in notes] == ["success", "error"]
        assert notes[0].message == "Successfully imported 4 expenses"
        assert notes[1].message == "Failed to import 1 expense"
        assert outcome.attempted == 5

    def test_success_only(self):
        notes = ImportOutcome(success_count=1).notifications()
        assert len(notes) == 1
        assert notes[0].message == "Successfully imported 1 expense"

    def test_empty_import_message(self):
        notes = ImportOutcome(is_empty=True).notifications()
        assert len(notes) == 1
        assert notes[0].level == "error"
        assert notes[0].message == "No valid expenses found in CSV"


class TestTimeBucketSeries:

    def test_pairs_and_labels(self):
        series = TimeBucketSeries(
            granularity=Granularity.DAILY,
            reference_time=datetime(2025, 1, 4, tzinfo=timezone.utc),
            buckets=[TimeBucket(label="Jan 3", total_amount=2.5)],
        )
        assert series.labels == ["Jan 3"]
        assert series.as_pairs() == [("Jan 3", 2.5)]


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_SUBMITTED,
            description="Expense submitted",
        )
        assert event.event_type == AuditEventType.EXPENSE_SUBMITTED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            description="Import finished",
            details={"success_count": 4, "error_count": 1},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "import_completed"
        assert log_dict["details"]["success_count"] == 4

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            description="Expense rejected",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "expense_rejected"  # event_type
        assert row[10] == "True"  # is_user_action

    def test_audit_event_builder_import_completed(self):
        """Test AuditEventBuilder.import_completed."""
        correlation_id = uuid4()

        event = AuditEventBuilder.import_completed(
            success_count=4,
            error_count=1,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.IMPORT_COMPLETED
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == str(correlation_id)
        assert event.correlation_id == correlation_id

    def test_audit_event_builder_expense_rejected(self):
        """Test AuditEventBuilder.expense_rejected with a CSV line number."""
        event = AuditEventBuilder.expense_rejected(
            reason="invalid_date",
            message="Please enter a valid date",
            source="csv",
            correlation_id=uuid4(),
            line_number=7,
        )

        assert event.event_type == AuditEventType.EXPENSE_REJECTED
        assert event.details["line_number"] == 7
        assert event.is_user_action is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
