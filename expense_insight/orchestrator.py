"""
Main Orchestrator for Expense Insight

This module ties the components together and defines the flows a
presentation layer calls:
1. Manual entry (form values -> normalize -> submit)
2. CSV import (upload -> decode -> normalize -> sequential submit)
3. Insights (ledger snapshot -> category breakdown / time series / overview)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the ledger without passing the normalizer
- A failed row never stops an import
- Insights are recomputed from a fresh snapshot on every call
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union
from uuid import UUID

import structlog

from expense_insight.audit import AuditLogger, configure_logging, create_correlation_id
from expense_insight.config import get_settings
from expense_insight.ingestion import (
    BulkImporter,
    CsvFileError,
    decode_expenses,
    normalize_manual,
    read_upload,
)
from expense_insight.ingestion.importer import SubmitCallable
from expense_insight.insights import (
    compute_category_breakdown,
    compute_overview,
    compute_time_series,
)
from expense_insight.models.expense import (
    ImportOutcome,
    NormalizationResult,
    NormalizedExpense,
)
from expense_insight.models.insight import (
    CategoryTotal,
    Granularity,
    SpendingOverview,
    TimeBucketSeries,
)
from expense_insight.services.ledger import (
    ExpenseLedgerInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseLedger,
    InMemoryExpenseLedger,
    LedgerError,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


def ledger_sink(ledger: ExpenseLedgerInterface) -> SubmitCallable:
    """Adapt a ledger to the importer's submit callable."""
    async def submit(expense: NormalizedExpense) -> None:
        await ledger.submit_expense(
            amount=expense.amount,
            description=expense.description,
            timestamp_ns=expense.timestamp_ns,
            source=expense.source,
        )
    return submit


class ExpenseEntryFlow:
    """
    Orchestrates manual expense entry.

    Flow:
    1. Normalize the form values (amount, description, date)
    2. Submit to the ledger
    3. Return the message the user should see
    """

    def __init__(
        self,
        ledger: ExpenseLedgerInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._audit_logger = audit_logger

    async def add_expense(
        self,
        amount: Any,
        description: Optional[str],
        expense_date: Any,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[NormalizationResult, str]:
        """
        Validate and record one manually entered expense.

        Returns:
            (normalization_result, user_message)

        The expense was recorded only if the message is the success message.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = normalize_manual(amount, description, expense_date)
        if not result.ok:
            if self._audit_logger:
                await self._audit_logger.log_expense_rejected(
                    reason=result.rejection.value,
                    message=result.message,
                    source="manual",
                    correlation_id=correlation_id,
                )
            return result, result.message

        expense = result.expense
        try:
            await ledger_sink(self._ledger)(expense)
        except Exception as e:
            logger.error("manual_submit_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_submit_failed(
                    description=expense.description,
                    error_message=str(e),
                    source=expense.source.value,
                    correlation_id=correlation_id,
                )
            return result, "Failed to add expense"

        if self._audit_logger:
            await self._audit_logger.log_expense_submitted(
                description=expense.description,
                amount=str(expense.amount),
                source=expense.source.value,
                correlation_id=correlation_id,
            )
        return result, "Expense added successfully!"


class CsvImportFlow:
    """
    Orchestrates bulk CSV import.

    Flow:
    1. Check the upload (type, size, encoding)
    2. Decode rows and normalize each one; rejected rows are skipped
    3. Submit the remaining expenses one by one
    4. Report "N imported, M failed"
    """

    def __init__(
        self,
        ledger: ExpenseLedgerInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._audit_logger = audit_logger
        self._importer = BulkImporter(audit_logger)

    async def import_file(
        self,
        content: bytes,
        filename: str,
        correlation_id: Optional[UUID] = None,
    ) -> ImportOutcome:
        """
        Import an uploaded CSV file.

        Raises:
            CsvFileError: The upload itself is unusable; nothing was submitted
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            text = read_upload(content, filename)
        except CsvFileError as e:
            if self._audit_logger:
                await self._audit_logger.log_upload_rejected(
                    filename=filename,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        return await self.import_text(text, correlation_id=correlation_id)

    async def import_text(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> ImportOutcome:
        """Import CSV text that has already been read."""
        correlation_id = correlation_id or create_correlation_id()

        decoded = decode_expenses(text)

        if self._audit_logger:
            for rejection in decoded.rejections:
                await self._audit_logger.log_expense_rejected(
                    reason=rejection.reason.value,
                    message=rejection.message,
                    source="csv",
                    correlation_id=correlation_id,
                    line_number=rejection.line_number,
                )

        return await self._importer.import_expenses(
            decoded.expenses,
            ledger_sink(self._ledger),
            correlation_id=correlation_id,
            skipped_rows=decoded.rejections,
        )


class InsightsFlow:
    """
    Orchestrates the spending overview.

    Every call fetches a fresh snapshot from the ledger; nothing is cached.
    """

    def __init__(
        self,
        ledger: ExpenseLedgerInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._audit_logger = audit_logger

    async def _read(self, fetch: Callable[[], Awaitable[T]], correlation_id: UUID) -> T:
        """Run one ledger read, auditing the failure before re-raising it."""
        try:
            return await fetch()
        except LedgerError as e:
            logger.error("ledger_read_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="ledger",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    async def category_breakdown(
        self,
        use_ledger_summary: bool = True,
        correlation_id: Optional[UUID] = None,
    ) -> list[CategoryTotal]:
        """
        Totals per category.

        Args:
            use_ledger_summary: Use the ledger's pre-aggregated summary
                                instead of computing from raw records

        Raises:
            LedgerError: The ledger could not be read
        """
        correlation_id = correlation_id or create_correlation_id()
        if use_ledger_summary:
            return await self._read(self._ledger.fetch_category_summary, correlation_id)
        records = await self._read(self._ledger.fetch_user_expenses, correlation_id)
        return compute_category_breakdown(records)

    async def time_series(
        self,
        granularity: Union[Granularity, str] = Granularity.MONTHLY,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TimeBucketSeries:
        """Spending over time for the selected granularity."""
        correlation_id = correlation_id or create_correlation_id()
        records = await self._read(self._ledger.fetch_user_expenses, correlation_id)
        series = compute_time_series(records, granularity, now=now)

        if self._audit_logger:
            await self._audit_logger.log_insights_computed(
                view=f"time_series:{series.granularity.value}",
                record_count=len(records),
                bucket_count=len(series.buckets),
                correlation_id=correlation_id,
            )
        return series

    async def overview(self) -> SpendingOverview:
        """Headline numbers: total spending, expense count, active categories."""
        correlation_id = create_correlation_id()
        summary = await self._read(self._ledger.fetch_category_summary, correlation_id)
        records = await self._read(self._ledger.fetch_user_expenses, correlation_id)
        return compute_overview(summary, records)


def create_app_components(
    use_storage: bool = True,
) -> tuple[ExpenseEntryFlow, CsvImportFlow, InsightsFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the Google Sheets ledger.
                    Set to False to run against an in-memory ledger.

    Returns:
        (entry_flow, import_flow, insights_flow, sheets_client)
    """
    configure_logging(get_settings().app.log_level)

    sheets_client = None
    ledger: ExpenseLedgerInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            ledger = GoogleSheetsExpenseLedger(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Ledger not configured - continue without it
            logger.warning("ledger_not_configured", error=str(e))
            sheets_client = None
            ledger = InMemoryExpenseLedger()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        ledger = InMemoryExpenseLedger()
        audit_logger = AuditLogger()  # Local-only logging

    entry_flow = ExpenseEntryFlow(ledger, audit_logger)
    import_flow = CsvImportFlow(ledger, audit_logger)
    insights_flow = InsightsFlow(ledger, audit_logger)

    return entry_flow, import_flow, insights_flow, sheets_client
