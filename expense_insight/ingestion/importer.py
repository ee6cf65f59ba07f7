"""
Bulk Importer

Submits decoded expenses to the ledger one at a time.

SEMANTICS:
- Strictly in input order, each submission awaited before the next starts
- A failed submission is counted and logged; the run always continues
- Earlier successes are never rolled back
- An empty input submits nothing and is reported as its own outcome

Sequential submission keeps the load on the ledger bounded; import time
grows linearly with the number of rows.
"""

from typing import Awaitable, Callable, Optional, Sequence
from uuid import UUID

import structlog

from expense_insight.audit import AuditLogger, create_correlation_id
from expense_insight.models.expense import (
    ImportOutcome,
    NormalizedExpense,
    RowRejection,
    SubmitFailure,
)


logger = structlog.get_logger(__name__)

SubmitCallable = Callable[[NormalizedExpense], Awaitable[None]]


class BulkImporter:
    """
    Drives a sequence of normalized expenses through a submission sink.

    The sink is any async callable that raises when the ledger does not
    record the expense.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger

    async def import_expenses(
        self,
        expenses: Sequence[NormalizedExpense],
        submit: SubmitCallable,
        correlation_id: Optional[UUID] = None,
        skipped_rows: Sequence[RowRejection] = (),
    ) -> ImportOutcome:
        """
        Submit every expense and count the results.

        Args:
            expenses: Decoded expenses, submitted in this order
            submit: Async sink; raising marks that expense as failed
            correlation_id: Ties the audit events of this run together
            skipped_rows: Rows already rejected while decoding, carried
                          into the outcome for reporting

        Returns:
            ImportOutcome with success and error counts
        """
        correlation_id = correlation_id or create_correlation_id()
        skipped = list(skipped_rows)

        if not expenses:
            logger.info("import_empty", skipped=len(skipped))
            if self._audit_logger:
                await self._audit_logger.log_import_empty(
                    skipped_count=len(skipped),
                    correlation_id=correlation_id,
                )
            return ImportOutcome(is_empty=True, skipped_rows=skipped)

        if self._audit_logger:
            await self._audit_logger.log_import_started(
                row_count=len(expenses),
                skipped_count=len(skipped),
                correlation_id=correlation_id,
            )

        success_count = 0
        failures = []

        for index, expense in enumerate(expenses):
            try:
                await submit(expense)
            except Exception as e:
                failures.append(SubmitFailure(
                    index=index,
                    description=expense.description,
                    error=str(e),
                ))
                logger.warning(
                    "import_submit_failed",
                    index=index,
                    error=str(e),
                    correlation_id=str(correlation_id),
                )
                if self._audit_logger:
                    await self._audit_logger.log_submit_failed(
                        description=expense.description,
                        error_message=str(e),
                        source=expense.source.value,
                        correlation_id=correlation_id,
                    )
                continue

            success_count += 1

        outcome = ImportOutcome(
            success_count=success_count,
            error_count=len(failures),
            failures=failures,
            skipped_rows=skipped,
        )

        logger.info(
            "import_completed",
            success_count=outcome.success_count,
            error_count=outcome.error_count,
            correlation_id=str(correlation_id),
        )
        if self._audit_logger:
            await self._audit_logger.log_import_completed(
                success_count=outcome.success_count,
                error_count=outcome.error_count,
                correlation_id=correlation_id,
            )

        return outcome


async def import_expenses(
    expenses: Sequence[NormalizedExpense],
    submit: SubmitCallable,
) -> ImportOutcome:
    """Run a bulk import without audit persistence."""
    return await BulkImporter().import_expenses(expenses, submit)
