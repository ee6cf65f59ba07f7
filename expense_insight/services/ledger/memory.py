"""
In-Memory Ledger

A process-local ledger used by the test suite and for running the flows
without Google credentials. Categories come from an injected labeller so
no categorization rules live in this codebase.
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional
from uuid import uuid4

from expense_insight.insights.aggregator import compute_category_breakdown
from expense_insight.models.expense import ExpenseRecord, ExpenseSource
from expense_insight.models.insight import CategoryTotal
from expense_insight.services.ledger.interface import (
    ExpenseLedgerInterface,
    SubmitError,
)


def uncategorized(description: str) -> str:
    return "other"


class InMemoryExpenseLedger(ExpenseLedgerInterface):
    """Keeps expense records in a list, in submission order."""

    def __init__(
        self,
        records: Optional[Iterable[ExpenseRecord]] = None,
        labeller: Callable[[str], str] = uncategorized,
    ):
        self._records: list[ExpenseRecord] = list(records or [])
        self._labeller = labeller

    @property
    def records(self) -> list[ExpenseRecord]:
        return list(self._records)

    async def fetch_user_expenses(self) -> list[ExpenseRecord]:
        return list(self._records)

    async def fetch_category_summary(self) -> list[CategoryTotal]:
        return compute_category_breakdown(self._records)

    async def submit_expense(
        self,
        amount: Decimal,
        description: str,
        timestamp_ns: int,
        source: ExpenseSource,
    ) -> None:
        try:
            record = ExpenseRecord(
                expense_id=str(uuid4()),
                amount=amount,
                description=description,
                timestamp_ns=timestamp_ns,
                source=source,
                category=self._labeller(description),
            )
        except ValueError as e:
            raise SubmitError(f"Ledger refused expense: {e}") from e
        self._records.append(record)
