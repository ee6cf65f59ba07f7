"""
Ledger Interface

The ledger persists expenses and assigns their category labels. Ingestion
only submits, insights only read; both talk to this interface, never to a
concrete backend.

Category assignment belongs to the ledger. Labels are opaque strings here.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from expense_insight.models.audit import AuditEvent
from expense_insight.models.expense import ExpenseRecord, ExpenseSource
from expense_insight.models.insight import CategoryTotal


class LedgerError(Exception):
    """The ledger could not be read or written."""
    pass


class SubmitError(LedgerError):
    """The ledger did not record a submitted expense."""
    pass


class LedgerConnectionError(LedgerError):
    """The ledger backend is unreachable or misconfigured."""
    pass


class ExpenseLedgerInterface(ABC):
    """
    Remote expense ledger for the current user.

    Each call may block or fail on its own; callers decide what a failure
    means for their flow.
    """

    @abstractmethod
    async def fetch_user_expenses(self) -> list[ExpenseRecord]:
        """
        Every recorded expense, in no guaranteed order.

        Raises:
            LedgerError: If the ledger cannot be read
        """
        pass

    @abstractmethod
    async def fetch_category_summary(self) -> list[CategoryTotal]:
        """Totals per category as the ledger reports them (zero totals allowed)."""
        pass

    @abstractmethod
    async def submit_expense(
        self,
        amount: Decimal,
        description: str,
        timestamp_ns: int,
        source: ExpenseSource,
    ) -> None:
        """
        Record one normalized expense.

        Raises:
            SubmitError: If the ledger refuses the expense or the call fails
        """
        pass


class AuditStorageInterface(ABC):
    """Append-only store for audit events."""

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Persist one event; False when the write did not happen."""
        pass
