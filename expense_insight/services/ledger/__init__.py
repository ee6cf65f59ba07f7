"""
Ledger Services Package

Provides the abstract ledger interface and its implementations.
Google Sheets is the production backend; the in-memory ledger serves tests.
"""

from expense_insight.services.ledger.interface import (
    AuditStorageInterface,
    ExpenseLedgerInterface,
    LedgerConnectionError,
    LedgerError,
    SubmitError,
)
from expense_insight.services.ledger.memory import InMemoryExpenseLedger
from expense_insight.services.ledger.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseLedger,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseLedgerInterface",
    # Exceptions
    "LedgerConnectionError",
    "LedgerError",
    "SubmitError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseLedger",
    "InMemoryExpenseLedger",
]
