"""Services package."""

from expense_insight.services.ledger import (
    AuditStorageInterface,
    ExpenseLedgerInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseLedger,
    InMemoryExpenseLedger,
    LedgerConnectionError,
    LedgerError,
    SubmitError,
)

__all__ = [
    "AuditStorageInterface",
    "ExpenseLedgerInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseLedger",
    "InMemoryExpenseLedger",
    "LedgerConnectionError",
    "LedgerError",
    "SubmitError",
]
