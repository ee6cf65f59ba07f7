"""
Google Sheets Ledger

One worksheet holds the expenses, one row each; a second holds the audit
trail. Users categorize rows directly in the sheet, so the category column
is written blank and read back as "other" until someone fills it in.

TRADEOFFS:
- Fine for one person's expenses, not for high volume
- Every read fetches the whole worksheet; aggregation happens in Python
- Appends are not transactional, which is why submits are never retried
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_insight.config import get_settings
from expense_insight.insights.aggregator import compute_category_breakdown
from expense_insight.models.audit import SHEET_COLUMNS, AuditEvent
from expense_insight.models.expense import ExpenseRecord, ExpenseSource
from expense_insight.models.insight import CategoryTotal
from expense_insight.services.ledger.interface import (
    AuditStorageInterface,
    ExpenseLedgerInterface,
    LedgerConnectionError,
    LedgerError,
    SubmitError,
)


logger = structlog.get_logger(__name__)

EXPENSE_COLUMNS = [
    "expense_id",
    "created_at",
    "amount",
    "description",
    "timestamp_ns",
    "source",
    "category",
]
AUDIT_COLUMNS = list(SHEET_COLUMNS)

DEFAULT_CATEGORY = "other"

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# Transient API errors usually clear within a few seconds
read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Opens the configured spreadsheet and hands out its worksheets.

    Worksheets that do not exist yet are created with a header row.
    """

    def __init__(self):
        self._settings = get_settings().google_sheets
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    @read_retry
    def open(self) -> gspread.Spreadsheet:
        if self._spreadsheet is not None:
            return self._spreadsheet

        path = self._settings.credentials_path
        try:
            credentials = Credentials.from_service_account_file(path, scopes=SCOPES)
            client = gspread.authorize(credentials)
            self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
        except FileNotFoundError:
            raise LedgerConnectionError(f"Google credentials file not found: {path}")
        except gspread.SpreadsheetNotFound:
            raise LedgerConnectionError(
                f"Spreadsheet not found: {self._settings.spreadsheet_id}"
            )
        except Exception as e:
            raise LedgerConnectionError(f"Failed to connect to Google Sheets: {e}")
        return self._spreadsheet

    def _worksheet(self, title: str, header: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.open()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(header))
            sheet.append_row(header)
            return sheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=1000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


def _expense_row(
    amount: Decimal,
    description: str,
    timestamp_ns: int,
    source: ExpenseSource,
) -> list[str]:
    # Numbers are stored as text so Sheets never reformats them
    return [
        str(uuid4()),
        datetime.now(timezone.utc).isoformat(),
        str(amount),
        description,
        str(timestamp_ns),
        source.value,
        "",
    ]


def _record_from_row(row: list[str]) -> ExpenseRecord:
    cells = dict(zip(EXPENSE_COLUMNS, row))
    return ExpenseRecord(
        expense_id=cells["expense_id"],
        amount=Decimal(cells.get("amount", "")),
        description=cells.get("description", ""),
        timestamp_ns=int(cells.get("timestamp_ns", "")),
        source=ExpenseSource(cells.get("source") or ExpenseSource.MANUAL.value),
        category=(cells.get("category") or "").strip() or DEFAULT_CATEGORY,
    )


class GoogleSheetsExpenseLedger(ExpenseLedgerInterface):
    """Expense ledger backed by the Expenses worksheet."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @read_retry
    async def fetch_user_expenses(self) -> list[ExpenseRecord]:
        """All expense rows; malformed rows are logged and skipped."""
        try:
            rows = self._client.get_expenses_sheet().get_all_values()
        except LedgerConnectionError:
            raise
        except Exception as e:
            raise LedgerError(f"Failed to read expenses: {e}")

        records = []
        for row_number, row in enumerate(rows[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                records.append(_record_from_row(row))
            except (ArithmeticError, ValueError) as e:
                logger.warning("ledger_row_skipped", row_number=row_number, error=str(e))
        return records

    async def fetch_category_summary(self) -> list[CategoryTotal]:
        return compute_category_breakdown(await self.fetch_user_expenses())

    async def submit_expense(
        self,
        amount: Decimal,
        description: str,
        timestamp_ns: int,
        source: ExpenseSource,
    ) -> None:
        """Append one row. A failed append is reported, not retried."""
        try:
            sheet = self._client.get_expenses_sheet()
            sheet.append_row(
                _expense_row(amount, description, timestamp_ns, source),
                value_input_option="RAW",
            )
        except Exception as e:
            raise SubmitError(f"Failed to save expense: {e}") from e


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """Audit trail backed by the AuditLog worksheet."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
        except Exception as e:
            logger.warning("audit_append_failed", event_id=str(event.event_id), error=str(e))
            return False
        return True
