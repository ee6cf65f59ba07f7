"""
CSV Decoder

Best-effort decoder for the bulk upload format:

    amount, description, date
    25.50, "Grocery shopping", 2025-01-04

The first non-blank line is a header and is always discarded, whatever it
contains. Each field is trimmed and loses one surrounding double quote.

KNOWN LIMITATION: This is not an RFC 4180 parser. Commas inside quoted
fields, embedded newlines and escaped quotes are not supported; such rows
split into the wrong fields and are then rejected by the normalizer.
"""

import re
from typing import Optional

import structlog

from expense_insight.config import get_settings
from expense_insight.ingestion.normalizer import normalize
from expense_insight.models.expense import (
    CsvDecodeResult,
    ExpenseInput,
    ExpenseSource,
    RowRejection,
)


logger = structlog.get_logger(__name__)

RawRow = list[str]

MIN_FIELDS = 3
AMOUNT_FIELD, DESCRIPTION_FIELD, DATE_FIELD = 0, 1, 2

_EDGE_QUOTE_RE = re.compile(r'^"|"$')


class CsvFileError(Exception):
    """The uploaded file cannot be read as an expense CSV."""
    pass


def read_upload(
    content: bytes,
    filename: str,
    max_bytes: Optional[int] = None,
) -> str:
    """
    Check an uploaded file and return its text.

    Raises:
        CsvFileError: wrong file type, too large, or not UTF-8
    """
    if not filename.lower().endswith(".csv"):
        raise CsvFileError("Please select a valid CSV file")

    limit = max_bytes if max_bytes is not None else get_settings().app.max_upload_size_bytes
    if len(content) > limit:
        raise CsvFileError(
            f"CSV file is too large (limit is {limit / (1024 * 1024):g} MB)"
        )

    try:
        # utf-8-sig drops a leading byte order mark
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise CsvFileError("Failed to process CSV file")


def _split_fields(line: str) -> RawRow:
    return [_EDGE_QUOTE_RE.sub("", value.strip()) for value in line.split(",")]


def _numbered_rows(text: str) -> tuple[list[tuple[int, RawRow]], int]:
    """Data rows with their 1-based line numbers, plus the short-row count."""
    lines = [
        (number, line.strip())
        for number, line in enumerate(text.split("\n"), start=1)
        if line.strip()
    ]

    rows = []
    dropped = 0
    for number, line in lines[1:]:  # header
        fields = _split_fields(line)
        if len(fields) < MIN_FIELDS:
            dropped += 1
            continue
        rows.append((number, fields))
    return rows, dropped


def decode_rows(text: str) -> list[RawRow]:
    """Split CSV text into trimmed, unquoted field lists (header dropped)."""
    rows, _ = _numbered_rows(text)
    return [fields for _, fields in rows]


def decode_expenses(text: str) -> CsvDecodeResult:
    """
    Decode CSV text into normalized expenses.

    Rows the normalizer rejects are left out of `expenses` and reported
    in `rejections`. Short rows are only counted.
    """
    rows, dropped = _numbered_rows(text)
    result = CsvDecodeResult(dropped_short_rows=dropped)

    for number, fields in rows:
        outcome = normalize(ExpenseInput(
            amount=fields[AMOUNT_FIELD],
            description=fields[DESCRIPTION_FIELD],
            date=fields[DATE_FIELD],
            source=ExpenseSource.CSV,
        ))
        if outcome.ok:
            result.expenses.append(outcome.expense)
        else:
            result.rejections.append(RowRejection(
                line_number=number,
                reason=outcome.rejection,
                message=outcome.message,
            ))

    logger.debug(
        "csv_decoded",
        accepted=len(result.expenses),
        rejected=len(result.rejections),
        dropped_short_rows=dropped,
    )
    return result
