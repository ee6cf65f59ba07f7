"""
Record Normalizer

Turns raw manual-entry or CSV values into a NormalizedExpense, or says
why it cannot.

Checks run in a fixed order and the first failure wins:
1. amount - finite decimal, strictly positive
2. description - non-empty after trimming
3. date - any text dateutil can read as a calendar date

IMPORTANT: Normalization never repairs input. A rejected value is reported
back to the user, not guessed at. No I/O happens here.
"""

import math
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from expense_insight.models.expense import (
    ExpenseInput,
    ExpenseSource,
    NormalizationResult,
    NormalizedExpense,
    RejectionReason,
    to_timestamp_ns,
)


REJECTION_MESSAGES = {
    RejectionReason.INVALID_AMOUNT: "Please enter a valid amount",
    RejectionReason.MISSING_DESCRIPTION: "Please enter a description",
    RejectionReason.INVALID_DATE: "Please enter a valid date",
}


def parse_amount(value: Any) -> Decimal:
    """
    Parse a user-supplied amount.

    Accepts numbers and decimal text with an optional leading "$".
    Raises ValueError unless the result is finite and greater than zero.
    """
    if value is None or isinstance(value, bool):
        raise ValueError("Missing amount")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("$"):
            text = text[1:].strip()
        if not text:
            raise ValueError("Missing amount")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")
    else:
        raise ValueError(f"Unsupported amount type: {type(value).__name__}")

    # Totals are summed as floats, so the amount must stay finite there too
    if not amount.is_finite() or not math.isfinite(float(amount)):
        raise ValueError(f"Amount is not a finite number: {value!r}")
    if amount <= 0:
        raise ValueError(f"Amount must be greater than zero: {value!r}")
    return amount


def _parse_date_text(text: str) -> datetime:
    iso_text = text[:-1] + "+00:00" if text[-1] in "Zz" else text
    try:
        return datetime.fromisoformat(iso_text)
    except ValueError:
        pass
    # Missing parts default to January 1 of the current year at midnight
    default = datetime(date.today().year, 1, 1)
    try:
        return date_parser.parse(text, default=default)
    except (ValueError, OverflowError):
        raise ValueError(f"Invalid date: {text!r}")


def parse_date(value: Any) -> datetime:
    """
    Parse a user-supplied date into an aware UTC datetime.

    A bare date means midnight UTC. Naive date-times are read as UTC.
    Raises ValueError for missing or unparseable input.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        moment = _parse_date_text(value.strip())
    else:
        raise ValueError("Missing date")

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    try:
        return moment.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError(f"Date out of range: {value!r}")


def _reject(reason: RejectionReason) -> NormalizationResult:
    return NormalizationResult.rejected(reason, REJECTION_MESSAGES[reason])


def normalize(expense_input: ExpenseInput) -> NormalizationResult:
    """Validate one raw expense and convert it to the canonical shape."""
    try:
        amount = parse_amount(expense_input.amount)
    except ValueError:
        return _reject(RejectionReason.INVALID_AMOUNT)

    description = (expense_input.description or "").strip()
    if not description:
        return _reject(RejectionReason.MISSING_DESCRIPTION)

    try:
        moment = parse_date(expense_input.date)
    except ValueError:
        return _reject(RejectionReason.INVALID_DATE)

    return NormalizationResult.accepted(NormalizedExpense(
        amount=amount,
        description=description,
        timestamp_ns=to_timestamp_ns(moment),
        source=expense_input.source,
    ))


def normalize_manual(
    amount: Any,
    description: Optional[str],
    expense_date: Any,
) -> NormalizationResult:
    """Normalize values typed into the manual entry form."""
    return normalize(ExpenseInput(
        amount=amount,
        description=description,
        date=expense_date,
        source=ExpenseSource.MANUAL,
    ))
