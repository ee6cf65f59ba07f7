"""Tests for CSV decoding."""

import pytest
from decimal import Decimal

from expense_insight.ingestion.csv_decoder import (
    CsvFileError,
    decode_expenses,
    decode_rows,
    read_upload,
)
from expense_insight.models.expense import ExpenseSource, RejectionReason


class TestDecodeRows:
    """Tests for decode_rows()."""

    def test_header_is_always_discarded(self):
        """Even a valid data row in the first line is dropped."""
        text = "10.00,Coffee,2025-01-01\n20.00,Lunch,2025-01-02\n"
        assert decode_rows(text) == [["20.00", "Lunch", "2025-01-02"]]

    def test_fields_are_trimmed_and_unquoted(self):
        text = 'amount,description,date\n 25.50 , "Grocery shopping" , "2025-01-04"\n'
        assert decode_rows(text) == [["25.50", "Grocery shopping", "2025-01-04"]]

    def test_only_one_quote_is_stripped_per_side(self):
        text = 'h\n1,""Quoted"",2025-01-04\n'
        assert decode_rows(text)[0][1] == '"Quoted"'

    def test_short_rows_are_dropped(self):
        text = "amount,description,date\n5,Snack\n6,Tea,2025-01-03\n"
        assert decode_rows(text) == [["6", "Tea", "2025-01-03"]]

    def test_blank_lines_are_ignored(self):
        text = "amount,description,date\n\n   \n7,Bus,2025-01-05\n\n"
        assert decode_rows(text) == [["7", "Bus", "2025-01-05"]]

    def test_crlf_line_endings(self):
        text = "amount,description,date\r\n8,Taxi,2025-01-06\r\n"
        assert decode_rows(text) == [["8", "Taxi", "2025-01-06"]]

    def test_only_newline_ends_a_row(self):
        """Form feeds and Unicode separators stay inside the description."""
        text = "amount,description,date\n12,Cafe\u2028bar,2025-01-04\n3,Tea\x0cpot,2025-01-05\n"
        assert decode_rows(text) == [
            ["12", "Cafe\u2028bar", "2025-01-04"],
            ["3", "Tea\x0cpot", "2025-01-05"],
        ]

    def test_extra_fields_are_kept_in_raw_row(self):
        text = "h\n1,A,2025-01-01,extra\n"
        assert decode_rows(text) == [["1", "A", "2025-01-01", "extra"]]

    def test_embedded_comma_splits_field(self):
        """Known limitation: quoted commas are not honoured."""
        text = 'h\n1,"Dinner, drinks",2025-01-01\n'
        assert decode_rows(text) == [["1", "Dinner", "drinks", "2025-01-01"]]

    def test_empty_text(self):
        assert decode_rows("") == []
        assert decode_rows("amount,description,date") == []


class TestDecodeExpenses:
    """Tests for decode_expenses()."""

    def test_grocery_row(self):
        text = 'amount,description,date\n25.50,"Grocery",2025-01-04\n'
        result = decode_expenses(text)

        assert len(result.expenses) == 1
        expense = result.expenses[0]
        assert expense.amount == Decimal("25.5")
        assert expense.description == "Grocery"
        assert expense.source == ExpenseSource.CSV
        assert result.rejections == []

    def test_rejected_rows_are_reported_with_line_numbers(self):
        text = (
            "amount,description,date\n"
            "abc,Bad amount,2025-01-01\n"
            "\n"
            "5,,2025-01-01\n"
            "6,Tea,someday\n"
            "7,Good,2025-01-02\n"
            "8,short\n"
        )
        result = decode_expenses(text)

        assert [e.description for e in result.expenses] == ["Good"]
        assert [(r.line_number, r.reason) for r in result.rejections] == [
            (2, RejectionReason.INVALID_AMOUNT),
            (4, RejectionReason.MISSING_DESCRIPTION),
            (5, RejectionReason.INVALID_DATE),
        ]
        assert result.dropped_short_rows == 1

    def test_order_is_preserved(self):
        text = "h\n1,A,2025-01-03\n2,B,2025-01-01\n3,C,2025-01-02\n"
        assert [e.description for e in decode_expenses(text).expenses] == ["A", "B", "C"]


class TestReadUpload:
    """Tests for upload checks."""

    def test_reads_utf8_and_strips_bom(self):
        content = "\ufeffamount,description,date\n1,Café,2025-01-01\n".encode("utf-8")
        text = read_upload(content, "expenses.csv")
        assert text.startswith("amount")
        assert decode_rows(text) == [["1", "Café", "2025-01-01"]]

    def test_rejects_non_csv_filename(self):
        with pytest.raises(CsvFileError, match="valid CSV file"):
            read_upload(b"a,b,c", "expenses.xlsx")

    def test_filename_check_is_case_insensitive(self):
        assert read_upload(b"a,b,c", "EXPENSES.CSV") == "a,b,c"

    def test_rejects_oversize_content(self):
        with pytest.raises(CsvFileError, match="too large"):
            read_upload(b"x" * 11, "big.csv", max_bytes=10)

    def test_rejects_non_utf8(self):
        with pytest.raises(CsvFileError, match="Failed to process"):
            read_upload(b"\xff\xfe\xfa", "bad.csv")
