"""Expense ingestion: normalization, CSV decoding and bulk import."""

from expense_insight.ingestion.normalizer import (
    normalize,
    normalize_manual,
    parse_amount,
    parse_date,
)
from expense_insight.ingestion.csv_decoder import (
    CsvFileError,
    decode_expenses,
    decode_rows,
    read_upload,
)
from expense_insight.ingestion.importer import BulkImporter, import_expenses

__all__ = [
    "BulkImporter",
    "CsvFileError",
    "decode_expenses",
    "decode_rows",
    "import_expenses",
    "normalize",
    "normalize_manual",
    "parse_amount",
    "parse_date",
    "read_upload",
]
