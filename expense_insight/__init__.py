"""
Expense Insight - Source Package

Records expenses from a manual form or a bulk CSV upload and derives
spending insight from the ledger: totals by category and totals over time.

DESIGN PRINCIPLES:
1. Nothing reaches the ledger without normalization
2. Bad rows are skipped and counted, never silently repaired
3. One failed submission never aborts an import
4. Insights are pure functions of the snapshot they are given
5. The ledger is swappable
"""

from expense_insight.ingestion import (
    decode_expenses,
    decode_rows,
    import_expenses,
    normalize,
)
from expense_insight.insights import (
    compute_category_breakdown,
    compute_time_series,
)

__version__ = "1.0.0"
__author__ = "Expense Insight Team"

__all__ = [
    "compute_category_breakdown",
    "compute_time_series",
    "decode_expenses",
    "decode_rows",
    "import_expenses",
    "normalize",
]
