"""Data models for transactions and derived summaries."""

from sheet_finance.models.summary import (
    CategorySlice,
    FilterMode,
    SpendingSummary,
    TimeFilter,
    TrendPoint,
)
from sheet_finance.models.transaction import (
    DEFAULT_CATEGORY,
    UNCATEGORIZED,
    Transaction,
    TransactionType,
)

__all__ = [
    "Transaction",
    "TransactionType",
    "UNCATEGORIZED",
    "DEFAULT_CATEGORY",
    "SpendingSummary",
    "CategorySlice",
    "TrendPoint",
    "FilterMode",
    "TimeFilter",
]
