"""Transaction processing pipeline components."""

from sheet_finance.processing.normalizer import (
    ColumnMapping,
    Normalizer,
)
from sheet_finance.processing.reconciler import (
    Reconciler,
    sort_newest_first,
)
from sheet_finance.processing.report_generator import (
    available_years,
    filter_transactions,
    generate_summary,
)

__all__ = [
    "ColumnMapping",
    "Normalizer",
    "Reconciler",
    "sort_newest_first",
    "available_years",
    "filter_transactions",
    "generate_summary",
]
