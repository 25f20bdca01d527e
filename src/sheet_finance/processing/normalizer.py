"""Record normalizer: raw sheet rows to canonical transactions.

Two inbound shapes are supported. Rows split out of a CSV export are
matched against a ColumnMapping produced by header inference; objects
decoded from the script endpoint's JSON carry named fields. Both paths
drop soft-deleted rows and rows without a usable date, but they differ on
amounts: a CSV amount that does not parse drops the row, while a JSON
amount that does not parse becomes zero.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sheet_finance.models.transaction import (
    UNCATEGORIZED,
    Transaction,
    TransactionType,
    random_token,
)
from sheet_finance.utils.date_utils import parse_date
from sheet_finance.utils.decimal_utils import parse_amount, safe_decimal
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)

DELETED_STATUS = "deleted"

# Tokens in a type column that mark income (English, Indonesian)
INCOME_TOKENS = ("income", "pemasukan")

CSV_DESCRIPTION_FALLBACK = "Unspecified"
JSON_DESCRIPTION_FALLBACK = "Unknown"


@dataclass
class ColumnMapping:
    """Column index of each field in a CSV row. None means absent."""

    date_col: int
    amount_col: int
    description_col: Optional[int] = None
    id_col: Optional[int] = None
    category_col: Optional[int] = None
    type_col: Optional[int] = None
    status_col: Optional[int] = None

    @classmethod
    def positional(cls) -> "ColumnMapping":
        """Fallback layout: date, description, amount."""
        return cls(date_col=0, description_col=1, amount_col=2)


def is_deleted(status: object) -> bool:
    """Whether a status value marks the row as soft-deleted."""
    return status is not None and str(status).strip().lower() == DELETED_STATUS


def classify_type_column(value: str) -> TransactionType:
    """Classify a free-text type cell from a CSV export.

    Args:
        value: Cell content, e.g. "Income", "Pemasukan", "expense".

    Returns:
        INCOME when the cell contains an income token, else EXPENSE.
    """
    lowered = value.lower()
    if any(token in lowered for token in INCOME_TOKENS):
        return TransactionType.INCOME
    return TransactionType.EXPENSE


class Normalizer:
    """Turns raw rows into canonical Transaction records.

    Every method returns None for a row that must be excluded; row-level
    problems are logged at debug level and never raised.
    """

    def __init__(self, today: Callable[[], date] = date.today):
        """Initialize normalizer.

        Args:
            today: Clock used for JSON rows that carry no date.
        """
        self.today = today

    def normalize_csv_row(
        self,
        row: list[str],
        mapping: ColumnMapping,
        row_number: int,
    ) -> Optional[Transaction]:
        """Normalize one field-split CSV row.

        Args:
            row: Fields of the row, already trimmed and unquoted.
            mapping: Column layout from header inference.
            row_number: Line index of the row, used for generated ids.

        Returns:
            Transaction, or None if the row is deleted or unusable.
        """
        if len(row) < 2:
            logger.debug(f"Skipping row {row_number}: fewer than 2 fields")
            return None

        status = self._cell(row, mapping.status_col)
        if is_deleted(status):
            logger.debug(f"Skipping row {row_number}: marked deleted")
            return None

        amount_str = self._cell(row, mapping.amount_col) or "0"
        try:
            amount, _ = parse_amount(amount_str)
        except ValueError:
            logger.debug(f"Skipping row {row_number}: unparseable amount '{amount_str}'")
            return None

        date_str = self._cell(row, mapping.date_col)
        try:
            parsed_date = parse_date(date_str)
        except ValueError:
            logger.debug(f"Skipping row {row_number}: unparseable date '{date_str}'")
            return None

        type_str = self._cell(row, mapping.type_col)
        transaction_type = (
            classify_type_column(type_str) if type_str else TransactionType.EXPENSE
        )

        return Transaction(
            id=self._cell(row, mapping.id_col) or f"sheet-{row_number}-{random_token(5)}",
            date=parsed_date,
            description=self._resolve_description(row, mapping),
            amount=amount,
            category=self._cell(row, mapping.category_col) or UNCATEGORIZED,
            transaction_type=transaction_type,
        )

    def normalize_json_row(self, raw: object) -> Optional[Transaction]:
        """Normalize one object from the script endpoint's JSON array.

        Args:
            raw: Decoded JSON value; anything but an object is skipped.

        Returns:
            Transaction, or None if the row is deleted or unusable.
        """
        if not isinstance(raw, dict):
            logger.debug(f"Skipping non-object JSON row: {raw!r}")
            return None

        if is_deleted(raw.get("status")):
            return None

        raw_date = raw.get("date")
        if raw_date in (None, ""):
            parsed_date = self.today()
        else:
            try:
                parsed_date = parse_date(str(raw_date))
            except ValueError:
                logger.debug(f"Skipping JSON row {raw.get('id')!r}: unparseable date '{raw_date}'")
                return None

        raw_id = raw.get("id")
        raw_type = raw.get("type")
        transaction_type = (
            TransactionType.INCOME
            if raw_type is not None and str(raw_type).strip().lower() == "income"
            else TransactionType.EXPENSE
        )

        return Transaction(
            id=str(raw_id) if raw_id not in (None, "") else f"gen-{random_token(11)}",
            date=parsed_date,
            description=self._text(raw.get("description")) or JSON_DESCRIPTION_FALLBACK,
            amount=abs(safe_decimal(raw.get("amount"))),
            category=self._text(raw.get("category")) or UNCATEGORIZED,
            transaction_type=transaction_type,
        )

    def _resolve_description(self, row: list[str], mapping: ColumnMapping) -> str:
        """Pick the description cell, falling back to the first spare column."""
        desc_col = mapping.description_col
        if desc_col is None or desc_col >= len(row):
            desc_col = next(
                (
                    i for i in range(len(row))
                    if i not in (mapping.date_col, mapping.amount_col)
                ),
                None,
            )
        return self._cell(row, desc_col) or CSV_DESCRIPTION_FALLBACK

    @staticmethod
    def _cell(row: list[str], idx: Optional[int]) -> str:
        if idx is None or idx < 0 or idx >= len(row):
            return ""
        return row[idx].strip()

    @staticmethod
    def _text(value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()
