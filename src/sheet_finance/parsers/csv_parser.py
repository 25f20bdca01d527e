"""CSV parser with header row and column inference.

Published sheet exports are unpredictable: title rows, notes and blank
lines may precede the real header, and column names vary by language and
by whoever built the sheet. The parser scans the first lines for a row
naming both a date and an amount column and maps the remaining roles from
that same row.
"""

from dataclasses import dataclass
from typing import Optional

from sheet_finance.models.transaction import Transaction
from sheet_finance.parsers.base import BaseParser, ParseError
from sheet_finance.processing.normalizer import ColumnMapping, Normalizer
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)

# Number of leading lines searched for a header row
HEADER_SCAN_LINES = 10

# Substrings (lowercase) that identify each column role
DATE_TOKENS = ("date", "day")
AMOUNT_TOKENS = ("amount", "cost", "price", "harga")
DESCRIPTION_TOKENS = ("desc", "name", "merchant", "keterangan")
ID_TOKENS = ("id",)
CATEGORY_TOKENS = ("category", "kategori")
TYPE_TOKENS = ("type", "tipe")
STATUS_TOKENS = ("status", "state")


@dataclass
class HeaderInference:
    """Result of header detection.

    Attributes:
        header_row: Index of the header line among the non-blank lines.
        mapping: Column index per field.
        detected: False when the positional fallback was used.
    """

    header_row: int
    mapping: ColumnMapping
    detected: bool = True


def split_fields(line: str, delimiter: str = ",") -> list[str]:
    """Split one line into fields, honouring double quotes.

    A quote character toggles the inside-quotes state, so a doubled quote
    simply toggles twice. Delimiters inside quotes are kept as text. Each
    field is trimmed and loses one leading and one trailing quote.

    Args:
        line: Raw line of text.
        delimiter: Field separator.

    Returns:
        List of field strings (at least one).
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    fields.append("".join(current).strip())

    return [_strip_quotes(f) for f in fields]


def _strip_quotes(field: str) -> str:
    if field.startswith('"'):
        field = field[1:]
    if field.endswith('"'):
        field = field[:-1]
    return field.strip()


def _find_column(cells: list[str], tokens: tuple[str, ...]) -> Optional[int]:
    """Index of the first cell containing any of the tokens."""
    for idx, cell in enumerate(cells):
        if any(token in cell for token in tokens):
            return idx
    return None


def infer_columns(lines: list[str], delimiter: str = ",") -> HeaderInference:
    """Locate the header row and map column roles.

    The first of the leading lines that has both a date-like and an
    amount-like cell is the header; later qualifying rows are ignored.
    Without such a row, the layout falls back to date, description,
    amount in columns 0-2 with row 0 as header.

    Args:
        lines: Non-blank lines of the export.
        delimiter: Field separator.

    Returns:
        HeaderInference for the grid.
    """
    for i, line in enumerate(lines[:HEADER_SCAN_LINES]):
        cells = [c.lower() for c in split_fields(line, delimiter)]

        date_col = _find_column(cells, DATE_TOKENS)
        amount_col = _find_column(cells, AMOUNT_TOKENS)
        if date_col is None or amount_col is None:
            continue

        mapping = ColumnMapping(
            date_col=date_col,
            amount_col=amount_col,
            description_col=_find_column(cells, DESCRIPTION_TOKENS),
            id_col=_find_column(cells, ID_TOKENS),
            category_col=_find_column(cells, CATEGORY_TOKENS),
            type_col=_find_column(cells, TYPE_TOKENS),
            status_col=_find_column(cells, STATUS_TOKENS),
        )
        logger.debug(f"Header found on line {i}: {mapping}")
        return HeaderInference(header_row=i, mapping=mapping)

    logger.debug("No header row found, using positional columns")
    return HeaderInference(header_row=0, mapping=ColumnMapping.positional(), detected=False)


class CSVParser(BaseParser):
    """Parser for the read-only published CSV export."""

    def __init__(self, normalizer: Optional[Normalizer] = None, delimiter: str = ","):
        """Initialize CSV parser.

        Args:
            normalizer: Row normalizer.
            delimiter: Field separator of the export.
        """
        super().__init__(normalizer)
        self.delimiter = delimiter

    def parse(self, payload: object) -> list[Transaction]:
        """Parse CSV text into transactions.

        Args:
            payload: Response body of the CSV export.

        Returns:
            Transactions in sheet order. Empty for an empty export.

        Raises:
            ParseError: If the payload is not text.
        """
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8-sig", errors="replace")
        if not isinstance(payload, str):
            raise ParseError(f"Expected CSV text, got {type(payload).__name__}", "csv")

        lines = [line for line in payload.lstrip("\ufeff").splitlines() if line.strip()]
        if not lines:
            return []

        inference = infer_columns(lines, self.delimiter)

        transactions = []
        data_rows = 0
        for i in range(inference.header_row + 1, len(lines)):
            data_rows += 1
            row = split_fields(lines[i], self.delimiter)
            txn = self.normalizer.normalize_csv_row(row, inference.mapping, i)
            if txn is not None:
                transactions.append(txn)

        self._log_result(len(transactions), data_rows)
        return transactions
