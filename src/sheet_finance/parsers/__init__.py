"""Parsers for sheet payloads (CSV export and script JSON)."""

from sheet_finance.parsers.base import BaseParser, ParseError
from sheet_finance.parsers.csv_parser import (
    CSVParser,
    HeaderInference,
    infer_columns,
    split_fields,
)
from sheet_finance.parsers.json_parser import JSONRowParser

__all__ = [
    "BaseParser",
    "ParseError",
    "CSVParser",
    "JSONRowParser",
    "HeaderInference",
    "infer_columns",
    "split_fields",
]
