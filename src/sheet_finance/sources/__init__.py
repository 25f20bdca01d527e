"""Spreadsheet source of record."""

from sheet_finance.sources.sheet_client import (
    ConnectionMode,
    SheetClient,
    ShapeError,
    SourceError,
    SyncError,
    TransportError,
    WriteError,
)

__all__ = [
    "ConnectionMode",
    "SheetClient",
    "SyncError",
    "SourceError",
    "TransportError",
    "ShapeError",
    "WriteError",
]
