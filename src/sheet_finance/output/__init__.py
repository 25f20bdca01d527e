"""Output writers."""

from sheet_finance.output.csv_exporter import EXPORT_COLUMNS, CSVExporter

__all__ = ["CSVExporter", "EXPORT_COLUMNS"]
