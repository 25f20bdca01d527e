"""CSV exporter for the working set."""

import csv
from pathlib import Path

from sheet_finance.models.transaction import Transaction
from sheet_finance.utils.logging_config import get_logger
from sheet_finance.utils.sanitize import sanitize_for_sheet

logger = get_logger(__name__)

EXPORT_COLUMNS = ["id", "date", "description", "amount", "category", "type"]


class CSVExporter:
    """Writes transactions as a CSV file the sheet import can read back.

    The header uses the same column names the header inference looks for,
    so an exported file can be published and synced again.
    """

    def export(self, path: Path, transactions: list[Transaction]) -> Path:
        """Export transactions to a CSV file.

        Args:
            path: Output file path. Parent directories are created.
            transactions: Records to write, in order.

        Returns:
            The written path.
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(EXPORT_COLUMNS)
            for t in transactions:
                writer.writerow(
                    [
                        t.id,
                        t.iso_date,
                        sanitize_for_sheet(t.description),
                        f"{t.amount:.2f}",
                        sanitize_for_sheet(t.category),
                        t.transaction_type.value,
                    ]
                )

        logger.info(f"Exported {len(transactions)} transactions to {path}")
        return path
