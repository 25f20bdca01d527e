"""HTTP client for the spreadsheet source of record.

Two kinds of URL are supported. A "Publish to Web" CSV export is read-only.
A deployed script endpoint (its URL contains ``/exec``) returns the rows as
a JSON array on GET and accepts add/delete actions on POST.
"""

import json
from enum import Enum
from typing import Any, Optional

import requests

from sheet_finance.models.transaction import Transaction
from sheet_finance.utils.logging_config import get_logger
from sheet_finance.utils.sanitize import sanitize_for_sheet

logger = get_logger(__name__)

SCRIPT_URL_MARKER = "/exec"
PUBLISHED_SHEET_MARKER = "google.com/spreadsheets"
CSV_OUTPUT_MARKER = "output=csv"

# Row fields that are free text and go through formula sanitizing
TEXT_FIELDS = ("description", "category")


class SyncError(Exception):
    """Base exception for spreadsheet source failures."""

    pass


class SourceError(SyncError):
    """Raised when the source URL cannot be used for the requested mode."""

    pass


class TransportError(SyncError):
    """Raised when the request fails or returns a non-success status."""

    pass


class ShapeError(SyncError):
    """Raised when the response body does not have the expected shape."""

    pass


class WriteError(SyncError):
    """Raised when the endpoint does not acknowledge a write."""

    pass


class ConnectionMode(Enum):
    """How the dashboard talks to the spreadsheet."""

    READ_ONLY = "read_only"
    READ_WRITE = "read_write"

    @classmethod
    def from_url(cls, url: str) -> "ConnectionMode":
        """Script endpoints are read-write, everything else read-only."""
        return cls.READ_WRITE if SCRIPT_URL_MARKER in url else cls.READ_ONLY


def is_published_csv_url(url: str) -> bool:
    return PUBLISHED_SHEET_MARKER in url and CSV_OUTPUT_MARKER in url


class SheetClient:
    """Reads and writes transactions at one spreadsheet URL."""

    def __init__(self, url: str, session: Optional[requests.Session] = None):
        """Initialize client.

        Args:
            url: CSV export or script endpoint URL.
            session: HTTP session (a new one when omitted).
        """
        self.url = url.strip()
        self.mode = ConnectionMode.from_url(self.url)
        self.session = session or requests.Session()

    @property
    def is_read_write(self) -> bool:
        return self.mode is ConnectionMode.READ_WRITE

    def _get(self, failure_message: str) -> requests.Response:
        try:
            response = self.session.get(self.url)
        except requests.RequestException as e:
            raise TransportError(f"{failure_message} {e}") from e
        if not response.ok:
            raise TransportError(f"{failure_message} (HTTP {response.status_code})")
        return response

    def fetch_csv(self) -> str:
        """Download the published CSV export.

        Returns:
            Response body as text.

        Raises:
            SourceError: If the URL is not a published CSV export.
            TransportError: If the download fails.
        """
        if not is_published_csv_url(self.url):
            raise SourceError("Invalid URL for Read-Only mode. Use 'Publish to Web' CSV.")

        logger.info("Fetching published CSV export")
        response = self._get("Failed to fetch CSV.")
        response.encoding = response.encoding or "utf-8"
        return response.text

    def fetch_rows(self) -> list[Any]:
        """Download all rows from the script endpoint.

        Returns:
            Raw row objects, soft-deleted rows included.

        Raises:
            TransportError: If the request fails.
            ShapeError: If the body is not a JSON array.
        """
        logger.info("Fetching rows from script endpoint")
        response = self._get("Failed to fetch from script.")
        try:
            data = response.json()
        except ValueError as e:
            raise ShapeError("Script returned invalid data format.") from e
        if not isinstance(data, list):
            raise ShapeError("Script returned invalid data format.")
        return data

    def _post(self, payload: dict[str, Any], failure_message: str) -> None:
        if not self.is_read_write:
            raise SourceError("Writes need a script endpoint URL.")

        try:
            # text/plain keeps the request "simple" for the script host
            response = self.session.post(
                self.url,
                data=json.dumps(payload),
                headers={"Content-Type": "text/plain"},
            )
        except requests.RequestException as e:
            raise TransportError(f"{failure_message}: {e}") from e

        if not response.ok:
            raise TransportError(f"{failure_message} (HTTP {response.status_code})")

        try:
            result = response.json()
        except ValueError as e:
            raise WriteError(failure_message) from e

        if not isinstance(result, dict) or result.get("status") != "success":
            message = result.get("message") if isinstance(result, dict) else None
            raise WriteError(f"{failure_message}: {message}" if message else failure_message)

    def add(self, transaction: Transaction) -> None:
        """Append a record to the sheet.

        Raises:
            SyncError: If the write is not acknowledged.
        """
        row = transaction.to_row()
        for key in TEXT_FIELDS:
            row[key] = sanitize_for_sheet(row[key])
        row["status"] = "Active"

        logger.info(f"Adding transaction {transaction.id} to sheet")
        self._post({"action": "add", "transaction": row}, "Save failed on sheet")

    def delete(self, transaction_id: str) -> None:
        """Flag a record as deleted in the sheet.

        Raises:
            SyncError: If the write is not acknowledged.
        """
        logger.info(f"Deleting transaction {transaction_id} from sheet")
        self._post({"action": "delete", "id": transaction_id}, "Delete failed on sheet")
