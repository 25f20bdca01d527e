"""Tests for the spreadsheet HTTP client."""

import json
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from sheet_finance.models.transaction import Transaction, TransactionType
from sheet_finance.sources.sheet_client import (
    ConnectionMode,
    ShapeError,
    SheetClient,
    SourceError,
    TransportError,
    WriteError,
)

CSV_URL = "https://docs.google.com/spreadsheets/d/e/abc/pub?output=csv"
SCRIPT_URL = "https://script.google.com/macros/s/xyz/exec"


def make_response(status_code: int = 200, text: str = "", json_body: object = None) -> MagicMock:
    """Create a fake requests response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.encoding = "utf-8"
    if json_body is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_body
    return response


def make_session(response: MagicMock) -> MagicMock:
    """Create a fake requests session returning one response."""
    session = MagicMock()
    session.get.return_value = response
    session.post.return_value = response
    return session


class TestConnectionMode:
    """Tests for ConnectionMode.from_url."""

    def test_script_url_is_read_write(self) -> None:
        """Test /exec URLs select two-way mode."""
        assert ConnectionMode.from_url(SCRIPT_URL) is ConnectionMode.READ_WRITE

    def test_other_urls_are_read_only(self) -> None:
        """Test any other URL is read-only."""
        assert ConnectionMode.from_url(CSV_URL) is ConnectionMode.READ_ONLY
        assert ConnectionMode.from_url("https://example.com/data.csv") is ConnectionMode.READ_ONLY


class TestFetch:
    """Tests for fetch_csv and fetch_rows."""

    def test_fetch_csv(self) -> None:
        """Test the CSV body is returned as text."""
        session = make_session(make_response(text="date,amount\n2024-01-01,5"))
        client = SheetClient(CSV_URL, session=session)

        assert client.fetch_csv() == "date,amount\n2024-01-01,5"
        session.get.assert_called_once_with(CSV_URL)

    def test_fetch_csv_rejects_unpublished_url(self) -> None:
        """Test read-only mode needs a published CSV URL, before any request."""
        session = make_session(make_response())
        client = SheetClient("https://docs.google.com/spreadsheets/d/abc/edit", session=session)

        with pytest.raises(SourceError, match="Publish to Web"):
            client.fetch_csv()
        session.get.assert_not_called()

    def test_fetch_csv_http_error(self) -> None:
        """Test a non-success status is a transport error."""
        client = SheetClient(CSV_URL, session=make_session(make_response(status_code=404)))

        with pytest.raises(TransportError, match="Failed to fetch CSV"):
            client.fetch_csv()

    def test_network_error(self) -> None:
        """Test connection failures are transport errors."""
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("unreachable")
        client = SheetClient(CSV_URL, session=session)

        with pytest.raises(TransportError):
            client.fetch_csv()

    def test_fetch_rows(self) -> None:
        """Test the script endpoint's JSON array is returned."""
        rows = [{"id": "1", "date": "2024-01-01", "amount": 5}]
        client = SheetClient(SCRIPT_URL, session=make_session(make_response(json_body=rows)))

        assert client.fetch_rows() == rows

    @pytest.mark.parametrize("body", [{"rows": []}, "oops", 42])
    def test_fetch_rows_wrong_shape(self, body: object) -> None:
        """Test a non-array body is a shape error."""
        client = SheetClient(SCRIPT_URL, session=make_session(make_response(json_body=body)))

        with pytest.raises(ShapeError, match="invalid data format"):
            client.fetch_rows()

    def test_fetch_rows_not_json(self) -> None:
        """Test an HTML error page is a shape error."""
        client = SheetClient(SCRIPT_URL, session=make_session(make_response(text="<html>")))

        with pytest.raises(ShapeError):
            client.fetch_rows()


class TestWrites:
    """Tests for add and delete."""

    @pytest.fixture
    def transaction(self) -> Transaction:
        """A manual transaction with a formula-like description."""
        return Transaction(
            id="id-1700000000000",
            date=date(2024, 1, 5),
            description="=HYPERLINK(\"http://evil\")",
            amount=Decimal("12.50"),
            category="Shopping",
            transaction_type=TransactionType.EXPENSE,
        )

    def test_add_posts_plain_text_json(self, transaction: Transaction) -> None:
        """Test the add payload, content type and sanitizing."""
        session = make_session(make_response(json_body={"status": "success"}))
        client = SheetClient(SCRIPT_URL, session=session)

        client.add(transaction)

        args, kwargs = session.post.call_args
        assert args[0] == SCRIPT_URL
        assert kwargs["headers"] == {"Content-Type": "text/plain"}
        payload = json.loads(kwargs["data"])
        assert payload["action"] == "add"
        row = payload["transaction"]
        assert row["id"] == "id-1700000000000"
        assert row["date"] == "2024-01-05"
        assert row["amount"] == 12.5
        assert row["type"] == "EXPENSE"
        assert row["status"] == "Active"
        assert row["description"].startswith("'=")

    def test_delete_posts_id(self) -> None:
        """Test the delete payload."""
        session = make_session(make_response(json_body={"status": "success"}))
        client = SheetClient(SCRIPT_URL, session=session)

        client.delete("abc")

        payload = json.loads(session.post.call_args.kwargs["data"])
        assert payload == {"action": "delete", "id": "abc"}

    def test_write_error_status(self) -> None:
        """Test an error status from the script raises WriteError."""
        body = {"status": "error", "message": "No ID column"}
        client = SheetClient(SCRIPT_URL, session=make_session(make_response(json_body=body)))

        with pytest.raises(WriteError, match="No ID column"):
            client.delete("abc")

    def test_write_needs_script_url(self, transaction: Transaction) -> None:
        """Test writes are refused for read-only URLs."""
        session = make_session(make_response(json_body={"status": "success"}))
        client = SheetClient(CSV_URL, session=session)

        with pytest.raises(SourceError):
            client.add(transaction)
        session.post.assert_not_called()
