"""Tests for CSV header inference and parsing."""

from datetime import date
from decimal import Decimal

import pytest

from sheet_finance.models.transaction import UNCATEGORIZED, TransactionType
from sheet_finance.parsers import CSVParser, ParseError, infer_columns, split_fields
from sheet_finance.processing.normalizer import ColumnMapping


class TestSplitFields:
    """Tests for the quote-aware field splitter."""

    def test_plain_fields(self) -> None:
        """Test splitting unquoted fields."""
        assert split_fields("a,b,c") == ["a", "b", "c"]

    def test_delimiter_inside_quotes(self) -> None:
        """Test that commas inside quotes are kept as text."""
        assert split_fields('2024-01-05,"Dinner, with friends","1,250"') == [
            "2024-01-05",
            "Dinner, with friends",
            "1,250",
        ]

    def test_fields_are_trimmed(self) -> None:
        """Test whitespace around fields is removed."""
        assert split_fields("  a , b ,c  ") == ["a", "b", "c"]

    def test_trailing_empty_field(self) -> None:
        """Test a trailing delimiter yields an empty last field."""
        assert split_fields("a,b,") == ["a", "b", ""]

    def test_custom_delimiter(self) -> None:
        """Test splitting on a semicolon."""
        assert split_fields("a;b,c;d", delimiter=";") == ["a", "b,c", "d"]


class TestInferColumns:
    """Tests for header row detection."""

    def test_simple_header(self) -> None:
        """Test the header in row 0 with date, amount and description."""
        inference = infer_columns(["Date,Amount,Description"])
        assert inference.detected is True
        assert inference.header_row == 0
        assert inference.mapping.date_col == 0
        assert inference.mapping.amount_col == 1
        assert inference.mapping.description_col == 2
        assert inference.mapping.id_col is None
        assert inference.mapping.type_col is None

    def test_header_after_title_rows(self) -> None:
        """Test title lines above the header are skipped."""
        lines = [
            "My Budget 2024",
            "Exported,from,sheet",
            "ID,Tanggal Date,Keterangan,Harga,Kategori,Tipe,Status",
            "1,2024-01-01,Gaji,5000000,Income,Pemasukan,Active",
        ]
        inference = infer_columns(lines)
        assert inference.header_row == 2
        mapping = inference.mapping
        assert mapping.id_col == 0
        assert mapping.date_col == 1
        assert mapping.description_col == 2
        assert mapping.amount_col == 3
        assert mapping.category_col == 4
        assert mapping.type_col == 5
        assert mapping.status_col == 6

    def test_first_qualifying_row_wins(self) -> None:
        """Test that a later, richer header row is ignored."""
        lines = [
            "date,amount",
            "date,amount,description,category,type",
        ]
        inference = infer_columns(lines)
        assert inference.header_row == 0
        assert inference.mapping.description_col is None

    def test_fallback_to_positional_layout(self) -> None:
        """Test fallback when no row names both date and amount."""
        lines = ["2024-01-01,Coffee,4.50", "2024-01-02,Lunch,12.00"]
        inference = infer_columns(lines)
        assert inference.detected is False
        assert inference.header_row == 0
        assert inference.mapping == ColumnMapping.positional()

    def test_header_beyond_scan_window_not_found(self) -> None:
        """Test that only the first 10 lines are scanned."""
        lines = [f"note {i}" for i in range(10)] + ["date,amount"]
        inference = infer_columns(lines)
        assert inference.detected is False


class TestCSVParser:
    """Tests for CSVParser."""

    def test_parenthesized_amount_scenario(self) -> None:
        """Test the basic export with a parenthesized amount."""
        text = "Date,Amount,Description\n2023-10-01,(50000),Refund\n2023-10-02,25000,Coffee"
        records = CSVParser().parse(text)

        assert len(records) == 2
        assert [r.amount for r in records] == [Decimal("50000"), Decimal("25000")]
        assert all(r.transaction_type is TransactionType.EXPENSE for r in records)
        assert [r.iso_date for r in records] == ["2023-10-01", "2023-10-02"]
        assert [r.description for r in records] == ["Refund", "Coffee"]
        assert all(r.category == UNCATEGORIZED for r in records)

    def test_empty_payload_returns_no_records(self) -> None:
        """Test an empty or blank export is not an error."""
        assert CSVParser().parse("") == []
        assert CSVParser().parse("\n\n  \n") == []

    def test_bytes_payload_with_bom(self) -> None:
        """Test a UTF-8 byte payload with a byte order mark."""
        payload = "\ufeffDate,Amount,Description\n2024-03-01,10,Snack".encode("utf-8")
        records = CSVParser().parse(payload)
        assert len(records) == 1
        assert records[0].date == date(2024, 3, 1)

    def test_non_text_payload_raises(self) -> None:
        """Test that a non-text payload is a shape error."""
        with pytest.raises(ParseError):
            CSVParser().parse({"rows": []})

    def test_bad_rows_are_dropped(self) -> None:
        """Test unparseable amounts and dates drop only their own row."""
        text = "\n".join(
            [
                "date,amount,description",
                "2024-01-01,12abc,Bad amount",
                "someday,10,Bad date",
                "2024-01-03,7.25,Good",
                "lonely",
            ]
        )
        records = CSVParser().parse(text)
        assert [r.description for r in records] == ["Good"]

    def test_soft_deleted_rows_are_dropped(self) -> None:
        """Test rows with status Deleted are excluded."""
        text = "\n".join(
            [
                "id,date,description,amount,status",
                "a1,2024-01-01,Kept,10,Active",
                "a2,2024-01-02,Gone,20,DELETED",
            ]
        )
        records = CSVParser().parse(text)
        assert [r.id for r in records] == ["a1"]

    def test_type_and_category_columns(self) -> None:
        """Test type classification and category pass-through."""
        text = "\n".join(
            [
                "date,amount,description,category,type",
                "2024-02-01,5000000,Gaji,Income,Pemasukan",
                "2024-02-02,35000,Makan,Food & Dining,Pengeluaran",
            ]
        )
        salary, meal = CSVParser().parse(text)
        assert salary.transaction_type is TransactionType.INCOME
        assert salary.category == "Income"
        assert meal.transaction_type is TransactionType.EXPENSE
        assert meal.category == "Food & Dining"

    def test_generated_ids_for_missing_id_column(self) -> None:
        """Test rows without an id column get unique sheet ids."""
        text = "date,amount\n2024-01-01,1\n2024-01-02,2"
        records = CSVParser().parse(text)
        assert all(r.id.startswith("sheet-") for r in records)
        assert len({r.id for r in records}) == 2

    def test_positional_fallback_rows(self) -> None:
        """Test parsing without a header row uses date, description, amount."""
        text = "2024-01-01,Coffee,4.50\n2024-01-02,Lunch,12.00"
        records = CSVParser().parse(text)
        # Row 0 is treated as the header in the fallback layout
        assert len(records) == 1
        assert records[0].description == "Lunch"
        assert records[0].amount == Decimal("12.00")

    def test_quoted_amount_with_grouping(self) -> None:
        """Test quoted amounts containing digit-group commas."""
        text = 'date,description,amount\n2024-01-01,"Rent, January","$1,250.00"'
        records = CSVParser().parse(text)
        assert records[0].description == "Rent, January"
        assert records[0].amount == Decimal("1250.00")

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ('"$(12.50)"', Decimal("12.50")),
            ('"Rp(1,000)"', Decimal("1000")),
            ('"€(3)"', Decimal("3")),
        ],
    )
    def test_symbol_before_parentheses_keeps_row(self, raw: str, expected: Decimal) -> None:
        """Test a currency symbol outside the parentheses still parses."""
        text = f"Date,Amount,Description\n2023-10-01,{raw},Refund\n"
        records = CSVParser().parse(text)
        assert len(records) == 1
        assert records[0].amount == expected
