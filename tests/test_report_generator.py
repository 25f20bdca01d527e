"""Tests for report_generator summary calculation logic."""

from datetime import date
from decimal import Decimal

import pytest

from sheet_finance.config import DEFAULT_PALETTE
from sheet_finance.models.summary import FilterMode, TimeFilter
from sheet_finance.models.transaction import Transaction, TransactionType
from sheet_finance.processing.report_generator import (
    available_years,
    filter_transactions,
    generate_summary,
)


def create_transaction(
    amount: Decimal,
    category: str,
    trans_date: date = date(2025, 1, 15),
    transaction_type: TransactionType = TransactionType.EXPENSE,
    description: str = "Test Transaction",
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        id=f"t-{category}-{trans_date.isoformat()}-{amount}",
        date=trans_date,
        description=description,
        amount=amount,
        category=category,
        transaction_type=transaction_type,
    )


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """Mixed income and expenses across two years."""
    return [
        create_transaction(Decimal("3000"), "Income", date(2024, 3, 1), TransactionType.INCOME),
        create_transaction(Decimal("40"), "Food & Dining", date(2024, 3, 2)),
        create_transaction(Decimal("1200"), "Housing", date(2024, 3, 5)),
        create_transaction(Decimal("60"), "Food & Dining", date(2024, 4, 10)),
        create_transaction(Decimal("25"), "Transportation", date(2023, 12, 31)),
        create_transaction(Decimal("500"), "Income", date(2023, 12, 15), TransactionType.INCOME),
    ]


class TestGenerateSummary:
    """Tests for generate_summary."""

    def test_empty_transactions(self) -> None:
        """Test empty input gives zero totals and empty sequences."""
        summary = generate_summary([])

        assert summary.total_income == Decimal("0")
        assert summary.total_expense == Decimal("0")
        assert summary.balance == Decimal("0")
        assert summary.category_breakdown == []
        assert summary.monthly_trend == []

    def test_totals_and_balance(self, sample_transactions: list[Transaction]) -> None:
        """Test totals split by type."""
        summary = generate_summary(sample_transactions)

        assert summary.total_income == Decimal("3500")
        assert summary.total_expense == Decimal("1325")
        assert summary.balance == Decimal("2175")

    def test_breakdown_sums_to_total_expense(
        self, sample_transactions: list[Transaction]
    ) -> None:
        """Test the breakdown covers exactly the expense total."""
        summary = generate_summary(sample_transactions)

        assert sum(s.value for s in summary.category_breakdown) == summary.total_expense
        assert "Income" not in [s.name for s in summary.category_breakdown]

    def test_breakdown_sorted_descending(self, sample_transactions: list[Transaction]) -> None:
        """Test the breakdown is ordered by value, largest first."""
        summary = generate_summary(sample_transactions)

        assert [s.name for s in summary.category_breakdown] == [
            "Housing",
            "Food & Dining",
            "Transportation",
        ]
        assert [s.value for s in summary.category_breakdown] == [
            Decimal("1200"),
            Decimal("100"),
            Decimal("25"),
        ]

    def test_colors_follow_first_appearance(
        self, sample_transactions: list[Transaction]
    ) -> None:
        """Test colors are assigned before sorting, by first appearance."""
        summary = generate_summary(sample_transactions)
        colors = {s.name: s.color for s in summary.category_breakdown}

        assert colors["Food & Dining"] == DEFAULT_PALETTE[0]
        assert colors["Housing"] == DEFAULT_PALETTE[1]
        assert colors["Transportation"] == DEFAULT_PALETTE[2]

    def test_palette_is_cyclic(self) -> None:
        """Test more categories than colors wrap around the palette."""
        palette = ["#000000", "#ffffff"]
        transactions = [
            create_transaction(Decimal("3"), "A"),
            create_transaction(Decimal("2"), "B"),
            create_transaction(Decimal("1"), "C"),
        ]
        summary = generate_summary(transactions, palette=palette)

        assert [s.color for s in summary.category_breakdown] == [
            "#000000",
            "#ffffff",
            "#000000",
        ]

    def test_trend_by_month_in_all_mode(self, sample_transactions: list[Transaction]) -> None:
        """Test trend buckets are YYYY-MM, ascending."""
        summary = generate_summary(sample_transactions, FilterMode.ALL)

        assert [p.bucket_key for p in summary.monthly_trend] == [
            "2023-12",
            "2024-03",
            "2024-04",
        ]
        march = summary.monthly_trend[1]
        assert march.income == Decimal("3000")
        assert march.expense == Decimal("1240")

    def test_trend_by_day_in_month_mode(self, sample_transactions: list[Transaction]) -> None:
        """Test trend buckets are ISO dates in month mode."""
        march = [t for t in sample_transactions if t.date.month == 3]
        summary = generate_summary(march, FilterMode.MONTH)

        assert [p.bucket_key for p in summary.monthly_trend] == [
            "2024-03-01",
            "2024-03-02",
            "2024-03-05",
        ]

    def test_trend_by_date_in_day_mode(self, sample_transactions: list[Transaction]) -> None:
        """Test day mode gives a single ISO date bucket holding both types."""
        same_day = sample_transactions + [
            create_transaction(Decimal("15"), "Income", date(2024, 4, 10), TransactionType.INCOME)
        ]
        time_filter = TimeFilter(mode=FilterMode.DAY, day="2024-04-10")
        summary = generate_summary(filter_transactions(same_day, time_filter), time_filter.mode)

        assert len(summary.monthly_trend) == 1
        point = summary.monthly_trend[0]
        assert point.bucket_key == "2024-04-10"
        assert point.income == Decimal("15")
        assert point.expense == Decimal("60")

    @pytest.mark.parametrize(
        "time_filter",
        [
            TimeFilter(),
            TimeFilter(mode=FilterMode.YEAR, year=2024),
            TimeFilter(mode=FilterMode.MONTH, year=2024, month=3),
            TimeFilter(mode=FilterMode.DAY, day="2024-03-02"),
        ],
        ids=["all", "year", "month", "day"],
    )
    def test_trend_sums_to_totals(
        self, sample_transactions: list[Transaction], time_filter: TimeFilter
    ) -> None:
        """Test trend income and expense add up to the summary totals."""
        summary = generate_summary(
            filter_transactions(sample_transactions, time_filter), time_filter.mode
        )

        assert summary.monthly_trend
        assert sum(p.income for p in summary.monthly_trend) == summary.total_income
        assert sum(p.expense for p in summary.monthly_trend) == summary.total_expense


class TestFilterTransactions:
    """Tests for filter_transactions."""

    def test_all_mode(self, sample_transactions: list[Transaction]) -> None:
        """Test all mode keeps everything."""
        result = filter_transactions(sample_transactions, TimeFilter())
        assert result == sample_transactions

    def test_year_mode(self, sample_transactions: list[Transaction]) -> None:
        """Test year mode keeps one calendar year."""
        result = filter_transactions(
            sample_transactions, TimeFilter(mode=FilterMode.YEAR, year=2023)
        )
        assert len(result) == 2
        assert all(t.date.year == 2023 for t in result)

    def test_month_mode(self, sample_transactions: list[Transaction]) -> None:
        """Test month mode uses a 1-based month."""
        result = filter_transactions(
            sample_transactions, TimeFilter(mode=FilterMode.MONTH, year=2024, month=3)
        )
        assert len(result) == 3

    def test_day_mode(self, sample_transactions: list[Transaction]) -> None:
        """Test day mode matches the exact date."""
        result = filter_transactions(
            sample_transactions, TimeFilter(mode=FilterMode.DAY, day="2024-04-10")
        )
        assert [t.amount for t in result] == [Decimal("60")]

    def test_empty_month_gives_empty_summary(
        self, sample_transactions: list[Transaction]
    ) -> None:
        """Test a month without transactions summarizes to zeros."""
        time_filter = TimeFilter(mode=FilterMode.MONTH, year=2024, month=7)
        summary = generate_summary(
            filter_transactions(sample_transactions, time_filter), time_filter.mode
        )

        assert summary.total_income == Decimal("0")
        assert summary.total_expense == Decimal("0")
        assert summary.category_breakdown == []
        assert summary.monthly_trend == []

    def test_invalid_month_rejected(self) -> None:
        """Test months outside 1-12 are rejected."""
        with pytest.raises(ValueError):
            TimeFilter(mode=FilterMode.MONTH, year=2024, month=13)


class TestAvailableYears:
    """Tests for available_years."""

    def test_includes_current_year(self, sample_transactions: list[Transaction]) -> None:
        """Test the current year is offered even without transactions."""
        years = available_years(sample_transactions, today=date(2026, 2, 1))
        assert years == [2026, 2024, 2023]

    def test_no_duplicates(self, sample_transactions: list[Transaction]) -> None:
        """Test years are distinct."""
        years = available_years(sample_transactions, today=date(2024, 2, 1))
        assert years == [2024, 2023]
