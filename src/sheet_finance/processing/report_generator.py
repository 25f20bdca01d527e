"""Summary data generation for the dashboard views."""

from datetime import date
from decimal import Decimal

from sheet_finance.config import DEFAULT_PALETTE
from sheet_finance.models.summary import (
    CategorySlice,
    FilterMode,
    SpendingSummary,
    TimeFilter,
    TrendPoint,
)
from sheet_finance.models.transaction import Transaction
from sheet_finance.utils.date_utils import month_key


def filter_transactions(
    transactions: list[Transaction], time_filter: TimeFilter
) -> list[Transaction]:
    """Select the transactions inside the active time window.

    A field the mode needs but the filter leaves unset imposes no
    constraint, so month mode without a month behaves like year mode.

    Args:
        transactions: Working set.
        time_filter: Active filter.

    Returns:
        Matching transactions in their original order.
    """
    mode = time_filter.mode
    if mode is FilterMode.ALL:
        return list(transactions)

    if mode is FilterMode.DAY:
        if not time_filter.day:
            return list(transactions)
        return [t for t in transactions if t.iso_date == time_filter.day]

    result = []
    for t in transactions:
        if time_filter.year is not None and t.date.year != time_filter.year:
            continue
        if (
            mode is FilterMode.MONTH
            and time_filter.month is not None
            and t.date.month != time_filter.month
        ):
            continue
        result.append(t)
    return result


def trend_bucket(transaction: Transaction, mode: FilterMode) -> str:
    """Trend bucket key: the ISO date in day/month mode, else YYYY-MM."""
    if mode in (FilterMode.DAY, FilterMode.MONTH):
        return transaction.iso_date
    return month_key(transaction.date)


def generate_summary(
    transactions: list[Transaction],
    mode: FilterMode = FilterMode.ALL,
    palette: list[str] | None = None,
) -> SpendingSummary:
    """Compute totals, expense breakdown and trend.

    Single source of truth for the summary cards, the breakdown chart and
    the trend chart. Expects transactions already filtered to the window.

    Args:
        transactions: Filtered transactions.
        mode: Active filter mode, which picks the trend granularity.
        palette: Breakdown colors (cyclic). Defaults to the built-in palette.

    Returns:
        SpendingSummary for the transactions.
    """
    if not palette:
        palette = DEFAULT_PALETTE

    total_income = Decimal("0")
    total_expense = Decimal("0")
    # Insertion order records first appearance
    by_category: dict[str, Decimal] = {}
    buckets: dict[str, TrendPoint] = {}

    for t in transactions:
        key = trend_bucket(t, mode)
        point = buckets.setdefault(key, TrendPoint(key))
        if t.is_income:
            total_income += t.amount
            point.income += t.amount
        else:
            total_expense += t.amount
            point.expense += t.amount
            by_category[t.category] = by_category.get(t.category, Decimal("0")) + t.amount

    # Colors follow first appearance, so sorting by value does not reshuffle them
    breakdown = [
        CategorySlice(name=name, value=value, color=palette[i % len(palette)])
        for i, (name, value) in enumerate(by_category.items())
    ]
    breakdown.sort(key=lambda s: s.value, reverse=True)

    trend = [buckets[key] for key in sorted(buckets)]

    return SpendingSummary(
        total_income=total_income,
        total_expense=total_expense,
        category_breakdown=breakdown,
        monthly_trend=trend,
    )


def available_years(transactions: list[Transaction], today: date | None = None) -> list[int]:
    """Years offered by the year picker, newest first.

    Args:
        transactions: Working set.
        today: Reference date for the current year (defaults to today).

    Returns:
        Distinct transaction years plus the current year, descending.
    """
    current = (today or date.today()).year
    return sorted({t.date.year for t in transactions} | {current}, reverse=True)
