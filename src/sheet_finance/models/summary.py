"""Derived summary models for the dashboard views."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class FilterMode(Enum):
    """Time window applied before aggregation."""

    ALL = "all"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"


@dataclass
class TimeFilter:
    """Active time filter.

    Attributes:
        mode: Which window applies.
        year: Selected calendar year (year and month modes).
        month: Selected month, 1-12 (month mode).
        day: Selected day as a YYYY-MM-DD string (day mode).
    """

    mode: FilterMode = FilterMode.ALL
    year: int | None = None
    month: int | None = None
    day: str | None = None

    def __post_init__(self) -> None:
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")

    @property
    def label(self) -> str:
        """Human-readable description of the window."""
        if self.mode is FilterMode.YEAR:
            return f"{self.year}"
        if self.mode is FilterMode.MONTH:
            return f"{self.year}-{self.month:02d}" if self.month else f"{self.year}"
        if self.mode is FilterMode.DAY:
            return self.day or ""
        return "All time"


@dataclass
class CategorySlice:
    """One entry of the expense breakdown."""

    name: str
    value: Decimal
    color: str


@dataclass
class TrendPoint:
    """Income and expense totals for one time bucket."""

    bucket_key: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


@dataclass
class SpendingSummary:
    """Totals, breakdown and trend for the filtered transactions.

    Recomputed from the working set whenever it or the filter changes.

    Attributes:
        total_income: Sum of INCOME amounts.
        total_expense: Sum of EXPENSE amounts.
        category_breakdown: Expense totals per category, largest first.
        monthly_trend: Income/expense per bucket, ascending by bucket key.
    """

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    category_breakdown: list[CategorySlice] = field(default_factory=list)
    monthly_trend: list[TrendPoint] = field(default_factory=list)

    @property
    def balance(self) -> Decimal:
        """Total income minus total expense."""
        return self.total_income - self.total_expense
