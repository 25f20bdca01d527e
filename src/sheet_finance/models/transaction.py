"""Transaction data models."""

import secrets
import string
import time
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

# Placeholder category for records still waiting for enrichment
UNCATEGORIZED = "Uncategorized"

# Category given to records the enrichment service could not resolve
DEFAULT_CATEGORY = "Other"

# Categories that mark a record as needing enrichment
PENDING_CATEGORIES = frozenset({"", UNCATEGORIZED, DEFAULT_CATEGORY})

_ID_ALPHABET = string.ascii_lowercase + string.digits


class TransactionType(Enum):
    """Direction of money for a transaction."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


def random_token(length: int = 9) -> str:
    """Return a short lowercase alphanumeric token for generated ids."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def manual_id() -> str:
    """Id for a manually entered record: id-<milliseconds since epoch>."""
    return f"id-{int(time.time() * 1000)}"


@dataclass
class Transaction:
    """Canonical transaction record.

    Attributes:
        id: Identifier, unique within the working set.
        date: Calendar date, always the result of a successful parse.
        description: Free text, never empty.
        amount: Non-negative magnitude. The sign lives in transaction_type.
        category: Category name. UNCATEGORIZED means pending enrichment.
        transaction_type: INCOME or EXPENSE.
        image: Base64 encoded receipt scan, set only by the receipt flow.
    """

    id: str
    date: date
    description: str
    amount: Decimal
    category: str = UNCATEGORIZED
    transaction_type: TransactionType = TransactionType.EXPENSE
    image: str | None = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            self.amount = abs(self.amount)

    @property
    def iso_date(self) -> str:
        """Date as a YYYY-MM-DD string."""
        return self.date.isoformat()

    @property
    def is_income(self) -> bool:
        return self.transaction_type is TransactionType.INCOME

    @property
    def needs_enrichment(self) -> bool:
        """Whether the category is empty or one of the pending placeholders."""
        return not self.category or self.category in PENDING_CATEGORIES

    def to_row(self) -> dict[str, object]:
        """Return the flat row written to the spreadsheet.

        Returns:
            Dict with id, date, description, amount, category and type keys,
            plus image when a receipt scan is attached.
        """
        row: dict[str, object] = {
            "id": self.id,
            "date": self.iso_date,
            "description": self.description,
            "amount": float(self.amount),
            "category": self.category,
            "type": self.transaction_type.value,
        }
        if self.image:
            row["image"] = self.image
        return row

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, date={self.iso_date}, "
            f"description={self.description[:30]!r}, "
            f"amount={self.amount}, type={self.transaction_type.value})"
        )
