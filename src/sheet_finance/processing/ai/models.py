"""AI-specific data models."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sheet_finance.models.transaction import TransactionType


@dataclass
class EnrichmentRequest:
    """One record sent for categorization.

    Attributes:
        token: Correlation token the model must echo back (1-based).
        description: Transaction description.
        amount: Transaction magnitude.
    """

    token: int
    description: str
    amount: Decimal


@dataclass
class EnrichmentResult:
    """Category and type resolved for one request."""

    category: str
    transaction_type: TransactionType


@dataclass
class BatchResult:
    """Result of batch categorization.

    Attributes:
        results: Enrichment keyed by correlation token. Tokens with no usable
            answer are absent.
        total_tokens: Total tokens used.
        total_cost: Total cost in USD.
        succeeded: Number of tokens that received a result.
        failed: Number of tokens without a result.
        errors: Error messages for failed batches or bad entries.
    """

    results: dict[int, EnrichmentResult] = field(default_factory=dict)
    total_tokens: int = 0
    total_cost: float = 0.0
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class ReceiptData:
    """Fields extracted from a receipt image.

    The type is always EXPENSE.
    """

    amount: Decimal
    date: date
    description: str
    category: str

    @property
    def transaction_type(self) -> TransactionType:
        return TransactionType.EXPENSE


@dataclass
class AIUsageStats:
    """Cumulative AI usage statistics for a session."""

    total_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost: float = 0.0
    categorizations_performed: int = 0
    insights_generated: int = 0
    receipts_scanned: int = 0

    def add_request(self, input_tokens: int, output_tokens: int, cost: float) -> None:
        """Record a completed request."""
        self.total_requests += 1
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_cost += cost
