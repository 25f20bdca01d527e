"""Cost tracking and budget enforcement for AI requests."""

from dataclasses import dataclass

from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)


# Model pricing (per 1M tokens)
# https://www.anthropic.com/pricing
MODEL_PRICING: dict[str, dict[str, float]] = {
    "claude-sonnet-4-5-20250929": {
        "input": 3.00,
        "output": 15.00,
    },
    "claude-3-5-sonnet-20241022": {
        "input": 3.00,
        "output": 15.00,
    },
    "claude-3-5-haiku-20241022": {
        "input": 0.80,
        "output": 4.00,
    },
    "claude-3-haiku-20240307": {
        "input": 0.25,
        "output": 1.25,
    },
}

DEFAULT_PRICING_MODEL = "claude-sonnet-4-5-20250929"

# Rough token cost of one base64 receipt image
IMAGE_TOKEN_ESTIMATE = 1600


@dataclass
class CostEstimator:
    """Prices token usage and enforces the per-run budget.

    Attributes:
        model: The model being priced.
        budget_limit: Maximum budget in USD (None for unlimited).
        current_spend: Accumulated spend in USD.
    """

    model: str = DEFAULT_PRICING_MODEL
    budget_limit: float | None = None
    current_spend: float = 0.0

    def get_pricing(self) -> dict[str, float]:
        """Get pricing for the configured model."""
        if self.model in MODEL_PRICING:
            return MODEL_PRICING[self.model]
        logger.warning(f"Unknown model {self.model}, using default pricing")
        return MODEL_PRICING[DEFAULT_PRICING_MODEL]

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Calculate cost for given token counts.

        Args:
            input_tokens: Number of input tokens.
            output_tokens: Number of output tokens.

        Returns:
            Cost in USD.
        """
        pricing = self.get_pricing()
        return (
            input_tokens * pricing["input"] / 1_000_000
            + output_tokens * pricing["output"] / 1_000_000
        )

    def check_budget(self, estimated_cost: float) -> tuple[bool, str]:
        """Check whether a request fits in the remaining budget.

        Args:
            estimated_cost: Estimated cost of the request in USD.

        Returns:
            Tuple of (within_budget, message).
        """
        if self.budget_limit is None:
            return True, "No budget limit set"

        projected = self.current_spend + estimated_cost
        if projected > self.budget_limit:
            return False, (
                f"Estimated cost ${estimated_cost:.4f} exceeds remaining budget "
                f"(${self.budget_limit - self.current_spend:.4f} of ${self.budget_limit:.2f})"
            )
        return True, f"Within budget (${projected:.4f} of ${self.budget_limit:.2f})"

    def record_spend(self, cost: float) -> None:
        """Add a completed request's cost to the running total."""
        self.current_spend += cost
