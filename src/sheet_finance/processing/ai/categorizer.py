"""AI-powered transaction categorizer."""

from dataclasses import dataclass, field

from sheet_finance.config import DEFAULT_CATEGORIES, AIConfig
from sheet_finance.models.transaction import DEFAULT_CATEGORY, TransactionType
from sheet_finance.processing.ai.client import AIClient, AIClientConfig
from sheet_finance.processing.ai.models import (
    BatchResult,
    EnrichmentRequest,
    EnrichmentResult,
)
from sheet_finance.processing.ai.prompts import (
    CATEGORIZATION_SYSTEM_PROMPT,
    build_categorization_prompt,
)
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)


def client_from_config(ai_config: AIConfig) -> AIClient:
    """Build an API client from the ``ai`` settings section."""
    return AIClient(
        config=AIClientConfig(
            api_key_env=ai_config.api_key_env,
            model=ai_config.model,
            budget_limit=ai_config.budget_limit,
        )
    )


@dataclass
class AICategorizer:
    """Assigns categories and income/expense types to transactions.

    Requests are sent in batches. Each request carries a correlation token
    that the model echoes back, and results are keyed by that token so a
    reply that skips, reorders or repeats entries cannot shift categories
    onto the wrong record.

    Attributes:
        client: AI API client.
        categories: Allowed category names.
        batch_size: Requests per API call.
    """

    client: AIClient
    categories: list[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    batch_size: int = 20

    @classmethod
    def create(
        cls,
        ai_config: AIConfig,
        categories: list[str] | None = None,
        client: AIClient | None = None,
    ) -> "AICategorizer":
        """Create a categorizer from the ``ai`` settings section.

        Args:
            ai_config: AI configuration.
            categories: Allowed category names (defaults to the built-in list).
            client: Shared API client (a new one is built when omitted).

        Returns:
            Configured AICategorizer instance.
        """
        return cls(
            client=client or client_from_config(ai_config),
            categories=list(categories or DEFAULT_CATEGORIES),
            batch_size=ai_config.batch_size,
        )

    @property
    def is_available(self) -> bool:
        """Check if AI categorization is available."""
        return self.client.is_available

    def _resolve_category(self, raw: object) -> str:
        category = str(raw or "").strip()
        if category in self.categories:
            return category
        # Case-insensitive match keeps the vocabulary spelling
        for name in self.categories:
            if name.lower() == category.lower():
                return name
        if category:
            logger.debug(f"AI returned unknown category {category!r}, using fallback")
        return DEFAULT_CATEGORY

    @staticmethod
    def _resolve_type(raw: object) -> TransactionType:
        if str(raw or "").strip().upper() == "INCOME":
            return TransactionType.INCOME
        return TransactionType.EXPENSE

    def categorize_batch(self, requests: list[EnrichmentRequest]) -> BatchResult:
        """Categorize requests in batches.

        Args:
            requests: Requests with unique correlation tokens.

        Returns:
            BatchResult keyed by token. A token missing from ``results`` got
            no usable answer; callers apply their own default.
        """
        result = BatchResult()

        for batch_start in range(0, len(requests), self.batch_size):
            batch = requests[batch_start : batch_start + self.batch_size]
            expected = {req.token for req in batch}
            prompt = build_categorization_prompt(batch, self.categories)

            try:
                response, input_tokens, output_tokens = self.client.send_message(
                    CATEGORIZATION_SYSTEM_PROMPT, prompt, max_tokens=64 * len(batch) + 256
                )
                cost = self.client.cost_estimator.estimate_cost(input_tokens, output_tokens)
                result.total_tokens += input_tokens + output_tokens
                result.total_cost += cost

                data = self.client.parse_json_response(response)
            except Exception as e:
                logger.error(f"Batch categorization failed: {e}")
                result.errors.append(str(e))
                continue

            if not isinstance(data, list):
                batch_num = batch_start // self.batch_size
                result.errors.append(f"Unexpected response format for batch {batch_num}")
                continue

            seen: set[int] = set()
            duplicated: set[int] = set()
            answers: dict[int, EnrichmentResult] = {}

            for item in data:
                if not isinstance(item, dict):
                    result.errors.append(f"AI returned non-object entry: {item!r}")
                    continue
                raw_idx = item.get("index")
                try:
                    token = int(raw_idx)  # type: ignore[arg-type]
                except (ValueError, TypeError):
                    logger.warning(f"AI returned non-numeric index: {raw_idx}")
                    result.errors.append(f"AI returned non-numeric index: {raw_idx}")
                    continue

                if token not in expected:
                    logger.warning(f"AI returned unknown index {raw_idx}")
                    result.errors.append(f"AI returned invalid index {raw_idx}")
                    continue

                if token in seen:
                    # A repeated token is ambiguous, so neither answer is used
                    logger.warning(f"AI returned duplicate index {raw_idx}")
                    duplicated.add(token)
                    continue
                seen.add(token)

                answers[token] = EnrichmentResult(
                    category=self._resolve_category(item.get("category")),
                    transaction_type=self._resolve_type(item.get("type")),
                )

            for token in duplicated:
                answers.pop(token, None)

            result.results.update(answers)
            self.client.usage_stats.categorizations_performed += len(answers)

        result.succeeded = len(result.results)
        result.failed = len(requests) - result.succeeded
        if result.failed:
            logger.warning(f"{result.failed} of {len(requests)} transactions received no AI answer")
        logger.info(
            f"Categorized {result.succeeded} transactions "
            f"({result.total_tokens} tokens, ${result.total_cost:.4f})"
        )

        return result
