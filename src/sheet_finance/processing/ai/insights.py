"""Free-text spending analysis over the working set."""

from dataclasses import dataclass

from sheet_finance.models.transaction import Transaction
from sheet_finance.processing.ai.client import AIClient
from sheet_finance.processing.ai.prompts import INSIGHT_SYSTEM_PROMPT, build_insight_prompt
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)

INSIGHT_ERROR_REPLY = "Sorry, I encountered an error analyzing your data."
INSIGHT_EMPTY_REPLY = "I couldn't generate an analysis at this time."


@dataclass
class InsightAdvisor:
    """Answers questions about the user's transactions.

    Never raises: failures become a fixed apology text so the caller can
    show the reply as-is.
    """

    client: AIClient
    max_tokens: int = 2048

    @property
    def is_available(self) -> bool:
        return self.client.is_available

    def ask(self, transactions: list[Transaction], query: str | None = None) -> str:
        """Analyze transactions, optionally answering a specific question.

        Args:
            transactions: Records to analyze.
            query: User question. A general spending analysis when omitted.

        Returns:
            Markdown reply text.
        """
        context = [
            {
                "date": t.iso_date,
                "desc": t.description,
                "amount": t.amount,
                "cat": t.category,
                "type": t.transaction_type.value,
            }
            for t in transactions
        ]
        prompt = build_insight_prompt(context, query)

        try:
            response, _, _ = self.client.send_message(
                INSIGHT_SYSTEM_PROMPT, prompt, max_tokens=self.max_tokens
            )
        except Exception as e:
            logger.error(f"Insight generation failed: {e}")
            return INSIGHT_ERROR_REPLY

        self.client.usage_stats.insights_generated += 1
        if not response.strip():
            return INSIGHT_EMPTY_REPLY
        return response
