"""Prompt templates for the AI collaborators."""

import json
from decimal import Decimal
from typing import Any

from sheet_finance.processing.ai.models import EnrichmentRequest

# System prompt for categorization tasks
CATEGORIZATION_SYSTEM_PROMPT = """You are a financial assistant. Your job is \
to assign each transaction in a list to the most appropriate category and to \
decide whether it is income or an expense.

Guidelines:
1. Base your categorization on the description and the amount
2. Use only the categories you are given, spelled exactly as listed
3. If it looks like income (e.g., Salary, Deposit), the type is INCOME, otherwise EXPENSE
4. Every transaction carries a numeric index. Echo that index unchanged in your answer

Response format: Raw JSON only - no markdown code blocks, no explanation outside the JSON."""


def build_categorization_prompt(
    requests: list[EnrichmentRequest],
    categories: list[str],
) -> str:
    """Build a prompt categorizing several transactions in one call.

    Args:
        requests: Transactions to categorize, each with its correlation token.
        categories: Allowed category names.

    Returns:
        Formatted prompt string.
    """
    lines = [f"[{req.token}] {req.description} ({req.amount})" for req in requests]
    transactions = "\n".join(lines)

    return f"""Assign one of these categories to each transaction: {", ".join(categories)}.

Transactions:
{transactions}

Respond with a JSON array, one object per transaction:
[{{"index": 1, "category": "...", "type": "INCOME or EXPENSE"}}]"""


INSIGHT_SYSTEM_PROMPT = """You are a savvy financial analyst. Analyze the \
provided transaction JSON data. Your goal is to provide helpful, actionable, \
and sometimes witty insights about the user's spending habits. Keep responses \
concise and formatted with Markdown."""

DEFAULT_INSIGHT_REQUEST = (
    "Please provide a brief spending analysis. Point out the biggest expenses, "
    "suggest where I can save, and give an overall financial health score (0-100)."
)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def build_insight_prompt(context: list[dict[str, Any]], query: str | None = None) -> str:
    """Build the insight prompt over a compact transaction context.

    Args:
        context: Transactions as dicts with date, desc, amount, cat, type.
        query: Free-text user question. A default analysis is requested
            when omitted.

    Returns:
        Formatted prompt string.
    """
    data = json.dumps(context, default=_json_default)
    question = f"User Question: {query}" if query else DEFAULT_INSIGHT_REQUEST
    return f"Here is my transaction data: {data}. \n\n{question}"


RECEIPT_SYSTEM_PROMPT = """You read photographed or scanned purchase receipts \
and extract the fields needed to record the expense.

Response format: Raw JSON only - no markdown code blocks, no explanation outside the JSON."""


def build_receipt_prompt(categories: list[str]) -> str:
    """Build the text part of a receipt scanning request.

    Args:
        categories: Allowed category names.

    Returns:
        Formatted prompt string.
    """
    return f"""Extract the purchase from this receipt.

- amount: the total paid, as a plain number without currency symbols
- date: the purchase date as YYYY-MM-DD
- description: the merchant or a short summary of the purchase
- category: one of {", ".join(categories)}

Respond with JSON only:
{{"amount": 0.0, "date": "YYYY-MM-DD", "description": "...", "category": "..."}}"""
