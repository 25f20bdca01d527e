"""Hosted language model collaborators.

This module provides batch categorization of imported transactions,
free-text spending insights and receipt scanning using the Claude API.

Example usage:
    from sheet_finance.processing.ai import AICategorizer

    categorizer = AICategorizer.create(config.ai, config.categories)

    if categorizer.is_available:
        result = categorizer.categorize_batch(requests)
        print(f"Categorized {result.succeeded} transactions for ${result.total_cost:.2f}")
"""

from sheet_finance.processing.ai.categorizer import AICategorizer, client_from_config
from sheet_finance.processing.ai.client import (
    AIClient,
    AIClientConfig,
    AIClientError,
    APIKeyNotFoundError,
    BudgetExceededError,
    RateLimitError,
)
from sheet_finance.processing.ai.cost_estimator import CostEstimator
from sheet_finance.processing.ai.insights import (
    INSIGHT_EMPTY_REPLY,
    INSIGHT_ERROR_REPLY,
    InsightAdvisor,
)
from sheet_finance.processing.ai.models import (
    AIUsageStats,
    BatchResult,
    EnrichmentRequest,
    EnrichmentResult,
    ReceiptData,
)
from sheet_finance.processing.ai.receipt_scanner import ReceiptScanError, ReceiptScanner

__all__ = [
    # Collaborators
    "AICategorizer",
    "InsightAdvisor",
    "ReceiptScanner",
    # Client
    "AIClient",
    "AIClientConfig",
    "client_from_config",
    # Errors
    "AIClientError",
    "APIKeyNotFoundError",
    "BudgetExceededError",
    "RateLimitError",
    "ReceiptScanError",
    # Cost estimation
    "CostEstimator",
    # Result models
    "AIUsageStats",
    "BatchResult",
    "EnrichmentRequest",
    "EnrichmentResult",
    "ReceiptData",
    "INSIGHT_EMPTY_REPLY",
    "INSIGHT_ERROR_REPLY",
]
