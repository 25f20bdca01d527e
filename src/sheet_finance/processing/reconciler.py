"""Merge freshly imported records with categorization results."""

from dataclasses import replace
from typing import Optional, Protocol

from sheet_finance.models.transaction import DEFAULT_CATEGORY, Transaction, TransactionType
from sheet_finance.processing.ai.models import BatchResult, EnrichmentRequest
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)


class Enricher(Protocol):
    """Anything that can categorize a batch of requests."""

    def categorize_batch(self, requests: list[EnrichmentRequest]) -> BatchResult: ...


def sort_newest_first(transactions: list[Transaction]) -> list[Transaction]:
    """Stable sort by date, newest first."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)


class Reconciler:
    """Fills in categories for records that arrived without one.

    Records whose category is empty, "Uncategorized" or "Other" are sent to
    the enricher; every other record keeps its values. The output always has
    exactly as many records as the input.
    """

    def __init__(self, enricher: Optional[Enricher] = None):
        """Initialize reconciler.

        Args:
            enricher: Categorization collaborator. Without one, records are
                only sorted.
        """
        self.enricher = enricher

    def reconcile(self, transactions: list[Transaction]) -> list[Transaction]:
        """Enrich pending records and sort the result.

        Args:
            transactions: Freshly normalized records.

        Returns:
            New list, same length as the input, sorted by date descending.
        """
        pending = [t for t in transactions if t.needs_enrichment]
        categorized = [t for t in transactions if not t.needs_enrichment]

        if not pending or self.enricher is None:
            if pending:
                logger.debug(f"No enricher configured, {len(pending)} records left as-is")
            return sort_newest_first(transactions)

        enriched = self._enrich(pending)
        return sort_newest_first(categorized + enriched)

    def _enrich(self, pending: list[Transaction]) -> list[Transaction]:
        # Tokens are 1-based positions in the pending list
        requests = [
            EnrichmentRequest(token=i, description=t.description, amount=t.amount)
            for i, t in enumerate(pending, start=1)
        ]

        try:
            batch = self.enricher.categorize_batch(requests)  # type: ignore[union-attr]
            results = batch.results
        except Exception as e:
            logger.error(f"Enrichment failed, applying default category: {e}")
            results = {}

        enriched = []
        for req, txn in zip(requests, pending):
            answer = results.get(req.token)
            if answer is None:
                enriched.append(
                    replace(txn, category=DEFAULT_CATEGORY, transaction_type=TransactionType.EXPENSE)
                )
            else:
                enriched.append(
                    replace(txn, category=answer.category, transaction_type=answer.transaction_type)
                )

        logger.info(
            f"Enriched {len(results)} of {len(pending)} uncategorized transactions"
        )
        return enriched
