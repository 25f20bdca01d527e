"""Dashboard session: the in-memory working set and its mutations.

The working set is the single source of truth while the program runs. It
is replaced as a whole by a successful sync and changed locally by add and
delete, which are mirrored to the sheet when the source is a script
endpoint.
"""

import contextlib
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterator, Optional

from sheet_finance.config import Config, load_source_url, save_source_url
from sheet_finance.models.summary import SpendingSummary, TimeFilter
from sheet_finance.models.transaction import (
    UNCATEGORIZED,
    Transaction,
    TransactionType,
    manual_id,
)
from sheet_finance.parsers import CSVParser, JSONRowParser, ParseError
from sheet_finance.processing.ai.insights import InsightAdvisor
from sheet_finance.processing.ai.receipt_scanner import ReceiptScanner, encode_image
from sheet_finance.processing.normalizer import Normalizer
from sheet_finance.processing.reconciler import Reconciler
from sheet_finance.processing.report_generator import filter_transactions, generate_summary
from sheet_finance.sources import ConnectionMode, SheetClient, SyncError
from sheet_finance.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)


class SyncInProgressError(Exception):
    """Raised when a sync or add is triggered while another one runs."""

    pass


class NotificationLevel(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """One user-facing message."""

    message: str
    level: NotificationLevel = NotificationLevel.SUCCESS


class MutationPolicy(Enum):
    """What happens to the local change when the remote write fails."""

    ROLLBACK = "rollback"
    WARN = "warn"


MUTATION_POLICIES = {
    "delete": MutationPolicy.ROLLBACK,
    "add": MutationPolicy.WARN,
}


class DashboardSession:
    """Owns the working set, the source URL and the collaborators.

    Attributes:
        transactions: Current working set, newest first after a sync.
        source_url: URL of the last successful sync.
        is_processing: True while a sync or add runs.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        client_factory: Callable[[str], SheetClient] = SheetClient,
        normalizer: Optional[Normalizer] = None,
        reconciler: Optional[Reconciler] = None,
        advisor: Optional[InsightAdvisor] = None,
        scanner: Optional[ReceiptScanner] = None,
        notifier: Optional[Callable[[Notification], None]] = None,
    ):
        """Initialize session.

        Args:
            config: Application configuration.
            client_factory: Builds a sheet client for a URL.
            normalizer: Row normalizer shared by both parsers.
            reconciler: Enrichment merger (pass-through when omitted).
            advisor: Insight collaborator.
            scanner: Receipt scanning collaborator.
            notifier: Called with every notification.
        """
        self.config = config or Config()
        self.client_factory = client_factory
        self.normalizer = normalizer or Normalizer()
        self.reconciler = reconciler or Reconciler()
        self.advisor = advisor
        self.scanner = scanner
        self.notifier = notifier

        self.transactions: list[Transaction] = []
        self.source_url: Optional[str] = None
        self.client: Optional[SheetClient] = None
        self.is_processing = False
        self.notifications: list[Notification] = []

    @property
    def mode(self) -> ConnectionMode:
        if self.client is None:
            return ConnectionMode.READ_ONLY
        return self.client.mode

    def _notify(self, message: str, level: NotificationLevel = NotificationLevel.SUCCESS) -> None:
        notification = Notification(message, level)
        self.notifications.append(notification)
        if self.notifier is not None:
            self.notifier(notification)

    @contextlib.contextmanager
    def _processing(self) -> Iterator[None]:
        if self.is_processing:
            raise SyncInProgressError("A sync is already in progress")
        self.is_processing = True
        try:
            yield
        finally:
            self.is_processing = False

    def _fetch(self, client: SheetClient) -> list[Transaction]:
        if client.is_read_write:
            rows = client.fetch_rows()
            return JSONRowParser(self.normalizer).parse(rows)
        text = client.fetch_csv()
        return CSVParser(self.normalizer).parse(text)

    def sync(self, url: Optional[str] = None, auto: bool = False) -> bool:
        """Fetch the sheet and replace the working set.

        Args:
            url: Source URL (defaults to the last synced one).
            auto: True for the start-up sync, which stays quiet on success.

        Returns:
            True when the working set was replaced.

        Raises:
            SyncInProgressError: If another sync or add is running.
        """
        url = (url or self.source_url or "").strip()
        if not url:
            self._notify("No sheet URL configured.", NotificationLevel.ERROR)
            return False

        with self._processing():
            with LogContext(logger, "sync", url=url, auto=auto):
                try:
                    client = self.client_factory(url)
                    records = self.reconciler.reconcile(self._fetch(client))
                except (SyncError, ParseError) as e:
                    logger.error(f"Sync failed: {e}")
                    self._notify(str(e) or "Error syncing sheet.", NotificationLevel.ERROR)
                    return False

            self.transactions = records
            self.client = client
            self.source_url = url
            save_source_url(self.config.state_path, url)

        logger.info(f"Synced {len(records)} transactions ({client.mode.value})")
        if not auto:
            self._notify("Sheet connected successfully!")
        return True

    def load_saved_source(self) -> bool:
        """Sync quietly from the saved URL, if there is one.

        Returns:
            True when a saved source was synced.
        """
        url = load_source_url(self.config.state_path)
        if not url:
            logger.debug("No saved source URL")
            return False
        return self.sync(url, auto=True)

    def delete(self, transaction_id: str) -> bool:
        """Remove a record, flagging it deleted in the sheet when writable.

        Args:
            transaction_id: Id of the record.

        Returns:
            True when the record is gone from the working set.
        """
        previous = list(self.transactions)
        remaining = [t for t in previous if t.id != transaction_id]
        if len(remaining) == len(previous):
            self._notify(f"Transaction {transaction_id} not found.", NotificationLevel.ERROR)
            return False

        self.transactions = remaining

        if self.mode is not ConnectionMode.READ_WRITE:
            self._notify("Transaction removed from view.")
            return True

        try:
            self.client.delete(transaction_id)  # type: ignore[union-attr]
        except SyncError as e:
            logger.error(f"Delete sync error: {e}")
            if MUTATION_POLICIES["delete"] is MutationPolicy.ROLLBACK:
                self.transactions = previous
                self._notify("Failed to delete from Sheet. Reverting.", NotificationLevel.ERROR)
                return False
            self._notify("Failed to delete from Sheet.", NotificationLevel.WARNING)
            return True

        self._notify("Transaction marked as Deleted.")
        return True

    def add(
        self,
        description: str,
        amount: Decimal,
        txn_date: date,
        transaction_type: TransactionType = TransactionType.EXPENSE,
        category: str = UNCATEGORIZED,
        image: Optional[str] = None,
    ) -> Transaction:
        """Add a manually entered record to the front of the working set.

        Args:
            description: Free text.
            amount: Magnitude (the sign is ignored).
            txn_date: Calendar date.
            transaction_type: INCOME or EXPENSE.
            category: Category name.
            image: Base64 receipt scan.

        Returns:
            The new record.

        Raises:
            SyncInProgressError: If a sync is running.
            ValueError: If the amount is not a finite number.
        """
        if not Decimal(amount).is_finite():
            raise ValueError(f"Amount must be a finite number, got {amount}")

        with self._processing():
            txn = Transaction(
                id=manual_id(),
                date=txn_date,
                description=description.strip() or "Unspecified",
                amount=Decimal(amount),
                category=category or UNCATEGORIZED,
                transaction_type=transaction_type,
                image=image,
            )
            self.transactions = [txn] + self.transactions

            if self.mode is not ConnectionMode.READ_WRITE:
                self._notify("Transaction added locally.")
                return txn

            try:
                self.client.add(txn)  # type: ignore[union-attr]
            except SyncError as e:
                logger.error(f"Save sync error: {e}")
                if MUTATION_POLICIES["add"] is MutationPolicy.ROLLBACK:
                    self.transactions = [t for t in self.transactions if t is not txn]
                    self._notify("Failed to save to Sheet. Reverting.", NotificationLevel.ERROR)
                else:
                    self._notify(
                        "Failed to save to Sheet. Please refresh.", NotificationLevel.WARNING
                    )
                return txn

        self._notify("Transaction saved to Sheet.")
        return txn

    def add_from_receipt(self, image_bytes: bytes, media_type: str = "image/jpeg") -> Transaction:
        """Scan a receipt and add it as an expense with the image attached.

        Raises:
            ReceiptScanError: If the receipt cannot be read.
            RuntimeError: If no scanner is configured.
        """
        if self.scanner is None:
            raise RuntimeError("Receipt scanning is not configured")

        receipt = self.scanner.scan(image_bytes, media_type)
        return self.add(
            description=receipt.description,
            amount=receipt.amount,
            txn_date=receipt.date,
            transaction_type=receipt.transaction_type,
            category=receipt.category,
            image=encode_image(image_bytes),
        )

    def ask(self, query: Optional[str] = None, time_filter: Optional[TimeFilter] = None) -> str:
        """Ask the insight collaborator about the (filtered) working set."""
        if self.advisor is None:
            raise RuntimeError("Insights are not configured")
        return self.advisor.ask(self.visible(time_filter), query)

    def visible(self, time_filter: Optional[TimeFilter] = None) -> list[Transaction]:
        """Working set restricted to the time window."""
        if time_filter is None:
            return list(self.transactions)
        return filter_transactions(self.transactions, time_filter)

    def summary(self, time_filter: Optional[TimeFilter] = None) -> SpendingSummary:
        """Totals, breakdown and trend for the time window."""
        time_filter = time_filter or TimeFilter()
        return generate_summary(
            self.visible(time_filter), time_filter.mode, self.config.palette
        )
