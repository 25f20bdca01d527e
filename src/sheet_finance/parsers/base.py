"""Abstract base class for sheet payload parsers."""

from abc import ABC, abstractmethod
from typing import Optional

from sheet_finance.models.transaction import Transaction
from sheet_finance.processing.normalizer import Normalizer
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)


class ParseError(Exception):
    """Exception raised when a whole payload has the wrong shape."""

    def __init__(self, message: str, source: Optional[str] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            source: Optional description of the payload's origin.
        """
        self.source = source
        super().__init__(message)


class BaseParser(ABC):
    """Abstract base class for all payload parsers.

    Subclasses implement parse(), turning one fetched payload into
    canonical transactions. Individual bad rows are dropped; only a
    payload of the wrong overall shape raises ParseError.
    """

    def __init__(self, normalizer: Optional[Normalizer] = None):
        """Initialize parser.

        Args:
            normalizer: Row normalizer (a default one is created if omitted).
        """
        self.normalizer = normalizer or Normalizer()

    @property
    def name(self) -> str:
        """Return parser name for logging."""
        return self.__class__.__name__

    @abstractmethod
    def parse(self, payload: object) -> list[Transaction]:
        """Parse a payload and return canonical transactions.

        Args:
            payload: Raw payload as fetched from the sheet.

        Returns:
            List of Transaction objects, in payload order.

        Raises:
            ParseError: If the payload has the wrong shape.
        """
        pass

    def _log_result(self, parsed: int, total: int) -> None:
        skipped = total - parsed
        logger.info(f"{self.name}: parsed {parsed} transactions ({skipped} rows skipped)")
