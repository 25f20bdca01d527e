"""Receipt image extraction."""

import base64
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable

from sheet_finance.config import DEFAULT_CATEGORIES
from sheet_finance.models.transaction import DEFAULT_CATEGORY
from sheet_finance.processing.ai.client import AIClient
from sheet_finance.processing.ai.models import ReceiptData
from sheet_finance.processing.ai.prompts import RECEIPT_SYSTEM_PROMPT, build_receipt_prompt
from sheet_finance.utils.date_utils import parse_date
from sheet_finance.utils.decimal_utils import parse_amount, safe_decimal
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


class ReceiptScanError(Exception):
    """Raised when a receipt cannot be turned into a record."""

    pass


def encode_image(image_bytes: bytes) -> str:
    """Base64 encode image bytes as ASCII text."""
    return base64.b64encode(image_bytes).decode("ascii")


@dataclass
class ReceiptScanner:
    """Extracts amount, date, description and category from a receipt photo.

    Unlike enrichment there is no fallback record: every failure raises
    ReceiptScanError and the caller decides what to tell the user.
    """

    client: AIClient
    categories: list[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    today: Callable[[], date] = date.today
    max_tokens: int = 512

    @property
    def is_available(self) -> bool:
        return self.client.is_available

    def scan(self, image_bytes: bytes, media_type: str = "image/jpeg") -> ReceiptData:
        """Extract one expense from a receipt image.

        Args:
            image_bytes: Raw image file contents.
            media_type: MIME type of the image.

        Returns:
            Extracted receipt fields.

        Raises:
            ReceiptScanError: If the image is unusable or the reply cannot be
                read as a receipt.
        """
        if not image_bytes:
            raise ReceiptScanError("Receipt image is empty")
        if media_type not in SUPPORTED_MEDIA_TYPES:
            raise ReceiptScanError(f"Unsupported image type: {media_type}")

        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": media_type,
                    "data": encode_image(image_bytes),
                },
            },
            {"type": "text", "text": build_receipt_prompt(self.categories)},
        ]

        try:
            response, _, _ = self.client.send_message(
                RECEIPT_SYSTEM_PROMPT, content, max_tokens=self.max_tokens
            )
            data = self.client.parse_json_response(response)
        except Exception as e:
            logger.error(f"Receipt scan failed: {e}")
            raise ReceiptScanError(f"Could not read receipt: {e}") from e

        if not isinstance(data, dict):
            raise ReceiptScanError("Receipt reply was not a JSON object")

        receipt = ReceiptData(
            amount=self._read_amount(data.get("amount")),
            date=self._read_date(data.get("date")),
            description=str(data.get("description") or "").strip() or "Receipt",
            category=self._read_category(data.get("category")),
        )
        self.client.usage_stats.receipts_scanned += 1
        logger.info(f"Scanned receipt: {receipt.description} {receipt.amount}")
        return receipt

    @staticmethod
    def _read_amount(raw: object) -> Decimal:
        if isinstance(raw, str):
            try:
                amount, _ = parse_amount(raw)
            except ValueError as e:
                raise ReceiptScanError(f"Receipt amount is not a number: {raw!r}") from e
        else:
            if not isinstance(raw, (int, float)) or isinstance(raw, bool):
                raise ReceiptScanError(f"Receipt amount is not a number: {raw!r}")
            value = safe_decimal(raw, default=Decimal("NaN"))
            if not value.is_finite():
                raise ReceiptScanError(f"Receipt amount is not a number: {raw!r}")
            amount = abs(value)
        if amount == 0:
            raise ReceiptScanError("Receipt amount is zero")
        return amount

    def _read_date(self, raw: object) -> date:
        if raw is None or not str(raw).strip():
            return self.today()
        try:
            return parse_date(str(raw))
        except ValueError as e:
            raise ReceiptScanError(f"Receipt date is not a date: {raw!r}") from e

    def _read_category(self, raw: object) -> str:
        category = str(raw or "").strip()
        for name in self.categories:
            if name.lower() == category.lower():
                return name
        return DEFAULT_CATEGORY
