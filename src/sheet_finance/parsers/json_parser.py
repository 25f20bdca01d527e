"""Parser for the two-way script endpoint's JSON rows."""

from sheet_finance.models.transaction import Transaction
from sheet_finance.parsers.base import BaseParser, ParseError


class JSONRowParser(BaseParser):
    """Parser for a decoded JSON array of row objects.

    The endpoint returns one object per sheet row, keyed by the lowercased
    header names (date, amount and optionally id, description, category,
    type, status).
    """

    def parse(self, payload: object) -> list[Transaction]:
        """Parse decoded JSON rows into transactions.

        Args:
            payload: Decoded JSON body.

        Returns:
            Transactions in row order.

        Raises:
            ParseError: If the payload is not a list.
        """
        if not isinstance(payload, list):
            raise ParseError("Script returned invalid data format.", "script")

        transactions = []
        for raw in payload:
            txn = self.normalizer.normalize_json_row(raw)
            if txn is not None:
                transactions.append(txn)

        self._log_result(len(transactions), len(payload))
        return transactions
