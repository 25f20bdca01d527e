"""Decimal utilities for monetary amounts.

Amounts are kept as Decimal so that category breakdowns and trend buckets
add up exactly to the running totals.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional


# Currency markers stripped before parsing
CURRENCY_SYMBOLS = ("IDR", "USD", "EUR", "Rp", "$", "€", "£", "¥", "₹", "₩")

# Regex for parentheses-enclosed negatives: (Rp1,000) or (50000)
PARENS_NEGATIVE_PATTERN = re.compile(r"^\s*\(\s*([^)]*)\s*\)\s*$")


def parse_amount(raw_amount: str) -> tuple[Decimal, bool]:
    """Parse a raw amount string into a magnitude and a sign flag.

    Handles:
    - Plain numbers: 1234.56, -1234.56
    - Currency markers: $12.50, Rp1,000, €3
    - Comma digit grouping: 1,234,567.89
    - Accounting negatives: (50000), ($1,234.56), (Rp1,000)

    Commas are always treated as digit-group separators, never as a
    decimal mark.

    Args:
        raw_amount: The raw amount string to parse.

    Returns:
        Tuple of (absolute amount as Decimal, is_negative flag).

    Raises:
        ValueError: If the amount cannot be parsed or is not finite.
    """
    if not raw_amount or not raw_amount.strip():
        raise ValueError("Empty amount string")

    original = raw_amount
    amount_str = raw_amount.strip()
    is_negative = False

    # Symbols may sit outside the parentheses ("$(12.50)")
    for symbol in CURRENCY_SYMBOLS:
        amount_str = amount_str.replace(symbol, "")
    amount_str = amount_str.replace(",", "").replace("\u00a0", "").replace(" ", "")

    parens_match = PARENS_NEGATIVE_PATTERN.match(amount_str)
    if parens_match:
        amount_str = parens_match.group(1).strip()
        is_negative = True

    if amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]
    elif amount_str.startswith("+"):
        amount_str = amount_str[1:]

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{original}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Amount is not a finite number: '{original}'")

    return abs(amount), is_negative


def format_currency(
    amount: Decimal,
    decimal_places: int = 2,
    include_sign: bool = True,
) -> str:
    """Format a Decimal amount for display.

    Args:
        amount: The amount to format.
        decimal_places: Number of decimal places (default 2).
        include_sign: Whether to include sign for negative amounts.

    Returns:
        Formatted string like "-1,234.56" or "1,234.56".
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "0"
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)

    if include_sign and rounded < 0:
        return f"-{abs(rounded):,}"
    return f"{abs(rounded):,}"


def safe_decimal(value: Optional[object], default: Decimal = Decimal("0")) -> Decimal:
    """Coerce a loosely typed value to Decimal, falling back to a default.

    Booleans are rejected, blanks and non-finite values give the default.

    Args:
        value: Value to convert (string, int, float, Decimal, or None).
        default: Default value if conversion fails.

    Returns:
        Decimal value or default.
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            # Convert via str to keep the shortest repr
            result = Decimal(str(value))
        elif isinstance(value, str):
            if not value.strip():
                return default
            result = Decimal(value.strip())
        else:
            return default
    except (InvalidOperation, ValueError):
        return default

    if not result.is_finite():
        return default
    return result

