"""Sanitization utilities for values written to spreadsheets."""

from typing import Optional


# Characters that trigger formula execution in spreadsheet applications
# when they appear at the start of a cell value
_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n", "|")


def sanitize_for_sheet(value: Optional[str]) -> Optional[str]:
    """Sanitize a text cell before it is written to a spreadsheet.

    Values starting with a formula-triggering character are prefixed with
    a single quote so the sheet stores them as literal text. Both the
    script endpoint's appendRow and exported CSV files are affected.

    Args:
        value: String value to sanitize, or None.

    Returns:
        Sanitized string, or None if input was None.
    """
    if value is None:
        return None

    if not value:
        return value

    if value.startswith(_FORMULA_CHARS):
        return "'" + value

    return value
