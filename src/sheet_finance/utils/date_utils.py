"""Date parsing and normalization utilities."""

import re
from datetime import date, datetime, timezone

# Common date format patterns
#
# Slash-separated dates (e.g., "03/04/2024") are interpreted as US format
# (MM/DD/YYYY). Period-separated dates (03.04.2024) are read as DD.MM.YYYY.
#
# Two-digit years use Python's strptime pivot:
# - Years 00-68 map to 2000-2068
# - Years 69-99 map to 1969-1999
DATE_PATTERNS = [
    # ISO format (most common, try first)
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})$", "%Y-%m-%d"),
    (r"^(\d{4})/(\d{1,2})/(\d{1,2})$", "%Y/%m/%d"),
    # US formats (MM/DD/YYYY)
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})$", "%m/%d/%Y"),
    (r"^(\d{1,2})/(\d{1,2})/(\d{2})$", "%m/%d/%y"),
    (r"^(\d{1,2})-(\d{1,2})-(\d{4})$", "%m-%d-%Y"),
    # European formats (DD.MM.YYYY)
    (r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$", "%d.%m.%Y"),
    (r"^(\d{1,2})\.(\d{1,2})\.(\d{2})$", "%d.%m.%y"),
    # Text month formats
    (r"^(\d{1,2})-(\w{3})-(\d{4})$", "%d-%b-%Y"),
    (r"^(\d{1,2})\s+(\w{3})\s+(\d{4})$", "%d %b %Y"),
    (r"^(\d{1,2})\s+(\w{4,})\s+(\d{4})$", "%d %B %Y"),
    (r"^(\w{3})\s+(\d{1,2}),?\s+(\d{4})$", "%b %d %Y"),
    (r"^(\w+)\s+(\d{1,2}),?\s+(\d{4})$", "%B %d %Y"),
    # Compact format
    (r"^(\d{4})(\d{2})(\d{2})$", "%Y%m%d"),
]

COMPILED_PATTERNS = [(re.compile(pattern), fmt) for pattern, fmt in DATE_PATTERNS]

# ISO timestamps as produced by spreadsheet scripts: 2023-10-01T17:00:00.000Z
ISO_TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")


def parse_date(raw_date: str) -> date:
    """Parse a raw date string into a date object.

    Handles various formats:
    - ISO: 2024-01-15, 2024/01/15
    - ISO timestamps: 2024-01-15T17:00:00.000Z (converted to the UTC date)
    - US: 01/15/2024, 1/15/24, 01-15-2024
    - European: 15.01.2024
    - Text: 15-Jan-2024, 15 Jan 2024, Jan 15, 2024, January 15 2024
    - Compact: 20240115

    Args:
        raw_date: The raw date string to parse.

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    if isinstance(raw_date, datetime):
        return _utc_date(raw_date)
    if isinstance(raw_date, date):
        return raw_date

    if not raw_date:
        raise ValueError("Empty date string")

    date_str = str(raw_date).strip()
    if not date_str:
        raise ValueError("Empty date string after stripping whitespace")

    if ISO_TIMESTAMP_PATTERN.match(date_str):
        try:
            # fromisoformat() on older interpreters rejects a trailing Z
            normalized = date_str[:-1] + "+00:00" if date_str.endswith("Z") else date_str
            return _utc_date(datetime.fromisoformat(normalized))
        except ValueError:
            pass

    # Commas only separate day and year in textual formats
    compact = date_str.replace(",", " ").strip()
    compact = re.sub(r"\s+", " ", compact)

    for pattern, fmt in COMPILED_PATTERNS:
        candidate = compact if " " in fmt else date_str
        if pattern.match(candidate):
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                # Pattern matched but values were out of range, try next
                continue

    raise ValueError(f"Cannot parse date: '{raw_date}'")


def _utc_date(value: datetime) -> date:
    """Calendar date of a datetime, in UTC when it carries a timezone."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def month_key(d: date) -> str:
    """Year-month bucket key (YYYY-MM) for a date.

    Args:
        d: Date to bucket.

    Returns:
        Key string that sorts chronologically.
    """
    return f"{d.year:04d}-{d.month:02d}"
