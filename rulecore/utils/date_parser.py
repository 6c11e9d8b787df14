"""Date parsing utilities for rule effective windows."""

from __future__ import annotations

from datetime import date, datetime

# Reasonable bounds for rule effective dates
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2200


def parse_flexible_date(value: str | date | None) -> date | None:
    """Parse a date from multiple common formats with validation.

    Supports the following formats:
    - ISO 8601: YYYY-MM-DD (e.g., 2024-01-15), optionally with a time part
    - US format: MM/DD/YYYY (e.g., 01/15/2024)
    - Compact: YYYYMMDD (e.g., 20240115)

    ``date`` and ``datetime`` instances are accepted as-is (datetimes are
    truncated to their date).

    Args:
        value: Date string or date to parse, or None

    Returns:
        Parsed date, or None if parsing fails or input is None

    Examples:
        >>> parse_flexible_date("2024-01-15")
        datetime.date(2024, 1, 15)
        >>> parse_flexible_date("2024-01-15T10:30:00Z")
        datetime.date(2024, 1, 15)
        >>> parse_flexible_date("01/15/2024")
        datetime.date(2024, 1, 15)
        >>> parse_flexible_date("2024-02-30")  # Invalid date
        None
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = value.strip()
    # Drop a trailing time part from ISO timestamps
    if len(text) > 10 and text[4:5] == "-" and text[10:11] in ("T", " "):
        text = text[:10]

    formats = [
        "%Y-%m-%d",  # ISO 8601
        "%m/%d/%Y",  # US format
        "%Y%m%d",  # Compact
    ]

    for fmt in formats:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            # strptime raises ValueError for invalid dates like Feb 30
            continue
        if parsed.year < MIN_VALID_YEAR or parsed.year > MAX_VALID_YEAR:
            continue
        return parsed.date()

    return None
