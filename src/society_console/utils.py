"""
Utility functions for entity value parsing and display formatting.

Provides helpers for:
- Date parsing (ISO and m/d/y formats)
- Numeric parsing of form text
- Display fallbacks for empty values and missing lookup labels
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any


def parse_date(value: Any) -> date | None:
    """
    Parse a date from a date, datetime or string value.

    Args:
        value: A date/datetime, an ISO string ("2024-12-25",
            "2024-12-25T10:30:00") or an m/d/y string ("12/25/2024").

    Returns:
        date if parsing succeeds, None otherwise.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # Backend DateTime values arrive as ISO strings, sometimes with a time part
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            pass

    return None


def to_nullable_number(value: Any) -> Decimal | None:
    """
    Convert form text or a number to a Decimal.

    Returns:
        Decimal value, or None for blank and non-numeric input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def safe_value(value: Any, fallback: str = "-") -> str:
    """Return a display string for a value, or the fallback when empty."""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, str):
        return value if value.strip() else fallback
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, date):
        return format_date(value, fallback)
    return fallback


def format_date(value: Any, fallback: str = "-") -> str:
    """Format a date as "25-Dec-1991", or the fallback when unparsable."""
    parsed = parse_date(value)
    if parsed is None:
        return fallback
    return parsed.strftime("%d-%b-%Y")


def label_or_id(label: str | None, entity_id: Any, prefix: str = "") -> str:
    """
    Return a lookup label, or a synthesized "#id" label when it is missing.

    Args:
        label: The resolved label, if any.
        entity_id: The referenced id.
        prefix: Optional entity prefix, e.g. "Meter" for "Meter #5".
    """
    if label and label.strip():
        return label
    if entity_id is None or entity_id == "":
        return "-"
    return f"{prefix} #{entity_id}" if prefix else f"#{entity_id}"
