"""
BroadbandBoost - Field Parsing Helpers

Coercion of raw source values (CSV strings, warehouse cells) into model types.
"""

from datetime import date, datetime
from typing import Any, Optional


def parse_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce a raw value to float.

    Args:
        value: Raw value (number, numeric string, None or empty string)
        default: Value returned for None or empty input

    Returns:
        Parsed float

    Raises:
        ValueError: If the value is present but not numeric
    """
    if value is None:
        return default
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return default
    return float(value)


def parse_date(value: Any) -> Optional[date]:
    """
    Coerce a raw value to a date.

    Accepts date/datetime objects and ISO 8601 strings ("2025-01-25" or
    "2025-01-25T10:00:00Z"). None and empty strings map to None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if len(text) > 10:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def parse_optional_str(value: Any) -> Optional[str]:
    """Strip a raw value to a string, mapping None and blanks to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def clamp_pct(value: float) -> float:
    """Clamp a percentage into [0, 100]."""
    return max(0.0, min(100.0, value))
