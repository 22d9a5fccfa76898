"""
Time utilities for the Project Tracker application.

All timestamps are produced here and every date leaving the API is rendered
through ``to_date_string`` so the wire format stays ``YYYY-MM-DD``.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time.
    Single source of truth for "now" throughout the application.

    Returns:
        timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def to_date_string(value: Optional[datetime]) -> str:
    """
    Render a timestamp as a date-only string.

    Args:
        value: datetime to render, or None

    Returns:
        "YYYY-MM-DD", or an empty string when value is None
    """
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def parse_due_date(raw: str) -> datetime:
    """
    Parse a client supplied due date.

    Accepts a plain date ("2024-05-01") or a full ISO-8601 timestamp.
    Naive values are taken to be UTC.

    Raises:
        ValueError: if the string is not a recognisable date
    """
    raw = raw.strip()
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
