"""
Date helpers. All article dates are UTC calendar days in "YYYY-MM-DD" form.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

from dateutil.parser import isoparse

_CANONICAL_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateInput = Union[str, date, datetime, None]


def today_utc() -> str:
    """Current UTC calendar day."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def normalize_date(value: DateInput) -> Optional[str]:
    """
    Normalize a date-ish value to "YYYY-MM-DD" (UTC).

    Strings must be "YYYY-MM-DD" or a full ISO timestamp starting with it.
    Returns None for empty, partial or unparseable input.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")

    text = str(value).strip()
    if _CANONICAL_DATE.match(text):
        try:
            datetime.strptime(text, "%Y-%m-%d")
        except ValueError:
            return None
        return text

    # Only full timestamps ("YYYY-MM-DDTHH:MM..."); partial and basic ISO forms are rejected
    day_part, sep, _ = text.partition("T")
    if not sep or not _CANONICAL_DATE.match(day_part):
        return None
    try:
        parsed = isoparse(text)
    except (ValueError, OverflowError):
        return None
    return normalize_date(parsed)


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_display_date(day: str) -> str:
    """'2026-01-10' -> 'January 10th, 2026'"""
    parsed = datetime.strptime(day, "%Y-%m-%d")
    return f"{parsed:%B} {_ordinal(parsed.day)}, {parsed.year}"


def date_seed(day: str) -> int:
    """Deterministic generation seed for a date ('2026-01-10' -> 20260110)."""
    return int(day.replace("-", ""))
