"""Lenient calendar-date input for the query API."""

from __future__ import annotations

import re
from datetime import date, datetime

import dateparser

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_booking_date(raw: str | None, today: date) -> str:
    """Turn user input such as "tomorrow" or "2025/11/20" into "YYYY-MM-DD".

    Empty input means *today*. Only the calendar date is kept; time and
    timezone never enter the result. Raises ``ValueError`` when the input
    cannot be read as a date.
    """
    if not raw or not raw.strip():
        return today.isoformat()
    raw = raw.strip()
    if _ISO_DATE.match(raw):
        return date.fromisoformat(raw).isoformat()

    settings = {
        "RELATIVE_BASE": datetime.combine(today, datetime.min.time()),
        "DATE_ORDER": "YMD",
        "RETURN_AS_TIMEZONE_AWARE": False,
    }
    result = dateparser.parse(raw, settings=settings)
    if result is None:
        raise ValueError(f"Could not read a date from {raw!r}")
    return result.date().isoformat()