"""Service for expanding a weekly repeat booking into individual dates."""

from __future__ import annotations

from datetime import date, datetime

from dateutil.rrule import WEEKLY, rrule


def weekly_dates(first: str, count: int | None = None, until: str | None = None) -> list[str]:
    """Return "YYYY-MM-DD" dates, one week apart, starting at *first*.

    Stops after *count* occurrences, or on the last week not after *until*
    (inclusive). Exactly one of the two must be given.
    """
    if (count is None) == (until is None):
        raise ValueError("exactly one of count or until is required")

    start = date.fromisoformat(first)
    if until is not None:
        # rrule compares datetimes; end of day keeps *until* inclusive
        end = datetime.combine(date.fromisoformat(until), datetime.max.time())
        rule = rrule(WEEKLY, dtstart=start, until=end)
    else:
        rule = rrule(WEEKLY, dtstart=start, count=count)

    return [dt.date().isoformat() for dt in rule]
