"""Boat maintenance windows and coach time-off."""

from __future__ import annotations

from collections.abc import Iterable

from boatdesk.domain.models import BoatUnavailability, CoachTimeOff
from boatdesk.services.timeslots import MINUTES_PER_DAY, TimeInterval, time_to_minutes


def find_boat_unavailability(
    windows: Iterable[BoatUnavailability],
    date: str,
    interval: TimeInterval,
) -> BoatUnavailability | None:
    """Return the first active window that blocks *interval* on *date*.

    Only the nominal booking time counts here, not the turnaround buffer.
    """
    for window in windows:
        if not window.is_active:
            continue
        if not (window.start_date <= date <= window.end_date):
            continue

        # Whole-day window
        if not window.start_time and not window.end_time:
            return window

        # Times only clip the first and last day of a multi-day window
        blocked_start = 0
        blocked_end = MINUTES_PER_DAY
        if window.start_date == date and window.start_time:
            blocked_start = time_to_minutes(window.start_time)
        if window.end_date == date and window.end_time:
            blocked_end = time_to_minutes(window.end_time)

        if interval.start_minutes < blocked_end and blocked_start < interval.end_minutes:
            return window
    return None


def coaches_on_time_off(records: Iterable[CoachTimeOff], date: str) -> set[str]:
    return {
        r.coach_id
        for r in records
        if r.start_date <= date and (r.end_date is None or date <= r.end_date)
    }
