"""Time interval model: wall-clock minutes, turnaround buffers and overlap.

Dates and times are stored as timezone-naive text ("YYYY-MM-DD",
"HH:MM"), so everything here works on substrings and integer minutes
since local midnight. No datetime or timezone objects are involved.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from boatdesk import config

MINUTES_PER_DAY = 24 * 60


class TimeInterval(BaseModel):
    """A same-day booked interval followed by a turnaround buffer."""

    model_config = ConfigDict(frozen=True)

    start_minutes: int = Field(ge=0, lt=MINUTES_PER_DAY)
    duration_minutes: int = Field(gt=0)
    cleanup_minutes: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _within_one_day(self) -> TimeInterval:
        if self.end_minutes > MINUTES_PER_DAY:
            raise ValueError("interval must end by midnight")
        return self

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    @property
    def blocked_end_minutes(self) -> int:
        return self.end_minutes + self.cleanup_minutes


def time_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" (seconds are ignored) to minutes since midnight."""
    parts = time_str.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time format: {time_str!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time value: {time_str!r}")
    return hour * 60 + minute


def minutes_to_time(minutes: int) -> str:
    """Inverse of :func:`time_to_minutes`; values past midnight keep counting hours."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def split_start_at(start_at: str) -> tuple[str, str]:
    """Split "YYYY-MM-DDTHH:MM[:SS]" into ("YYYY-MM-DD", "HH:MM")."""
    return start_at[:10], start_at[11:16]


def is_facility(resource_name: str | None) -> bool:
    """True when the resource name contains one of the facility fragments."""
    if not resource_name:
        return False
    lowered = resource_name.lower()
    return any(fragment.lower() in lowered for fragment in config.FACILITY_NAME_FRAGMENTS)


def cleanup_for(resource_name: str | None, explicit: bool | None = None) -> int:
    """Turnaround minutes for a resource.

    An explicit ``is_facility`` flag on the boat record wins; otherwise the
    name predicate decides.
    """
    facility = explicit if explicit is not None else is_facility(resource_name)
    return 0 if facility else config.CLEANUP_MINUTES


def build_interval(start_time: str, duration_minutes: int, facility: bool) -> TimeInterval:
    return TimeInterval(
        start_minutes=time_to_minutes(start_time),
        duration_minutes=duration_minutes,
        cleanup_minutes=0 if facility else config.CLEANUP_MINUTES,
    )


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """Overlap rule, each side padded by its own turnaround buffer.

    Conflict if a.start < b.blocked_end AND b.start < a.blocked_end.
    Touching boundaries are not conflicts.
    """
    return (
        a.start_minutes < b.blocked_end_minutes
        and b.start_minutes < a.blocked_end_minutes
    )


def format_time_range(interval: TimeInterval) -> str:
    """Nominal "HH:MM-HH:MM" range, without the turnaround buffer."""
    return f"{minutes_to_time(interval.start_minutes)}-{minutes_to_time(interval.end_minutes)}"
