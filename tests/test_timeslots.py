"""Tests for the time interval model."""

from __future__ import annotations

import pytest

from boatdesk.services.timeslots import (
    TimeInterval,
    build_interval,
    cleanup_for,
    format_time_range,
    is_facility,
    minutes_to_time,
    overlaps,
    split_start_at,
    time_to_minutes,
)


def _interval(start: int, duration: int, cleanup: int = 0) -> TimeInterval:
    return TimeInterval(start_minutes=start, duration_minutes=duration, cleanup_minutes=cleanup)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text, minutes",
    [("00:00", 0), ("09:30", 570), ("12:00", 720), ("23:59", 1439), ("10:00:00", 600)],
)
def test_time_to_minutes(text, minutes):
    assert time_to_minutes(text) == minutes


@pytest.mark.parametrize("bad", ["25:00", "10:61", "1000", ""])
def test_time_to_minutes_rejects_garbage(bad):
    with pytest.raises(ValueError):
        time_to_minutes(bad)


def test_minutes_to_time_pads():
    assert minutes_to_time(65) == "01:05"
    assert minutes_to_time(0) == "00:00"
    assert minutes_to_time(885) == "14:45"


def test_split_start_at_uses_substrings():
    """Naive timestamps are split as text, never parsed into a timezone."""
    assert split_start_at("2025-11-20T14:45:00") == ("2025-11-20", "14:45")


# ---------------------------------------------------------------------------
# Facility predicate and cleanup buffer
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "name, expected",
    [
        ("彈簧床", True),
        ("大彈簧床 A", True),
        ("Water Trampoline", True),
        ("G23", False),
        ("G21", False),
        ("黑豹", False),
        ("", False),
        (None, False),
    ],
)
def test_is_facility_matches_by_containment(name, expected):
    assert is_facility(name) is expected


def test_cleanup_for_name_and_explicit_flag():
    assert cleanup_for("G23") == 15
    assert cleanup_for("彈簧床") == 0
    # An explicit flag on the boat record overrides the name
    assert cleanup_for("G23", explicit=True) == 0
    assert cleanup_for("彈簧床", explicit=False) == 15


def test_build_interval_adds_buffer_for_boats():
    interval = build_interval("10:00", 60, facility=False)
    assert interval.start_minutes == 600
    assert interval.end_minutes == 660
    assert interval.blocked_end_minutes == 675


def test_build_interval_no_buffer_for_facilities():
    interval = build_interval("10:00", 60, facility=True)
    assert interval.blocked_end_minutes == interval.end_minutes == 660


@pytest.mark.parametrize("duration", [0, -30])
def test_interval_requires_positive_duration(duration):
    with pytest.raises(ValueError):
        _interval(600, duration)


def test_interval_rejects_negative_start():
    with pytest.raises(ValueError):
        _interval(-1, 30)


def test_interval_must_end_by_midnight():
    assert _interval(1410, 30).end_minutes == 1440
    with pytest.raises(ValueError):
        _interval(1410, 60)
    with pytest.raises(ValueError):
        build_interval("23:30", 60, facility=True)


def test_buffer_may_run_past_midnight():
    assert _interval(1410, 30, cleanup=15).blocked_end_minutes == 1455


# ---------------------------------------------------------------------------
# Overlap
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "a, b",
    [
        (_interval(540, 60, 15), _interval(605, 30, 15)),
        (_interval(540, 60, 0), _interval(600, 30, 15)),
        (_interval(540, 60, 15), _interval(700, 30, 0)),
        (_interval(600, 30, 0), _interval(540, 120, 15)),
    ],
)
def test_overlap_is_symmetric(a, b):
    assert overlaps(a, b) == overlaps(b, a)


def test_facility_boundary_touch_is_not_a_conflict():
    existing = _interval(40, 60, cleanup=0)  # ends at minute 100
    assert not overlaps(existing, _interval(100, 30, cleanup=0))


def test_turnaround_buffer_boundary():
    existing = _interval(40, 60, cleanup=15)  # ends at 100, blocked until 115
    assert overlaps(existing, _interval(110, 30, cleanup=15))
    assert not overlaps(existing, _interval(115, 30, cleanup=15))


def test_each_side_uses_its_own_buffer():
    """A facility's zero buffer is not widened by the other side's buffer."""
    facility = _interval(540, 60, cleanup=0)  # 09:00-10:00
    boat = _interval(600, 30, cleanup=15)  # 10:00-10:30 (+15)
    assert not overlaps(facility, boat)


def test_format_time_range_is_nominal():
    assert format_time_range(_interval(540, 60, cleanup=15)) == "09:00-10:00"
