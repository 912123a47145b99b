"""Tests for boat maintenance windows and coach time-off."""

from __future__ import annotations

import pytest

from boatdesk.domain.models import BoatUnavailability, CoachTimeOff
from boatdesk.services.availability import coaches_on_time_off, find_boat_unavailability
from boatdesk.services.timeslots import build_interval


def _window(**overrides) -> BoatUnavailability:
    defaults = dict(
        boat_id=1,
        start_date="2025-06-01",
        end_date="2025-06-03",
        start_time="10:00",
        end_time="12:00",
        reason="Hull repair",
    )
    defaults.update(overrides)
    return BoatUnavailability(**defaults)


def test_whole_day_window_blocks_any_time():
    window = _window(start_time=None, end_time=None)
    interval = build_interval("06:00", 30, facility=False)
    assert find_boat_unavailability([window], "2025-06-02", interval) is window


def test_multi_day_window_blocks_middle_day_entirely():
    interval = build_interval("07:00", 30, facility=False)
    assert find_boat_unavailability([_window()], "2025-06-02", interval) is not None


def test_start_time_clips_first_day():
    window = _window()
    before = build_interval("09:00", 30, facility=False)
    after = build_interval("10:30", 30, facility=False)
    assert find_boat_unavailability([window], "2025-06-01", before) is None
    assert find_boat_unavailability([window], "2025-06-01", after) is window


def test_end_time_clips_last_day():
    window = _window()
    assert find_boat_unavailability(
        [window], "2025-06-03", build_interval("11:30", 60, facility=False)
    ) is window
    assert find_boat_unavailability(
        [window], "2025-06-03", build_interval("12:00", 60, facility=False)
    ) is None


def test_turnaround_buffer_not_counted_against_window():
    # 08:30-09:30 ends before a 09:30 window start even with 15 min turnaround
    window = _window(start_date="2025-06-01", end_date="2025-06-01", start_time="09:30")
    interval = build_interval("08:30", 60, facility=False)
    assert find_boat_unavailability([window], "2025-06-01", interval) is None


def test_inactive_and_out_of_range_windows_ignored():
    interval = build_interval("11:00", 30, facility=False)
    windows = [_window(is_active=False), _window(start_date="2025-07-01", end_date="2025-07-02")]
    assert find_boat_unavailability(windows, "2025-06-02", interval) is None


def test_coaches_on_time_off():
    records = [
        CoachTimeOff(coach_id="alice", start_date="2025-06-01", end_date="2025-06-05"),
        CoachTimeOff(coach_id="bob", start_date="2025-05-01"),  # open-ended
        CoachTimeOff(coach_id="carol", start_date="2025-06-10", end_date="2025-06-12"),
    ]
    assert coaches_on_time_off(records, "2025-06-05") == {"alice", "bob"}
    assert coaches_on_time_off(records, "2025-06-06") == {"bob"}
    assert coaches_on_time_off(records, "2025-04-30") == set()


@pytest.mark.parametrize("field", ["start_time", "end_time"])
@pytest.mark.parametrize("value", ["24:00", "99:99", "10:75"])
def test_window_rejects_out_of_range_times(field, value):
    with pytest.raises(ValueError):
        _window(**{field: value})
