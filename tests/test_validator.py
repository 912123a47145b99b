"""Tests for the booking and batch-assignment business rules."""

from __future__ import annotations

from boatdesk.domain.models import BoatUnavailability, ResourceAssignment, ViolationKind
from boatdesk.services.timeslots import build_interval
from boatdesk.services.validator import (
    check_driver_requirement,
    check_early_booking,
    validate_batch,
    validate_booking,
)

NAMES = {"alice": "Alice", "bob": "Bob", "carol": "Carol"}

G23, G21, TRAMPOLINE = 1, 2, 6


def _assignment(
    booking_id: int | None,
    boat_id: int,
    start: str,
    duration: int,
    coaches: tuple[str, ...] = (),
    drivers: tuple[str, ...] = (),
    name: str = "Guest",
    requires_driver: bool = False,
) -> ResourceAssignment:
    return ResourceAssignment(
        booking_id=booking_id,
        boat_id=boat_id,
        date="2025-06-01",
        interval=build_interval(start, duration, facility=boat_id == TRAMPOLINE),
        coach_ids=list(coaches),
        driver_ids=list(drivers),
        display_name=name,
        requires_driver=requires_driver,
    )


def _kinds(result) -> list[ViolationKind]:
    return [v.kind for v in result.violations]


# ---------------------------------------------------------------------------
# Early-booking rule
# ---------------------------------------------------------------------------


def test_early_booking_without_coach_rejected():
    violation = check_early_booking(_assignment(None, G23, "07:30", 60), hour_limit=8)
    assert violation is not None
    assert violation.kind == ViolationKind.EARLY_BOOKING
    assert "8:00" in violation.message


def test_early_booking_with_coach_accepted():
    assert check_early_booking(_assignment(None, G23, "07:30", 60, coaches=("alice",)), 8) is None


def test_booking_at_the_limit_is_not_early():
    assert check_early_booking(_assignment(None, G23, "08:00", 60), hour_limit=8) is None


def test_early_booking_limit_is_configurable():
    assert check_early_booking(_assignment(None, G23, "08:30", 60), hour_limit=9) is not None


# ---------------------------------------------------------------------------
# Single booking validation
# ---------------------------------------------------------------------------


def test_scenario_same_boat_turnaround_is_a_boat_conflict():
    """Same boat, same coach, 10:05 after a 09:00-10:00 session: boat conflict only."""
    existing = [_assignment(1, G23, "09:00", 60, coaches=("alice",), name="Wang")]
    candidate = _assignment(None, G23, "10:05", 30, coaches=("alice",))

    result = validate_booking(candidate, existing, names=NAMES, hour_limit=8)

    assert not result.ok
    assert _kinds(result) == [ViolationKind.BOAT_CONFLICT]
    assert "Wang" in result.reasons[0]
    assert "10:00" in result.reasons[0]
    assert "too close" in result.reasons[0]


def test_scenario_facility_end_does_not_block_other_boat():
    """Bob ends on the trampoline at 10:00 and can start on a boat at 10:00."""
    existing = [_assignment(1, TRAMPOLINE, "09:00", 60, coaches=("bob",))]
    candidate = _assignment(None, G23, "10:00", 30, coaches=("bob",))

    assert validate_booking(candidate, existing, names=NAMES, hour_limit=8).ok


def test_person_conflict_message_names_person_and_role():
    existing = [_assignment(1, G21, "09:00", 60, drivers=("alice",), name="Lin")]
    candidate = _assignment(None, G23, "09:30", 60, coaches=("alice",))

    result = validate_booking(candidate, existing, names=NAMES, hour_limit=8)

    assert _kinds(result) == [ViolationKind.PERSON_CONFLICT]
    assert result.reasons == ["Alice conflicts with Lin (09:00-10:00 driver)"]


def test_unknown_person_gets_placeholder_name():
    existing = [_assignment(1, G21, "09:00", 60, coaches=("ghost",))]
    candidate = _assignment(None, G23, "09:30", 60, coaches=("ghost",))
    result = validate_booking(candidate, existing, hour_limit=8)
    assert result.reasons[0].startswith("Unknown")


def test_time_off_rejected():
    candidate = _assignment(None, G23, "10:00", 60, coaches=("carol",))
    result = validate_booking(
        candidate, [], names=NAMES, people_on_time_off={"carol"}, hour_limit=8
    )
    assert _kinds(result) == [ViolationKind.PERSON_TIME_OFF]
    assert "Carol" in result.reasons[0]


def test_maintenance_window_rejects_booking():
    window = BoatUnavailability(
        boat_id=G23,
        start_date="2025-06-01",
        end_date="2025-06-01",
        start_time="13:00",
        end_time="15:00",
        reason="Engine service",
    )
    blocked = _assignment(None, G23, "14:00", 60, coaches=("alice",))
    clear = _assignment(None, G23, "12:00", 60, coaches=("alice",))

    result = validate_booking(blocked, [], windows=[window], hour_limit=8)
    assert _kinds(result) == [ViolationKind.BOAT_UNAVAILABLE]
    assert result.reasons == ["Boat unavailable: Engine service"]
    assert validate_booking(clear, [], windows=[window], hour_limit=8).ok


def test_maintenance_on_other_boat_is_ignored():
    window = BoatUnavailability(boat_id=G21, start_date="2025-06-01", end_date="2025-06-01")
    assert validate_booking(
        _assignment(None, G23, "10:00", 60), [], windows=[window], hour_limit=8
    ).ok


def test_all_violations_reported_in_rule_order():
    existing = [
        _assignment(1, G23, "07:00", 60, name="Early bird"),
        _assignment(2, G21, "07:00", 60, coaches=("alice",)),
    ]
    candidate = _assignment(None, G23, "07:30", 60, drivers=("alice",))

    result = validate_booking(candidate, existing, names=NAMES, hour_limit=8)

    assert _kinds(result) == [
        ViolationKind.EARLY_BOOKING,
        ViolationKind.BOAT_CONFLICT,
        ViolationKind.PERSON_CONFLICT,
    ]


# ---------------------------------------------------------------------------
# Driver adequacy
# ---------------------------------------------------------------------------


def test_driver_required_but_missing():
    a = _assignment(1, G23, "10:00", 60, coaches=("alice",), requires_driver=True)
    violation = check_driver_requirement(a)
    assert violation is not None
    assert "requires a driver" in violation.message


def test_single_coach_cannot_also_be_the_only_driver():
    a = _assignment(
        1, G23, "10:00", 60, coaches=("alice",), drivers=("alice",), requires_driver=True
    )
    violation = check_driver_requirement(a)
    assert violation is not None
    assert "different person" in violation.message


def test_second_person_as_driver_is_accepted():
    a = _assignment(
        1, G23, "10:00", 60, coaches=("alice",), drivers=("bob",), requires_driver=True
    )
    assert check_driver_requirement(a) is None


def test_lone_driver_without_coach_needs_more_people():
    a = _assignment(1, G23, "10:00", 60, drivers=("bob",), requires_driver=True)
    violation = check_driver_requirement(a)
    assert violation is not None
    assert "extra driver or a second coach" in violation.message


def test_two_coaches_one_of_them_driving_is_accepted():
    a = _assignment(
        1,
        G23,
        "10:00",
        60,
        coaches=("alice", "bob"),
        drivers=("alice",),
        requires_driver=True,
    )
    assert check_driver_requirement(a) is None


def test_driver_rule_skipped_when_not_required():
    assert check_driver_requirement(_assignment(1, G23, "10:00", 60, coaches=("alice",))) is None


# ---------------------------------------------------------------------------
# Batch validation
# ---------------------------------------------------------------------------


def test_batch_rejects_booking_without_people():
    session = [
        _assignment(1, G23, "09:00", 60, coaches=("alice",), name="Amy"),
        _assignment(2, G21, "10:00", 60, name="Carol"),
        _assignment(3, G23, "11:00", 60, coaches=("bob",), name="Dan"),
    ]

    result = validate_batch(session, [], names=NAMES)

    assert _kinds(result) == [ViolationKind.MISSING_PERSONNEL]
    assert result.violations[0].booking_id == 2
    assert result.reasons == ["10:00-11:00 (Carol) has no coach or driver assigned"]


def test_batch_conflict_between_session_bookings_reported_once():
    session = [
        _assignment(1, G23, "09:00", 60, coaches=("alice",), name="Amy"),
        _assignment(2, G21, "09:30", 60, drivers=("alice",), name="Ben"),
    ]

    result = validate_batch(session, [], names=NAMES)

    assert _kinds(result) == [ViolationKind.PERSON_CONFLICT]
    assert result.reasons == [
        "Alice at 09:00-10:00 (Amy) overlaps 09:30-10:30 (Ben) [driver]"
    ]


def test_batch_same_boat_coach_and_driver_is_fine():
    session = [
        _assignment(1, G23, "09:00", 60, coaches=("alice",)),
        _assignment(2, G23, "09:30", 60, drivers=("alice",)),
    ]
    assert validate_batch(session, [], names=NAMES).ok


def test_batch_checks_stored_bookings_outside_the_session():
    session = [_assignment(1, G23, "09:00", 60, coaches=("alice",))]
    snapshot = [_assignment(9, G21, "09:30", 30, coaches=("alice",), name="Stored")]

    result = validate_batch(session, snapshot, names=NAMES)

    assert _kinds(result) == [ViolationKind.PERSON_CONFLICT]
    assert "(Stored)" in result.reasons[0]


def test_batch_ignores_stored_version_of_session_bookings():
    """People are being moved off booking 2, so its stored links do not count."""
    session = [
        _assignment(1, G23, "09:00", 60, coaches=("alice",)),
        _assignment(2, G21, "09:00", 60, coaches=("bob",)),
    ]
    snapshot = [
        _assignment(1, G23, "09:00", 60, coaches=("bob",)),
        _assignment(2, G21, "09:00", 60, coaches=("alice",)),
    ]
    assert validate_batch(session, snapshot, names=NAMES).ok


def test_batch_reports_every_rule():
    session = [
        _assignment(1, G23, "09:00", 60, coaches=("alice",), requires_driver=True),
        _assignment(2, G21, "09:00", 60, coaches=("alice",)),
        _assignment(3, G23, "13:00", 60),
    ]

    result = validate_batch(session, [], names=NAMES)

    assert _kinds(result) == [
        ViolationKind.PERSON_CONFLICT,
        ViolationKind.DRIVER_REQUIREMENT,
        ViolationKind.MISSING_PERSONNEL,
    ]
