"""Business rules layered on top of conflict detection.

Two entry points:

* :func:`validate_booking` for creating or editing a single booking
  (early-booking rule, boat maintenance, boat turnaround, time-off,
  person conflicts);
* :func:`validate_batch` for saving a day's coach / driver assignments
  (person conflicts, driver adequacy, completeness).

Every rule runs and every violation is returned, in rule order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from boatdesk import config
from boatdesk.domain.models import (
    BoatConflict,
    BoatConflictKind,
    BoatUnavailability,
    ResourceAssignment,
    ValidationResult,
    Violation,
    ViolationKind,
)
from boatdesk.services.availability import find_boat_unavailability
from boatdesk.services.conflicts import detect_boat_conflicts, detect_conflicts
from boatdesk.services.timeslots import minutes_to_time

UNKNOWN_PERSON = "Unknown"


def _name(names: Mapping[str, str], person_id: str) -> str:
    return names.get(person_id, UNKNOWN_PERSON)


def _label(assignment: ResourceAssignment) -> str:
    return f"{assignment.time_range} ({assignment.display_name})"


# ---------------------------------------------------------------------------
# Single-booking rules
# ---------------------------------------------------------------------------


def check_early_booking(
    candidate: ResourceAssignment, hour_limit: int | None = None
) -> Violation | None:
    limit = config.EARLY_BOOKING_HOUR_LIMIT if hour_limit is None else hour_limit
    if candidate.interval.start_minutes < limit * 60 and not candidate.coach_ids:
        return Violation(
            kind=ViolationKind.EARLY_BOOKING,
            booking_id=candidate.booking_id,
            message=f"Bookings before {limit}:00 must have a coach assigned",
        )
    return None


def check_boat_availability(
    candidate: ResourceAssignment, windows: Iterable[BoatUnavailability]
) -> Violation | None:
    window = find_boat_unavailability(
        (w for w in windows if w.boat_id == candidate.boat_id),
        candidate.date,
        candidate.interval,
    )
    if window is None:
        return None
    return Violation(
        kind=ViolationKind.BOAT_UNAVAILABLE,
        booking_id=candidate.booking_id,
        message=f"Boat unavailable: {window.reason}",
    )


def _boat_conflict_message(candidate: ResourceAssignment, found: BoatConflict) -> str:
    mine, theirs = candidate.interval, found.other_interval
    name = found.other_display_name
    if found.kind == BoatConflictKind.TOO_CLOSE_AFTER:
        return (
            f"Conflicts with {name}'s booking: it ends at "
            f"{minutes_to_time(theirs.end_minutes)} and the boat needs "
            f"{theirs.cleanup_minutes} minutes of turnaround; "
            f"{candidate.start_time} is too close"
        )
    if found.kind == BoatConflictKind.TOO_CLOSE_BEFORE:
        return (
            f"Conflicts with {name}'s booking: yours ends at "
            f"{minutes_to_time(mine.end_minutes)} and {name} starts at "
            f"{minutes_to_time(theirs.start_minutes)}; the boat needs "
            f"{mine.cleanup_minutes} minutes of turnaround"
        )
    return (
        f"Overlaps {name}'s booking: your time {candidate.time_range}, "
        f"{name}'s time {found.other_time_range}"
    )


def check_boat_conflicts(
    candidate: ResourceAssignment, others: Iterable[ResourceAssignment]
) -> list[Violation]:
    return [
        Violation(
            kind=ViolationKind.BOAT_CONFLICT,
            booking_id=candidate.booking_id,
            message=_boat_conflict_message(candidate, found),
        )
        for found in detect_boat_conflicts(candidate, others)
    ]


def check_time_off(
    candidate: ResourceAssignment,
    people_on_time_off: set[str],
    names: Mapping[str, str],
) -> list[Violation]:
    return [
        Violation(
            kind=ViolationKind.PERSON_TIME_OFF,
            booking_id=candidate.booking_id,
            message=f"{_name(names, pid)} is on time off on {candidate.date}",
        )
        for pid in candidate.person_ids
        if pid in people_on_time_off
    ]


def check_person_conflicts(
    candidate: ResourceAssignment,
    others: Iterable[ResourceAssignment],
    names: Mapping[str, str],
) -> list[Violation]:
    report = detect_conflicts(candidate, others)
    return [
        Violation(
            kind=ViolationKind.PERSON_CONFLICT,
            booking_id=candidate.booking_id,
            message=(
                f"{_name(names, c.person_id)} conflicts with {c.other_display_name} "
                f"({c.other_time_range} {c.role})"
            ),
        )
        for c in report.conflicts
    ]


def validate_booking(
    candidate: ResourceAssignment,
    others: Iterable[ResourceAssignment],
    *,
    names: Mapping[str, str] | None = None,
    windows: Iterable[BoatUnavailability] = (),
    people_on_time_off: set[str] | None = None,
    hour_limit: int | None = None,
) -> ValidationResult:
    """Run every single-booking rule against a snapshot of the same day."""
    names = names or {}
    others = list(others)
    violations: list[Violation] = []

    early = check_early_booking(candidate, hour_limit)
    if early:
        violations.append(early)

    unavailable = check_boat_availability(candidate, windows)
    if unavailable:
        violations.append(unavailable)

    violations.extend(check_boat_conflicts(candidate, others))
    violations.extend(check_time_off(candidate, people_on_time_off or set(), names))
    violations.extend(check_person_conflicts(candidate, others, names))
    return ValidationResult(violations=violations)


# ---------------------------------------------------------------------------
# Batch assignment rules
# ---------------------------------------------------------------------------


def check_driver_requirement(assignment: ResourceAssignment) -> Violation | None:
    """A booking flagged ``requires_driver`` needs a second pair of hands."""
    if not assignment.requires_driver:
        return None

    only_drivers = [d for d in assignment.driver_ids if d not in assignment.coach_ids]
    coach_count = len(assignment.coach_ids)
    total_people = coach_count + len(only_drivers)

    if not assignment.driver_ids:
        problem = "requires a driver"
    elif coach_count == 1 and not only_drivers:
        problem = "has a single coach, so the driver must be a different person"
    elif total_people == 1:
        problem = "needs an extra driver or a second coach"
    else:
        return None

    return Violation(
        kind=ViolationKind.DRIVER_REQUIREMENT,
        booking_id=assignment.booking_id,
        message=f"{_label(assignment)} {problem}",
    )


def check_completeness(assignments: Iterable[ResourceAssignment]) -> list[Violation]:
    return [
        Violation(
            kind=ViolationKind.MISSING_PERSONNEL,
            booking_id=a.booking_id,
            message=f"{_label(a)} has no coach or driver assigned",
        )
        for a in assignments
        if not a.coach_ids and not a.driver_ids
    ]


def check_batch_conflicts(
    session: list[ResourceAssignment],
    snapshot: Iterable[ResourceAssignment],
    names: Mapping[str, str],
) -> list[Violation]:
    """Person conflicts inside the editing session and against stored bookings.

    Stored bookings that are part of the session are ignored, since their
    people are about to be replaced. A conflict between two session bookings
    is reported once, not once from each side.
    """
    editing_ids = {a.booking_id for a in session}
    outside = [a for a in snapshot if a.booking_id not in editing_ids]
    by_id = {a.booking_id: a for a in [*session, *outside]}

    violations: list[Violation] = []
    seen: set[tuple[str, frozenset]] = set()
    for assignment in session:
        for c in detect_conflicts(assignment, [*session, *outside]).conflicts:
            key = (c.person_id, frozenset((c.booking_id, c.other_booking_id)))
            if key in seen:
                continue
            seen.add(key)
            other = by_id[c.other_booking_id]
            violations.append(
                Violation(
                    kind=ViolationKind.PERSON_CONFLICT,
                    booking_id=assignment.booking_id,
                    message=(
                        f"{_name(names, c.person_id)} at {_label(assignment)} "
                        f"overlaps {_label(other)} [{c.role}]"
                    ),
                )
            )
    return violations


def validate_batch(
    session: Iterable[ResourceAssignment],
    snapshot: Iterable[ResourceAssignment] = (),
    *,
    names: Mapping[str, str] | None = None,
) -> ValidationResult:
    """Validate a day's edited assignments before anything is written."""
    session = list(session)
    names = names or {}

    violations = check_batch_conflicts(session, snapshot, names)
    for assignment in session:
        issue = check_driver_requirement(assignment)
        if issue:
            violations.append(issue)
    violations.extend(check_completeness(session))
    return ValidationResult(violations=violations)
