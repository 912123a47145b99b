"""Service for detecting scheduling conflicts between bookings.

Everything here is pure: callers fetch the day's assignments first and
pass them in, so the functions are cheap enough to run on every edit.
"""

from __future__ import annotations

from collections.abc import Iterable

from boatdesk.domain.models import (
    BoatConflict,
    BoatConflictKind,
    Conflict,
    ConflictReport,
    ResourceAssignment,
)
from boatdesk.services.timeslots import overlaps


def _is_same_booking(a: ResourceAssignment, b: ResourceAssignment) -> bool:
    # Unsaved drafts have no id and never match anything.
    return a.booking_id is not None and a.booking_id == b.booking_id


def detect_conflicts(
    candidate: ResourceAssignment,
    others: Iterable[ResourceAssignment],
) -> ConflictReport:
    """Return every person double-booked between *candidate* and *others*.

    Bookings on the candidate's own boat are skipped (a coach may drive the
    boat they are teaching on), as is the candidate's own booking. Entries
    come out in the order *others* and the candidate's people were given.
    """
    conflicts: list[Conflict] = []
    candidate_people = candidate.person_ids

    for other in others:
        if other.boat_id == candidate.boat_id:
            continue
        if _is_same_booking(candidate, other):
            continue

        other_people = set(other.person_ids)
        shared = [p for p in candidate_people if p in other_people]
        if not shared or not overlaps(candidate.interval, other.interval):
            continue

        for person_id in shared:
            conflicts.append(
                Conflict(
                    person_id=person_id,
                    booking_id=candidate.booking_id,
                    other_booking_id=other.booking_id,
                    other_display_name=other.display_name,
                    other_time_range=other.time_range,
                    role=other.role_of(person_id),
                )
            )

    return ConflictReport(conflicts=conflicts)


def _boat_conflict_kind(
    candidate: ResourceAssignment, other: ResourceAssignment
) -> BoatConflictKind:
    mine, theirs = candidate.interval, other.interval
    if theirs.end_minutes <= mine.start_minutes < theirs.blocked_end_minutes:
        return BoatConflictKind.TOO_CLOSE_AFTER
    if mine.end_minutes <= theirs.start_minutes < mine.blocked_end_minutes:
        return BoatConflictKind.TOO_CLOSE_BEFORE
    return BoatConflictKind.OVERLAP


def detect_boat_conflicts(
    candidate: ResourceAssignment,
    others: Iterable[ResourceAssignment],
) -> list[BoatConflict]:
    """Return other bookings on the same boat whose padded intervals overlap."""
    found: list[BoatConflict] = []
    for other in others:
        if other.boat_id != candidate.boat_id or _is_same_booking(candidate, other):
            continue
        if overlaps(candidate.interval, other.interval):
            found.append(
                BoatConflict(
                    other_booking_id=other.booking_id,
                    other_display_name=other.display_name,
                    other_interval=other.interval,
                    kind=_boat_conflict_kind(candidate, other),
                )
            )
    return found


def find_available_people(
    booking_id: int,
    person_ids: Iterable[str],
    session: Iterable[ResourceAssignment],
) -> list[str]:
    """Return the people who could still be added to *booking_id*.

    A person is busy when another assignment in *session* (on a different
    boat) already holds them as coach or driver at an overlapping time.
    """
    session = list(session)
    target = next((a for a in session if a.booking_id == booking_id), None)
    if target is None:
        return list(person_ids)

    available: list[str] = []
    for person_id in person_ids:
        probe = target.model_copy(update={"coach_ids": [person_id], "driver_ids": []})
        if not detect_conflicts(probe, session).has_conflict:
            available.append(person_id)
    return available
