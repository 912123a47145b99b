"""Coach / driver assignment for one day's bookings.

The assignment page edits many bookings at once. :meth:`AssignmentService.preview`
gives live feedback for one booking inside that editing session;
:meth:`AssignmentService.save_all` validates the whole session and only then
writes the bookings that actually changed.
"""

from __future__ import annotations

import logging

from boatdesk.domain.bus import EventBus
from boatdesk.domain.events import AssignmentChanged
from boatdesk.domain.models import (
    AssignmentDraft,
    AssignmentPreviewRequest,
    AssignmentPreviewResponse,
    Booking,
    DailyAssignment,
    ResourceAssignment,
    SaveAssignmentsRequest,
    SaveAssignmentsResponse,
)
from boatdesk.errors import NotFoundError, PartialWriteError, RepositoryError, raise_for_violations
from boatdesk.repos.memory import BookingRepository, CoachRepository
from boatdesk.services.conflicts import find_available_people
from boatdesk.services.validator import check_person_conflicts, validate_batch

logger = logging.getLogger(__name__)

NO_CHANGES = "No changes to save"


def _apply(base: ResourceAssignment, draft: AssignmentDraft) -> ResourceAssignment:
    return base.model_copy(
        update={
            "coach_ids": list(dict.fromkeys(draft.coach_ids)),
            "driver_ids": list(dict.fromkeys(draft.driver_ids)),
            "requires_driver": draft.requires_driver,
        }
    )


class AssignmentService:
    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        coach_repo: CoachRepository,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.coach_repo = coach_repo

    def list_day(self, date: str) -> list[DailyAssignment]:
        day: list[DailyAssignment] = []
        for booking in self.booking_repo.list_for_date(date):
            assignment = self.booking_repo.to_assignment(booking)
            day.append(
                DailyAssignment(
                    booking=booking,
                    boat_name=assignment.resource_name,
                    display_name=assignment.display_name,
                    time_range=assignment.time_range,
                    coach_ids=assignment.coach_ids,
                    driver_ids=assignment.driver_ids,
                )
            )
        return day

    def preview(self, request: AssignmentPreviewRequest) -> AssignmentPreviewResponse:
        """Live conflicts and free people for one booking in an editing session.

        The session is every booking of the day, with the request's drafts
        laid over the stored coaches and drivers.
        """
        overrides = {d.booking_id: d for d in request.assignments}
        session = [
            _apply(a, overrides[a.booking_id]) if a.booking_id in overrides else a
            for a in self.booking_repo.fetch_assignments_for_date(request.date)
        ]
        target = next((a for a in session if a.booking_id == request.booking_id), None)
        if target is None:
            raise NotFoundError(f"Booking {request.booking_id} not found on {request.date}")

        violations = check_person_conflicts(target, session, self.coach_repo.names())
        available = find_available_people(
            request.booking_id,
            [c.id for c in self.coach_repo.list_all()],
            session,
        )
        return AssignmentPreviewResponse(
            booking_id=request.booking_id,
            conflicts=[v.message for v in violations],
            available_person_ids=available,
        )

    def save_all(self, request: SaveAssignmentsRequest) -> SaveAssignmentsResponse:
        bookings = [self._booking_on(d.booking_id, request.date) for d in request.assignments]
        session = [
            _apply(self.booking_repo.to_assignment(b), d)
            for b, d in zip(bookings, request.assignments)
        ]

        person_ids = {p for a in session for p in a.person_ids}
        snapshot = (
            self.booking_repo.fetch_person_schedule(person_ids, request.date)
            if person_ids
            else []
        )
        result = validate_batch(session, snapshot, names=self.coach_repo.names())
        if not result.ok:
            logger.info("Assignment save for %s rejected: %s", request.date, result.reasons)
        raise_for_violations(result.violations)

        pending: list[tuple[AssignmentDraft, list[str]]] = []
        for booking, draft in zip(bookings, request.assignments):
            changes = self._describe_changes(booking, draft)
            if changes:
                pending.append((draft, changes))

        if not pending:
            return SaveAssignmentsResponse(message=NO_CHANGES)

        applied: list[int] = []
        for draft, _ in pending:
            try:
                self.booking_repo.save_assignment(
                    draft.booking_id,
                    draft.coach_ids,
                    draft.driver_ids,
                    draft.notes,
                    draft.requires_driver,
                )
            except RepositoryError as exc:
                # Earlier bookings stay written; this one may have lost its people.
                logger.error(
                    "Assignment save stopped at booking %s after %d booking(s): %s",
                    draft.booking_id,
                    len(applied),
                    exc.message,
                )
                raise PartialWriteError(exc.message, applied) from exc
            applied.append(draft.booking_id)

        for draft, changes in pending:
            self.bus.publish(
                AssignmentChanged(
                    booking_id=draft.booking_id,
                    user_email=request.user_email,
                    changes=changes,
                )
            )

        logger.info("Saved assignments for %d booking(s) on %s", len(applied), request.date)
        return SaveAssignmentsResponse(
            changed_booking_ids=applied,
            message=f"Saved {len(applied)} booking(s)",
        )

    # ------------------------------------------------------------------

    def _booking_on(self, booking_id: int, date: str) -> Booking:
        booking = self.booking_repo.get(booking_id)
        if booking is None or booking.date != date:
            raise NotFoundError(f"Booking {booking_id} not found on {date}")
        return booking

    def _describe_changes(self, booking: Booking, draft: AssignmentDraft) -> list[str]:
        names = self.coach_repo.names()

        def people(ids: list[str]) -> str:
            return "、".join(names.get(i, "?") for i in ids) or "none"

        current_coaches = self.booking_repo.coach_ids(booking.id)
        current_drivers = self.booking_repo.driver_ids(booking.id)
        current_notes = booking.schedule_notes or ""

        changes: list[str] = []
        if sorted(current_coaches) != sorted(set(draft.coach_ids)):
            changes.append(f"coaches: {people(current_coaches)} → {people(draft.coach_ids)}")
        if sorted(current_drivers) != sorted(set(draft.driver_ids)):
            changes.append(f"drivers: {people(current_drivers)} → {people(draft.driver_ids)}")
        if current_notes != draft.notes:
            changes.append(f"schedule notes: {current_notes or 'none'} → {draft.notes or 'none'}")
        if booking.requires_driver != draft.requires_driver:
            yes_no = {True: "yes", False: "no"}
            changes.append(
                f"requires driver: {yes_no[booking.requires_driver]} → {yes_no[draft.requires_driver]}"
            )
        return changes
