"""Creating, editing and repeating bookings, each gated by the validator."""

from __future__ import annotations

import logging

from boatdesk.domain.bus import EventBus
from boatdesk.domain.events import BookingCreated, BookingUpdated
from boatdesk.domain.models import (
    Booking,
    BookingDraft,
    RepeatBookingRequest,
    RepeatBookingResponse,
    ResourceAssignment,
    SkippedDate,
    ValidationResult,
)
from boatdesk.errors import NotFoundError, RepositoryError, ValidationError, raise_for_violations
from boatdesk.repos.memory import AvailabilityRepository, BookingRepository, CoachRepository
from boatdesk.services.availability import coaches_on_time_off
from boatdesk.services.recurrence import weekly_dates
from boatdesk.services.timeslots import build_interval, cleanup_for
from boatdesk.services.validator import check_early_booking, validate_booking

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        coach_repo: CoachRepository,
        availability_repo: AvailabilityRepository,
        hour_limit: int | None = None,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.coach_repo = coach_repo
        self.availability_repo = availability_repo
        self.hour_limit = hour_limit

    def to_assignment(self, draft: BookingDraft, booking_id: int | None = None) -> ResourceAssignment:
        boat = self.booking_repo.boats.get(draft.boat_id)
        if boat is None:
            raise NotFoundError(f"Boat {draft.boat_id} not found")
        facility = cleanup_for(boat.name, boat.is_facility) == 0
        return ResourceAssignment(
            booking_id=booking_id,
            boat_id=boat.id,
            resource_name=boat.name,
            date=draft.date,
            interval=build_interval(draft.start_time, draft.duration_min, facility),
            coach_ids=draft.coach_ids,
            driver_ids=draft.driver_ids,
            display_name=draft.contact_name,
            requires_driver=draft.requires_driver,
        )

    def check(self, draft: BookingDraft, booking_id: int | None = None) -> ValidationResult:
        """Validate *draft* against everything stored for its date. No writes.

        Pass *booking_id* when editing so the booking is not compared with
        its own stored version.
        """
        candidate = self.to_assignment(draft, booking_id)
        return validate_booking(
            candidate,
            self.booking_repo.fetch_assignments_for_date(draft.date),
            names=self.coach_repo.names(),
            windows=self.availability_repo.list_unavailability(draft.boat_id, draft.date),
            people_on_time_off=coaches_on_time_off(
                self.availability_repo.list_time_off(), draft.date
            ),
            hour_limit=self.hour_limit,
        )

    def create(self, draft: BookingDraft) -> Booking:
        result = self.check(draft)
        if not result.ok:
            logger.info("Booking rejected for %s: %s", draft.start_at, result.reasons)
        raise_for_violations(result.violations)
        return self._insert(draft)

    def update(self, booking_id: int, draft: BookingDraft) -> Booking:
        existing = self.booking_repo.get(booking_id)
        if existing is None:
            raise NotFoundError(f"Booking {booking_id} not found")

        result = self.check(draft, booking_id)
        if not result.ok:
            logger.info("Edit of booking %s rejected: %s", booking_id, result.reasons)
        raise_for_violations(result.violations)

        old_coaches = self.booking_repo.coach_ids(booking_id)
        old_drivers = self.booking_repo.driver_ids(booking_id)
        updated = self.booking_repo.update(
            existing.model_copy(
                update={
                    "boat_id": draft.boat_id,
                    "start_at": draft.start_at,
                    "duration_min": draft.duration_min,
                    "contact_name": draft.contact_name,
                    "requires_driver": draft.requires_driver,
                    "notes": draft.notes,
                    "filled_by": draft.filled_by or existing.filled_by,
                }
            )
        )
        self.booking_repo.delete_links(booking_id)
        self.booking_repo.insert_links(booking_id, draft.coach_ids, draft.driver_ids)

        changes = self._describe_changes(existing, updated, old_coaches, old_drivers, draft)
        self.bus.publish(
            BookingUpdated(booking_id=booking_id, user_email=draft.user_email, changes=changes)
        )
        logger.info("Booking %s updated (%d change(s))", booking_id, len(changes))
        return updated

    def create_repeat(self, request: RepeatBookingRequest) -> RepeatBookingResponse:
        """Create the same booking every week; dates that fail validation are skipped."""
        draft = request.draft
        early = check_early_booking(self.to_assignment(draft), self.hour_limit)
        if early:
            raise ValidationError([early])

        response = RepeatBookingResponse()
        for day in weekly_dates(draft.date, count=request.count, until=request.until):
            dated = draft.model_copy(update={"date": day})
            result = self.check(dated)
            if not result.ok:
                response.skipped.append(SkippedDate(date=day, reasons=result.reasons))
                continue
            try:
                response.created.append(self._insert(dated))
            except RepositoryError as exc:
                logger.error("Repeat booking on %s failed: %s", day, exc.message)
                response.skipped.append(SkippedDate(date=day, reasons=[exc.message]))

        logger.info(
            "Repeat booking: %d created, %d skipped",
            len(response.created),
            len(response.skipped),
        )
        return response

    # ------------------------------------------------------------------

    def _insert(self, draft: BookingDraft) -> Booking:
        booking = self.booking_repo.add(
            Booking(
                boat_id=draft.boat_id,
                start_at=draft.start_at,
                duration_min=draft.duration_min,
                contact_name=draft.contact_name,
                requires_driver=draft.requires_driver,
                notes=draft.notes,
                filled_by=draft.filled_by,
            )
        )
        self.booking_repo.insert_links(booking.id, draft.coach_ids, draft.driver_ids)
        self.bus.publish(BookingCreated(booking_id=booking.id, user_email=draft.user_email))
        logger.info("Booking %s created for %s", booking.id, booking.start_at)
        return booking

    def _describe_changes(
        self,
        before: Booking,
        after: Booking,
        old_coaches: list[str],
        old_drivers: list[str],
        draft: BookingDraft,
    ) -> list[str]:
        names = self.coach_repo.names()

        def people(ids: list[str]) -> str:
            return "、".join(names.get(i, "?") for i in ids) or "none"

        changes: list[str] = []
        if before.start_at != after.start_at:
            changes.append(f"time: {before.start_at[:16]} → {after.start_at[:16]}")
        if before.duration_min != after.duration_min:
            changes.append(f"duration: {before.duration_min} → {after.duration_min}")
        if before.boat_id != after.boat_id:
            old_boat = self.booking_repo.boats.get(before.boat_id)
            new_boat = self.booking_repo.boats.get(after.boat_id)
            changes.append(
                f"boat: {old_boat.name if old_boat else '?'} → {new_boat.name if new_boat else '?'}"
            )
        if before.contact_name != after.contact_name:
            changes.append(f"contact: {before.contact_name} → {after.contact_name}")
        if sorted(old_coaches) != sorted(draft.coach_ids):
            changes.append(f"coaches: {people(old_coaches)} → {people(draft.coach_ids)}")
        if sorted(old_drivers) != sorted(draft.driver_ids):
            changes.append(f"drivers: {people(old_drivers)} → {people(draft.driver_ids)}")
        if (before.notes or "") != (after.notes or ""):
            changes.append(f"notes: {before.notes or 'none'} → {after.notes or 'none'}")
        return changes
