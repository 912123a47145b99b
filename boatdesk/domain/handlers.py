"""Domain event handlers that feed the audit log, wired up at application startup."""

from __future__ import annotations

import logging

from boatdesk import config
from boatdesk.domain.bus import EventBus
from boatdesk.domain.events import AssignmentChanged, BookingCreated, BookingUpdated
from boatdesk.domain.models import AuditLogEntry, Booking
from boatdesk.repos.memory import AuditLogRepository, BookingRepository, CoachRepository

logger = logging.getLogger(__name__)


def _format_start(booking: Booking) -> str:
    # "2025-11-20T14:45:00" -> "2025/11/20 14:45"
    return f"{booking.date.replace('-', '/')} {booking.start_time}"


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the repositories.

    Audit writes are fire-and-forget: a failure is logged and never reaches
    the request that triggered it.
    """

    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        coach_repo: CoachRepository,
        audit_repo: AuditLogRepository,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.coach_repo = coach_repo
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingUpdated, self.on_booking_updated)
        self.bus.subscribe(AssignmentChanged, self.on_assignment_changed)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        booking = self.booking_repo.get(event.booking_id)
        if booking is None:
            return

        names = self.coach_repo.names()
        coaches = "、".join(names.get(cid, "?") for cid in self.booking_repo.coach_ids(booking.id))
        details = (
            f"New booking: {_format_start(booking)} {booking.duration_min}min "
            f"{self._boat_name(booking)} {booking.display_name}"
        )
        if coaches:
            details += f" | {coaches}"
        if booking.filled_by:
            details += f" (filled by: {booking.filled_by})"
        self._write(event.user_email, "create", "bookings", details)

    def on_booking_updated(self, event: BookingUpdated) -> None:
        booking = self.booking_repo.get(event.booking_id)
        if booking is None or not event.changes:
            return

        details = (
            f"Edit booking: {_format_start(booking)} {self._boat_name(booking)} "
            f"{booking.display_name}, changes: {'; '.join(event.changes)}"
        )
        self._write(event.user_email, "update", "bookings", details)

    def on_assignment_changed(self, event: AssignmentChanged) -> None:
        booking = self.booking_repo.get(event.booking_id)
        if booking is None:
            return

        details = (
            f"Assignment: {_format_start(booking)} {self._boat_name(booking)} "
            f"{booking.display_name}, changes: {'; '.join(event.changes)}"
        )
        self._write(event.user_email, "update", "coach_assignment", details)

    # ------------------------------------------------------------------

    def _boat_name(self, booking: Booking) -> str:
        boat = self.booking_repo.boats.get(booking.boat_id)
        return boat.name if boat else "?"

    def _write(self, user_email: str, action: str, table_name: str, details: str) -> None:
        if not config.AUDIT_LOG_ENABLED:
            return
        try:
            self.audit_repo.add(
                AuditLogEntry(
                    user_email=user_email,
                    action=action,
                    table_name=table_name,
                    details=details,
                )
            )
        except Exception:
            logger.exception("Audit log write failed: %s", details)
