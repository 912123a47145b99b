"""In-memory repositories for boats, people, bookings and their links."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from boatdesk.domain.models import (
    AuditLogEntry,
    Boat,
    Booking,
    BookingStatus,
    BoatUnavailability,
    Coach,
    CoachTimeOff,
    Member,
    ResourceAssignment,
    local_timestamp,
)
from boatdesk.errors import RepositoryError
from boatdesk.services.timeslots import TimeInterval, cleanup_for, time_to_minutes

logger = logging.getLogger(__name__)


class BoatRepository:
    """Dict-backed store for Boat instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[int, Boat] = {}

    def add(self, boat: Boat) -> None:
        self._store[boat.id] = boat

    def get(self, boat_id: int) -> Boat | None:
        return self._store.get(boat_id)

    def list_all(self) -> list[Boat]:
        return list(self._store.values())


class CoachRepository:
    """Dict-backed store for Coach instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Coach] = {}

    def add(self, coach: Coach) -> None:
        self._store[coach.id] = coach

    def get(self, coach_id: str) -> Coach | None:
        return self._store.get(coach_id)

    def list_all(self) -> list[Coach]:
        return sorted(self._store.values(), key=lambda c: c.name)

    def names(self) -> dict[str, str]:
        return {c.id: c.name for c in self._store.values()}


class MemberRepository:
    """Dict-backed store for Member instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Member] = {}

    def add(self, member: Member) -> None:
        self._store[member.id] = member

    def search(self, query: str, limit: int = 20) -> list[Member]:
        """Case-insensitive substring match on name, nickname or phone."""
        needle = query.strip().lower()
        if not needle:
            return []
        matches = [
            m
            for m in self._store.values()
            if any(needle in (field or "").lower() for field in (m.name, m.nickname, m.phone))
        ]
        return sorted(matches, key=lambda m: m.name)[:limit]


class AvailabilityRepository:
    """List-backed store for boat maintenance windows and coach time-off."""

    def __init__(self) -> None:
        self._windows: list[BoatUnavailability] = []
        self._time_off: list[CoachTimeOff] = []

    def add_unavailability(self, window: BoatUnavailability) -> None:
        self._windows.append(window)

    def add_time_off(self, record: CoachTimeOff) -> None:
        self._time_off.append(record)

    def list_unavailability(self, boat_id: int, date: str) -> list[BoatUnavailability]:
        return [
            w
            for w in self._windows
            if w.boat_id == boat_id and w.is_active and w.start_date <= date <= w.end_date
        ]

    def list_time_off(self) -> list[CoachTimeOff]:
        return list(self._time_off)


class AuditLogRepository:
    """List-backed audit trail, newest entry last."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    def add(self, entry: AuditLogEntry) -> None:
        self._entries.append(entry)

    def list_all(self) -> list[AuditLogEntry]:
        return sorted(self._entries, key=lambda e: e.created_at, reverse=True)


class BookingRepository:
    """Bookings plus their coach and driver junction rows.

    Start times are kept as the naive "YYYY-MM-DDTHH:MM:SS" text the rest of
    the system uses; day queries match on the date prefix.
    """

    def __init__(self, boats: BoatRepository, coaches: CoachRepository) -> None:
        self.boats = boats
        self.coaches = coaches
        self._store: dict[int, Booking] = {}
        self._coach_links: dict[int, list[str]] = {}
        self._driver_links: dict[int, list[str]] = {}
        self._next_id = 1

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def add(self, booking: Booking) -> Booking:
        boat = self.boats.get(booking.boat_id)
        if boat is None:
            raise RepositoryError(f"boat {booking.boat_id} does not exist")
        stored = booking.model_copy(
            update={
                "id": self._next_id,
                "cleanup_minutes": cleanup_for(boat.name, boat.is_facility),
                "created_at": booking.created_at or local_timestamp(),
            }
        )
        self._store[stored.id] = stored
        self._coach_links[stored.id] = []
        self._driver_links[stored.id] = []
        self._next_id += 1
        return stored

    def get(self, booking_id: int) -> Booking | None:
        return self._store.get(booking_id)

    def update(self, booking: Booking) -> Booking:
        if booking.id not in self._store:
            raise RepositoryError(f"booking {booking.id} does not exist")
        boat = self.boats.get(booking.boat_id)
        if boat is None:
            raise RepositoryError(f"boat {booking.boat_id} does not exist")
        stored = booking.model_copy(
            update={"cleanup_minutes": cleanup_for(boat.name, boat.is_facility)}
        )
        self._store[booking.id] = stored
        return stored

    def list_for_date(self, date: str, boat_id: int | None = None) -> list[Booking]:
        """Confirmed bookings on *date*, ordered by start time."""
        return sorted(
            (
                b
                for b in self._store.values()
                if b.status == BookingStatus.CONFIRMED
                and b.start_at.startswith(date)
                and (boat_id is None or b.boat_id == boat_id)
            ),
            key=lambda b: (b.start_at, b.id),
        )

    # ------------------------------------------------------------------
    # Coach / driver links
    # ------------------------------------------------------------------

    def coach_ids(self, booking_id: int) -> list[str]:
        return list(self._coach_links.get(booking_id, []))

    def driver_ids(self, booking_id: int) -> list[str]:
        return list(self._driver_links.get(booking_id, []))

    def delete_links(self, booking_id: int) -> None:
        self._require(booking_id)
        self._coach_links[booking_id] = []
        self._driver_links[booking_id] = []

    def insert_links(
        self, booking_id: int, coach_ids: Iterable[str], driver_ids: Iterable[str]
    ) -> None:
        self._require(booking_id)
        coach_ids, driver_ids = list(coach_ids), list(driver_ids)
        for person_id in [*coach_ids, *driver_ids]:
            if self.coaches.get(person_id) is None:
                raise RepositoryError(
                    f'insert violates foreign key constraint: coach "{person_id}" not found'
                )
        self._coach_links[booking_id].extend(dict.fromkeys(coach_ids))
        self._driver_links[booking_id].extend(dict.fromkeys(driver_ids))

    def update_schedule(self, booking_id: int, notes: str | None, requires_driver: bool) -> None:
        booking = self._require(booking_id)
        booking.schedule_notes = notes or None
        booking.requires_driver = requires_driver

    def save_assignment(
        self,
        booking_id: int,
        coach_ids: Iterable[str],
        driver_ids: Iterable[str],
        notes: str | None,
        requires_driver: bool,
    ) -> None:
        """Replace a booking's people: delete every link, then insert the new set.

        Not atomic. If the insert fails the booking is left with no people.
        """
        self.update_schedule(booking_id, notes, requires_driver)
        self.delete_links(booking_id)
        self.insert_links(booking_id, coach_ids, driver_ids)
        logger.debug("Saved assignment for booking %s", booking_id)

    # ------------------------------------------------------------------
    # Conflict-check snapshots
    # ------------------------------------------------------------------

    def to_assignment(self, booking: Booking) -> ResourceAssignment:
        boat = self.boats.get(booking.boat_id)
        resource_name = boat.name if boat else ""
        return ResourceAssignment(
            booking_id=booking.id,
            boat_id=booking.boat_id,
            resource_name=resource_name,
            date=booking.date,
            interval=TimeInterval(
                start_minutes=time_to_minutes(booking.start_time),
                duration_minutes=booking.duration_min,
                cleanup_minutes=booking.cleanup_minutes,
            ),
            coach_ids=self.coach_ids(booking.id),
            driver_ids=self.driver_ids(booking.id),
            display_name=booking.display_name,
            requires_driver=booking.requires_driver,
        )

    def fetch_assignments_for_date(
        self, date: str, boat_id: int | None = None
    ) -> list[ResourceAssignment]:
        return [self.to_assignment(b) for b in self.list_for_date(date, boat_id)]

    def fetch_person_schedule(
        self, person_ids: Iterable[str], date: str
    ) -> list[ResourceAssignment]:
        """Confirmed bookings on *date* where any of *person_ids* is coach or driver."""
        wanted = set(person_ids)
        return [
            a
            for a in self.fetch_assignments_for_date(date)
            if wanted.intersection(a.person_ids)
        ]

    def _require(self, booking_id: int) -> Booking:
        booking = self._store.get(booking_id)
        if booking is None:
            raise RepositoryError(f"booking {booking_id} does not exist")
        return booking


# ---------------------------------------------------------------------------
# Seed data: the club's fleet
# ---------------------------------------------------------------------------

FLEET = ["G23", "G21", "黑豹", "粉紅", "200", "彈簧床"]


def create_boat_repository() -> BoatRepository:
    """Return a BoatRepository pre-loaded with the fleet, in display order."""
    repo = BoatRepository()
    for boat_id, name in enumerate(FLEET, start=1):
        repo.add(Boat(id=boat_id, name=name))
    return repo
