"""Domain models for the boat scheduling service."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from boatdesk.services.timeslots import (
    MINUTES_PER_DAY,
    TimeInterval,
    format_time_range,
    minutes_to_time,
    split_start_at,
    time_to_minutes,
)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
START_AT_PATTERN = r"^\d{4}-\d{2}-\d{2}T([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$"

UNNAMED = "Unnamed"


class BookingStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Role(StrEnum):
    COACH = "coach"
    DRIVER = "driver"
    BOTH = "coach/driver"


class BoatConflictKind(StrEnum):
    OVERLAP = "overlap"
    # candidate starts inside the other booking's turnaround window
    TOO_CLOSE_AFTER = "too_close_after"
    # other booking starts inside the candidate's turnaround window
    TOO_CLOSE_BEFORE = "too_close_before"


class ViolationKind(StrEnum):
    EARLY_BOOKING = "early_booking"
    BOAT_UNAVAILABLE = "boat_unavailable"
    BOAT_CONFLICT = "boat_conflict"
    PERSON_TIME_OFF = "person_time_off"
    PERSON_CONFLICT = "person_conflict"
    DRIVER_REQUIREMENT = "driver_requirement"
    MISSING_PERSONNEL = "missing_personnel"


def _new_id() -> str:
    return str(uuid.uuid4())


def local_timestamp() -> str:
    """Naive local wall-clock timestamp, matching how bookings store time."""
    return datetime.now().strftime("%Y-%m-%dT%H:%M:%S")


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


class Boat(BaseModel):
    id: int
    name: str
    # Explicit facility flag; when unset the name decides.
    is_facility: bool | None = None
    is_active: bool = True


class Coach(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str


class Member(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    nickname: str | None = None
    phone: str | None = None


class Booking(BaseModel):
    id: int | None = None
    boat_id: int
    start_at: str = Field(pattern=START_AT_PATTERN)
    duration_min: int = Field(gt=0)
    contact_name: str | None = None
    status: BookingStatus = BookingStatus.CONFIRMED
    requires_driver: bool = False
    schedule_notes: str | None = None
    notes: str | None = None
    filled_by: str | None = None
    # turnaround minutes, fixed by the repository from the boat when stored
    cleanup_minutes: int = Field(default=0, ge=0)
    created_at: str | None = None

    @property
    def date(self) -> str:
        return split_start_at(self.start_at)[0]

    @property
    def start_time(self) -> str:
        return split_start_at(self.start_at)[1]

    @property
    def display_name(self) -> str:
        return self.contact_name or UNNAMED


class BoatUnavailability(BaseModel):
    """Maintenance / out-of-service window for one boat.

    Without start and end times the boat is out for the whole of every day
    in the range; otherwise the times clip the first and last day.
    """

    id: str = Field(default_factory=_new_id)
    boat_id: int
    start_date: str = Field(pattern=DATE_PATTERN)
    end_date: str = Field(pattern=DATE_PATTERN)
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    reason: str = "Under maintenance"
    is_active: bool = True


class CoachTimeOff(BaseModel):
    id: str = Field(default_factory=_new_id)
    coach_id: str
    start_date: str = Field(pattern=DATE_PATTERN)
    # open-ended when None
    end_date: str | None = Field(default=None, pattern=DATE_PATTERN)
    reason: str | None = None


class AuditLogEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_email: str = ""
    action: str
    table_name: str
    details: str
    created_at: str = Field(default_factory=local_timestamp)


# ---------------------------------------------------------------------------
# Conflict detection inputs / outputs
# ---------------------------------------------------------------------------


class ResourceAssignment(BaseModel):
    """One booking's boat, time and people as seen by the conflict detector.

    ``booking_id`` is None for a draft that has not been saved yet.
    """

    booking_id: int | None = None
    boat_id: int
    resource_name: str = ""
    date: str
    interval: TimeInterval
    coach_ids: list[str] = Field(default_factory=list)
    driver_ids: list[str] = Field(default_factory=list)
    display_name: str = UNNAMED
    requires_driver: bool = False

    @property
    def person_ids(self) -> list[str]:
        """Coaches then drivers, de-duplicated, in the order supplied."""
        return list(dict.fromkeys([*self.coach_ids, *self.driver_ids]))

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.interval.start_minutes)

    @property
    def time_range(self) -> str:
        return format_time_range(self.interval)

    def role_of(self, person_id: str) -> Role | None:
        is_coach = person_id in self.coach_ids
        is_driver = person_id in self.driver_ids
        if is_coach and is_driver:
            return Role.BOTH
        if is_coach:
            return Role.COACH
        if is_driver:
            return Role.DRIVER
        return None


class Conflict(BaseModel):
    person_id: str
    booking_id: int | None
    other_booking_id: int | None
    other_display_name: str
    other_time_range: str
    role: Role


class ConflictReport(BaseModel):
    conflicts: list[Conflict] = Field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)


class BoatConflict(BaseModel):
    other_booking_id: int | None
    other_display_name: str
    other_interval: TimeInterval
    kind: BoatConflictKind

    @property
    def other_time_range(self) -> str:
        return format_time_range(self.other_interval)


class Violation(BaseModel):
    kind: ViolationKind
    message: str
    booking_id: int | None = None


class ValidationResult(BaseModel):
    violations: list[Violation] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def reasons(self) -> list[str]:
        return [v.message for v in self.violations]


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class BookingDraft(BaseModel):
    boat_id: int
    date: str = Field(pattern=DATE_PATTERN)
    start_time: str = Field(pattern=TIME_PATTERN)
    duration_min: int = Field(gt=0)
    contact_name: str = Field(min_length=1)
    coach_ids: list[str] = Field(default_factory=list)
    driver_ids: list[str] = Field(default_factory=list)
    requires_driver: bool = False
    notes: str | None = None
    filled_by: str | None = None
    user_email: str = ""

    @property
    def start_at(self) -> str:
        return f"{self.date}T{self.start_time}:00"

    @model_validator(mode="after")
    def _check_same_day(self) -> BookingDraft:
        if time_to_minutes(self.start_time) + self.duration_min > MINUTES_PER_DAY:
            raise ValueError("booking must end by midnight")
        return self


class AssignmentDraft(BaseModel):
    booking_id: int
    coach_ids: list[str] = Field(default_factory=list)
    driver_ids: list[str] = Field(default_factory=list)
    notes: str = ""
    requires_driver: bool = False


class SaveAssignmentsRequest(BaseModel):
    date: str = Field(pattern=DATE_PATTERN)
    assignments: list[AssignmentDraft] = Field(min_length=1)
    user_email: str = ""

    @model_validator(mode="after")
    def _unique_bookings(self) -> SaveAssignmentsRequest:
        ids = [a.booking_id for a in self.assignments]
        if len(ids) != len(set(ids)):
            raise ValueError("each booking may appear only once")
        return self


class SaveAssignmentsResponse(BaseModel):
    changed_booking_ids: list[int] = Field(default_factory=list)
    message: str


class AssignmentPreviewRequest(BaseModel):
    date: str = Field(pattern=DATE_PATTERN)
    booking_id: int
    assignments: list[AssignmentDraft] = Field(default_factory=list)


class AssignmentPreviewResponse(BaseModel):
    booking_id: int
    conflicts: list[str] = Field(default_factory=list)
    available_person_ids: list[str] = Field(default_factory=list)


class DailyAssignment(BaseModel):
    """A booking of the day with its current coach / driver links."""

    booking: Booking
    boat_name: str
    display_name: str
    time_range: str
    coach_ids: list[str] = Field(default_factory=list)
    driver_ids: list[str] = Field(default_factory=list)


class ConflictCheckResponse(BaseModel):
    ok: bool
    reasons: list[str] = Field(default_factory=list)


class RepeatBookingRequest(BaseModel):
    draft: BookingDraft
    count: int | None = Field(default=None, ge=1, le=52)
    until: str | None = Field(default=None, pattern=DATE_PATTERN)

    @model_validator(mode="after")
    def _count_or_until(self) -> RepeatBookingRequest:
        if (self.count is None) == (self.until is None):
            raise ValueError("exactly one of count or until is required")
        if self.until is not None and self.until < self.draft.date:
            raise ValueError("until must not be before the first date")
        return self


class SkippedDate(BaseModel):
    date: str
    reasons: list[str]


class RepeatBookingResponse(BaseModel):
    created: list[Booking] = Field(default_factory=list)
    skipped: list[SkippedDate] = Field(default_factory=list)
