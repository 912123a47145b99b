"""HTTP entry point for the boat scheduling service."""

from __future__ import annotations

import logging
from datetime import date as date_type

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from boatdesk import config
from boatdesk.domain.bus import EventBus
from boatdesk.domain.handlers import HandlerRegistry
from boatdesk.domain.models import (
    AssignmentPreviewRequest,
    AssignmentPreviewResponse,
    AuditLogEntry,
    Boat,
    Booking,
    BookingDraft,
    BoatUnavailability,
    Coach,
    CoachTimeOff,
    ConflictCheckResponse,
    DailyAssignment,
    Member,
    RepeatBookingRequest,
    RepeatBookingResponse,
    SaveAssignmentsRequest,
    SaveAssignmentsResponse,
)
from boatdesk.errors import (
    ConflictError,
    NotFoundError,
    PartialWriteError,
    RepositoryError,
    ValidationError,
)
from boatdesk.repos.memory import (
    AuditLogRepository,
    AvailabilityRepository,
    BookingRepository,
    CoachRepository,
    MemberRepository,
    create_boat_repository,
)
from boatdesk.services.assignments import AssignmentService
from boatdesk.services.availability import coaches_on_time_off
from boatdesk.services.bookings import BookingService
from boatdesk.services.dates import parse_booking_date

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Boat Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
boat_repo = create_boat_repository()
coach_repo = CoachRepository()
member_repo = MemberRepository()
availability_repo = AvailabilityRepository()
audit_repo = AuditLogRepository()
booking_repo = BookingRepository(boats=boat_repo, coaches=coach_repo)

handler_registry = HandlerRegistry(
    bus=event_bus,
    booking_repo=booking_repo,
    coach_repo=coach_repo,
    audit_repo=audit_repo,
)
booking_service = BookingService(
    bus=event_bus,
    booking_repo=booking_repo,
    coach_repo=coach_repo,
    availability_repo=availability_repo,
)
assignment_service = AssignmentService(
    bus=event_bus,
    booking_repo=booking_repo,
    coach_repo=coach_repo,
)


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(NotFoundError)
def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
def _rejected(request: Request, exc: ValidationError) -> JSONResponse:
    status_code = 409 if isinstance(exc, ConflictError) else 422
    return JSONResponse(status_code=status_code, content={"detail": exc.reasons})


@app.exception_handler(RepositoryError)
def _store_failed(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error("%s %s - store error: %s", request.method, request.url.path, exc.message)
    content = {"detail": {"message": "Save failed, please try again", "error": exc.message}}
    if isinstance(exc, PartialWriteError):
        content["detail"]["message"] = "Save failed partway; some bookings may be inconsistent"
        content["detail"]["applied_booking_ids"] = exc.applied_booking_ids
    return JSONResponse(status_code=500, content=content)


def _resolve_date(raw: str | None) -> str:
    try:
        return parse_booking_date(raw, date_type.today())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# ── Boats, coaches, members ───────────────────────────────────────────


@app.get("/boats", response_model=list[Boat])
def list_boats() -> list[Boat]:
    return boat_repo.list_all()


@app.post("/boats/{boat_id}/unavailability", response_model=BoatUnavailability, status_code=201)
def add_boat_unavailability(boat_id: int, window: BoatUnavailability) -> BoatUnavailability:
    """Take a boat out of service for a date range (optionally clipped by times)."""
    if boat_repo.get(boat_id) is None:
        raise HTTPException(status_code=404, detail="Boat not found")
    window = window.model_copy(update={"boat_id": boat_id})
    availability_repo.add_unavailability(window)
    return window


@app.get("/coaches", response_model=list[Coach])
def list_coaches(date: str | None = None) -> list[Coach]:
    """All coaches; with *date*, only those not on time off that day."""
    coaches = coach_repo.list_all()
    if date is None:
        return coaches
    off = coaches_on_time_off(availability_repo.list_time_off(), _resolve_date(date))
    return [c for c in coaches if c.id not in off]


@app.post("/coaches", response_model=Coach, status_code=201)
def add_coach(coach: Coach) -> Coach:
    coach_repo.add(coach)
    return coach


@app.post("/coaches/{coach_id}/time-off", response_model=CoachTimeOff, status_code=201)
def add_time_off(coach_id: str, record: CoachTimeOff) -> CoachTimeOff:
    if coach_repo.get(coach_id) is None:
        raise HTTPException(status_code=404, detail="Coach not found")
    record = record.model_copy(update={"coach_id": coach_id})
    availability_repo.add_time_off(record)
    return record


@app.get("/members", response_model=list[Member])
def search_members(q: str = "") -> list[Member]:
    """Search members by name, nickname or phone."""
    return member_repo.search(q)


@app.post("/members", response_model=Member, status_code=201)
def add_member(member: Member) -> Member:
    member_repo.add(member)
    return member


# ── Bookings ──────────────────────────────────────────────────────────


@app.get("/bookings", response_model=list[Booking])
def list_bookings(date: str | None = None) -> list[Booking]:
    """Confirmed bookings for a day ("today", "tomorrow", "2025/11/20", ...)."""
    return booking_repo.list_for_date(_resolve_date(date))


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: int) -> Booking:
    booking = booking_repo.get(booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@app.post("/bookings/check", response_model=ConflictCheckResponse)
def check_booking(draft: BookingDraft, booking_id: int | None = None) -> ConflictCheckResponse:
    """Validate a draft without saving it. Pass *booking_id* when editing."""
    result = booking_service.check(draft, booking_id)
    return ConflictCheckResponse(ok=result.ok, reasons=result.reasons)


@app.post("/bookings", response_model=Booking, status_code=201)
def create_booking(draft: BookingDraft) -> Booking:
    return booking_service.create(draft)


@app.put("/bookings/{booking_id}", response_model=Booking)
def update_booking(booking_id: int, draft: BookingDraft) -> Booking:
    return booking_service.update(booking_id, draft)


@app.post("/bookings/repeat", response_model=RepeatBookingResponse)
def create_repeat_booking(request: RepeatBookingRequest) -> RepeatBookingResponse:
    """Book the same slot weekly; conflicting weeks are skipped and reported."""
    return booking_service.create_repeat(request)


# ── Coach / driver assignment ─────────────────────────────────────────


@app.get("/assignments", response_model=list[DailyAssignment])
def list_assignments(date: str | None = None) -> list[DailyAssignment]:
    return assignment_service.list_day(_resolve_date(date))


@app.post("/assignments/preview", response_model=AssignmentPreviewResponse)
def preview_assignment(request: AssignmentPreviewRequest) -> AssignmentPreviewResponse:
    return assignment_service.preview(request)


@app.post("/assignments", response_model=SaveAssignmentsResponse)
def save_assignments(request: SaveAssignmentsRequest) -> SaveAssignmentsResponse:
    """Validate the whole day's edits, then write only the changed bookings."""
    return assignment_service.save_all(request)


# ── Audit ─────────────────────────────────────────────────────────────


@app.get("/audit-log", response_model=list[AuditLogEntry])
def list_audit_log() -> list[AuditLogEntry]:
    return audit_repo.list_all()
