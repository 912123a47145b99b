"""Shared fixtures: a fresh bus, repositories and services per test."""

from __future__ import annotations

import pytest

from boatdesk.domain.bus import EventBus
from boatdesk.domain.handlers import HandlerRegistry
from boatdesk.domain.models import Coach
from boatdesk.repos.memory import (
    AuditLogRepository,
    AvailabilityRepository,
    BookingRepository,
    CoachRepository,
    create_boat_repository,
)
from boatdesk.services.assignments import AssignmentService
from boatdesk.services.bookings import BookingService

COACHES = {"alice": "Alice", "bob": "Bob", "carol": "Carol", "dan": "Dan"}


@pytest.fixture()
def env():
    """Fresh bus + repos + registry + services for each test."""
    bus = EventBus()
    boat_repo = create_boat_repository()
    coach_repo = CoachRepository()
    for coach_id, name in COACHES.items():
        coach_repo.add(Coach(id=coach_id, name=name))
    availability_repo = AvailabilityRepository()
    audit_repo = AuditLogRepository()
    booking_repo = BookingRepository(boats=boat_repo, coaches=coach_repo)

    registry = HandlerRegistry(
        bus=bus,
        booking_repo=booking_repo,
        coach_repo=coach_repo,
        audit_repo=audit_repo,
    )

    class Env:
        pass

    e = Env()
    e.bus = bus
    e.boat_repo = boat_repo
    e.coach_repo = coach_repo
    e.availability_repo = availability_repo
    e.audit_repo = audit_repo
    e.booking_repo = booking_repo
    e.registry = registry
    e.bookings = BookingService(
        bus=bus,
        booking_repo=booking_repo,
        coach_repo=coach_repo,
        availability_repo=availability_repo,
        hour_limit=8,
    )
    e.assignments = AssignmentService(bus=bus, booking_repo=booking_repo, coach_repo=coach_repo)
    return e
