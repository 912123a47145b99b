"""Domain events emitted when bookings and assignments change."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BookingCreated(BaseModel):
    """Fired after a new booking and its coach links are stored."""

    booking_id: int
    user_email: str = ""


class BookingUpdated(BaseModel):
    """Fired after an existing booking is edited."""

    booking_id: int
    user_email: str = ""
    changes: list[str] = Field(default_factory=list)


class AssignmentChanged(BaseModel):
    """Fired once per booking whose coaches, drivers or schedule notes changed."""

    booking_id: int
    user_email: str = ""
    changes: list[str] = Field(min_length=1)
