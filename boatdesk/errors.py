"""Exceptions raised by the scheduling core and the repository layer."""

from __future__ import annotations

from boatdesk.domain.models import Violation, ViolationKind

_CONFLICT_KINDS = {ViolationKind.BOAT_CONFLICT, ViolationKind.PERSON_CONFLICT}


class SchedulingError(Exception):
    """Base class for every error this service raises on purpose."""


class NotFoundError(SchedulingError):
    pass


class ValidationError(SchedulingError):
    """One or more business rules rejected a change before anything was written."""

    def __init__(self, violations: list[Violation]) -> None:
        if not violations:
            raise ValueError("ValidationError needs at least one violation")
        self.violations = list(violations)
        super().__init__("; ".join(self.reasons))

    @property
    def reasons(self) -> list[str]:
        return [v.message for v in self.violations]


class ConflictError(ValidationError):
    """A validation failure that includes a boat or person overlap."""


def raise_for_violations(violations: list[Violation]) -> None:
    """Raise the matching error for *violations*; do nothing when empty."""
    if not violations:
        return
    if any(v.kind in _CONFLICT_KINDS for v in violations):
        raise ConflictError(violations)
    raise ValidationError(violations)


class RepositoryError(SchedulingError):
    """The backing store refused a read or write.

    ``message`` is the store's own error text, passed through untranslated.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PartialWriteError(RepositoryError):
    """A multi-step save stopped partway; earlier writes were not rolled back."""

    def __init__(self, message: str, applied_booking_ids: list[int]) -> None:
        self.applied_booking_ids = list(applied_booking_ids)
        super().__init__(message)
