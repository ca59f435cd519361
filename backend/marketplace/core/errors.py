"""Domain errors raised by the reservation engine and its services.

Every error is a terminal validation outcome. The API layer converts them to
HTTP responses using ``status_code``; ``reason`` is a stable machine-readable
code the frontend can branch on.
"""

from __future__ import annotations


class ReservationEngineError(ValueError):
    """Base class for all engine validation failures."""

    status_code: int = 400
    reason: str = "invalid_request"
    default_message = "Invalid reservation request"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidSpan(ReservationEngineError):
    """The requested interval is empty, reversed or unparseable."""

    reason = "invalid_span"
    default_message = "Invalid date range"


class ResourceNotFound(ReservationEngineError):
    """The vehicle or attraction does not exist or is not bookable."""

    status_code = 404
    reason = "not_found"
    default_message = "Resource not found"


class SlotRequired(ReservationEngineError):
    """The resource defines time slots but the request named none."""

    reason = "slot_required"
    default_message = "A time slot is required for this attraction"


class InvalidSlot(ReservationEngineError):
    """The requested slot is not offered by the resource."""

    reason = "invalid_slot"
    default_message = "Requested time slot is not offered"


class ClosedOnDay(ReservationEngineError):
    """The resource does not operate on the requested weekday."""

    status_code = 409
    reason = "closed"
    default_message = "Closed on the requested day"


class BookingConflict(ReservationEngineError):
    """Admission was refused because of an overlap or exhausted capacity."""

    status_code = 409
    reason = "conflict"
    default_message = "Not available for these dates"

    def __init__(
        self,
        message: str | None = None,
        *,
        reason: str | None = None,
        remaining: int | None = None,
        capacity: int | None = None,
    ) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason
        self.remaining = remaining
        self.capacity = capacity


class InvalidStatusTransition(ReservationEngineError):
    """A booking status change is not allowed from its current state."""

    reason = "invalid_status_transition"
    default_message = "Invalid status transition"


class Forbidden(ReservationEngineError):
    """The caller may not act on the resource; raised by callers, not the engine."""

    status_code = 403
    reason = "forbidden"
    default_message = "Forbidden"


__all__ = [
    "BookingConflict",
    "ClosedOnDay",
    "Forbidden",
    "InvalidSlot",
    "InvalidSpan",
    "InvalidStatusTransition",
    "ReservationEngineError",
    "ResourceNotFound",
    "SlotRequired",
]
