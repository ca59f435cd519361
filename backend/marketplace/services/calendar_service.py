"""Calendar index: admission checks over a resource's existing reservations.

Everything here is pure. Callers fetch the reservations for one resource,
build :class:`BookedInterval` snapshots and ask :func:`check_availability`
whether a requested span still fits. The same predicate runs twice per
booking: once as an advisory pre-flight check and once inside the locked
commit path of :mod:`marketplace.services.booking_service`.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from marketplace.core.errors import (
    BookingConflict,
    ClosedOnDay,
    InvalidSlot,
    InvalidSpan,
    ReservationEngineError,
    SlotRequired,
)
from marketplace.models.attraction import Attraction
from marketplace.models.reservation import (
    AttractionBooking,
    BookingStatus,
    VehicleBooking,
)
from marketplace.models.vehicle import Vehicle

# Keyed by every status so a new member fails loudly instead of silently counting.
OCCUPIES_CALENDAR: dict[BookingStatus, bool] = {
    BookingStatus.PENDING: True,
    BookingStatus.CONFIRMED: True,
    BookingStatus.ACTIVE: True,
    BookingStatus.COMPLETED: True,
    BookingStatus.CANCELLED: False,
}


def coerce_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are assumed to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_instant(value: datetime | date | str) -> datetime:
    """Parse an ISO string, date or datetime into an aware UTC datetime."""
    if isinstance(value, datetime):
        return coerce_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidSpan(f"Unparseable date: {value!r}") from exc
        return coerce_utc(parsed)
    raise InvalidSpan(f"Unparseable date: {value!r}")


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open interval ``[start, end)`` in UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", coerce_utc(self.start))
        object.__setattr__(self, "end", coerce_utc(self.end))
        if self.end <= self.start:
            raise InvalidSpan("End must be after start")

    @classmethod
    def parse(
        cls, start: datetime | date | str, end: datetime | date | str
    ) -> Span:
        return cls(parse_instant(start), parse_instant(end))

    @classmethod
    def for_day(cls, day: date) -> Span:
        """The full calendar day ``day`` as a span."""
        start = datetime.combine(day, time.min, tzinfo=UTC)
        return cls(start, start + timedelta(days=1))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def day(self) -> date:
        return self.start.date()

    def overlaps(self, other: Span) -> bool:
        """Strict overlap; touching intervals do not overlap."""
        return self.start < other.end and self.end > other.start


@dataclass(frozen=True, slots=True)
class ResourceCalendar:
    """Admission rules of one bookable resource."""

    resource_id: uuid.UUID
    exclusive: bool = True
    capacity: int = 1
    allowed_weekdays: frozenset[int] | None = None
    time_slots: tuple[str, ...] = ()

    @classmethod
    def for_vehicle(cls, vehicle: Vehicle) -> ResourceCalendar:
        return cls(resource_id=vehicle.id, exclusive=True, capacity=1)

    @classmethod
    def for_attraction(cls, attraction: Attraction) -> ResourceCalendar:
        return cls(
            resource_id=attraction.id,
            exclusive=False,
            capacity=int(attraction.capacity or 0),
            allowed_weekdays=attraction.allowed_weekdays,
            time_slots=tuple(slot for slot in attraction.time_slots or () if slot),
        )


@dataclass(frozen=True, slots=True)
class BookedInterval:
    """Snapshot of an existing reservation as seen by the calendar."""

    resource_id: uuid.UUID
    span: Span
    status: BookingStatus
    units: int = 1
    time_slot: str | None = None

    @classmethod
    def from_vehicle_booking(cls, booking: VehicleBooking) -> BookedInterval:
        return cls(
            resource_id=booking.vehicle_id,
            span=Span(booking.pickup_at, booking.return_at),
            status=booking.status,
        )

    @classmethod
    def from_attraction_booking(cls, booking: AttractionBooking) -> BookedInterval:
        return cls(
            resource_id=booking.attraction_id,
            span=Span.for_day(booking.visit_date),
            status=booking.status,
            units=booking.number_of_people,
            time_slot=booking.time_slot,
        )


class AvailabilityReason(str, enum.Enum):
    """Why a request was not admitted."""

    CONFLICT = "conflict"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    SLOT_REQUIRED = "slot_required"
    INVALID_SLOT = "invalid_slot"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class AvailabilityDecision:
    """Outcome of an availability check."""

    available: bool
    reason: AvailabilityReason | None = None
    remaining: int | None = None
    capacity: int | None = None
    conflicts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "reason": self.reason.value if self.reason else None,
            "remaining": self.remaining,
            "capacity": self.capacity,
            "conflicts": self.conflicts,
        }

    def raise_for_rejection(self) -> None:
        """Raise the domain error matching a rejected decision."""
        if self.available:
            return
        if self.reason is AvailabilityReason.SLOT_REQUIRED:
            raise SlotRequired()
        if self.reason is AvailabilityReason.INVALID_SLOT:
            raise InvalidSlot()
        if self.reason is AvailabilityReason.CLOSED:
            raise ClosedOnDay()
        if self.reason is AvailabilityReason.CAPACITY_EXCEEDED:
            raise BookingConflict(
                f"Only {self.remaining} place(s) left for the selected day",
                reason=self.reason.value,
                remaining=self.remaining,
                capacity=self.capacity,
            )
        raise BookingConflict(
            reason=AvailabilityReason.CONFLICT.value,
            remaining=self.remaining,
            capacity=self.capacity,
        )


def check_availability(
    calendar: ResourceCalendar,
    span: Span,
    units_requested: int,
    existing: Iterable[BookedInterval],
    *,
    time_slot: str | None = None,
) -> AvailabilityDecision:
    """Decide whether ``span`` can be admitted for ``units_requested`` units.

    Cancelled reservations and reservations of other resources are ignored.
    Exclusive resources conflict on any strict overlap. Shared resources are
    limited per calendar day (and per slot when the resource defines slots);
    reservations recorded without a slot count against every slot of their day.
    """
    if units_requested < 1:
        raise ReservationEngineError("At least one unit must be requested")

    live = [
        booked
        for booked in existing
        if booked.resource_id == calendar.resource_id
        and OCCUPIES_CALENDAR[booked.status]
    ]

    if calendar.exclusive:
        conflicts = sum(1 for booked in live if booked.span.overlaps(span))
        return AvailabilityDecision(
            available=conflicts == 0,
            reason=AvailabilityReason.CONFLICT if conflicts else None,
            remaining=0 if conflicts else 1,
            capacity=1,
            conflicts=conflicts,
        )

    requested_slot: str | None = None
    if calendar.time_slots:
        if not time_slot:
            return AvailabilityDecision(
                available=False, reason=AvailabilityReason.SLOT_REQUIRED
            )
        if time_slot not in calendar.time_slots:
            return AvailabilityDecision(
                available=False, reason=AvailabilityReason.INVALID_SLOT
            )
        requested_slot = time_slot

    day = span.day
    if calendar.allowed_weekdays is not None and day.weekday() not in calendar.allowed_weekdays:
        return AvailabilityDecision(
            available=False,
            reason=AvailabilityReason.CLOSED,
            capacity=calendar.capacity,
        )

    same_day = [
        booked
        for booked in live
        if booked.span.day == day
        and (
            requested_slot is None
            or booked.time_slot is None
            or booked.time_slot == requested_slot
        )
    ]
    booked_units = sum(booked.units for booked in same_day)
    remaining = max(0, calendar.capacity - booked_units)
    available = remaining >= units_requested
    return AvailabilityDecision(
        available=available,
        reason=None if available else AvailabilityReason.CAPACITY_EXCEEDED,
        remaining=remaining,
        capacity=calendar.capacity,
        conflicts=len(same_day),
    )
