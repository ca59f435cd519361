"""Vehicle and attraction booking workflows.

Admission runs the calendar check twice: once as an advisory pre-flight
(:func:`check_vehicle_availability`, :func:`check_attraction_availability`)
and once inside the commit path. The commit path holds a per-resource lock and
a row lock on the resource while it re-reads the calendar and inserts, so two
concurrent requests for the last unit cannot both be admitted.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
import weakref
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.core.errors import (
    InvalidSpan,
    InvalidStatusTransition,
    ReservationEngineError,
    ResourceNotFound,
)
from marketplace.models import (
    Attraction,
    AttractionBooking,
    BookingChannel,
    BookingStatus,
    PaymentMethod,
    User,
    Vehicle,
    VehicleBooking,
)
from marketplace.security.permissions import ensure_owner_or_admin
from marketplace.services import commission_service
from marketplace.services.calendar_service import (
    AvailabilityDecision,
    BookedInterval,
    ResourceCalendar,
    Span,
    check_availability,
)
from marketplace.services.pricing_service import (
    RateCard,
    RentalQuote,
    compute_commission,
    compute_ticket_charge,
    quote_rental,
    rental_days,
    resolve_commission_rate,
)
from marketplace.services.resource_service import (
    get_bookable_attraction,
    get_bookable_vehicle,
)

logger = logging.getLogger(__name__)

CONFIRMATION_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CONFIRMATION_LENGTH = 8

VEHICLE_STATUS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.ACTIVE, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
    ),
    BookingStatus.ACTIVE: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Attraction visits are never "active"; the state is unreachable.
ATTRACTION_STATUS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.ACTIVE: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

_PAYMENT_ALIASES: dict[str, PaymentMethod] = {
    "mtn_mobile_money": PaymentMethod.MOBILE_MONEY,
    "mtn-momo": PaymentMethod.MOBILE_MONEY,
    "mtnmomo": PaymentMethod.MOBILE_MONEY,
    "mobile_money": PaymentMethod.MOBILE_MONEY,
    "momo": PaymentMethod.MOBILE_MONEY,
    "cash": PaymentMethod.CASH,
    "card": PaymentMethod.CARD,
    "bank_transfer": PaymentMethod.BANK_TRANSFER,
}

_resource_locks: weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


def _to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _lock_for(resource_id: uuid.UUID) -> asyncio.Lock:
    lock = _resource_locks.get(resource_id)
    if lock is None:
        lock = asyncio.Lock()
        _resource_locks[resource_id] = lock
    return lock


def normalize_payment_method(value: Any) -> PaymentMethod | None:
    """Map free-form payment labels onto :class:`PaymentMethod`; unknown values are dropped."""
    if value is None:
        return None
    if isinstance(value, PaymentMethod):
        return value
    return _PAYMENT_ALIASES.get(str(value).strip().lower())


def generate_confirmation_code(length: int = CONFIRMATION_LENGTH) -> str:
    return "".join(secrets.choice(CONFIRMATION_ALPHABET) for _ in range(length))


def _clean_slot(time_slot: str | None) -> str | None:
    if time_slot is None:
        return None
    return time_slot.strip() or None


def parse_visit_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise InvalidSpan(f"Unparseable visit date: {value!r}") from exc


# --- calendar reads -------------------------------------------------------


async def _vehicle_intervals(
    session: AsyncSession, *, vehicle_id: uuid.UUID, span: Span
) -> list[BookedInterval]:
    stmt = select(VehicleBooking).where(
        VehicleBooking.vehicle_id == vehicle_id,
        VehicleBooking.status != BookingStatus.CANCELLED,
        VehicleBooking.pickup_at < span.end,
        VehicleBooking.return_at > span.start,
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [BookedInterval.from_vehicle_booking(row) for row in rows]


async def _attraction_intervals(
    session: AsyncSession, *, attraction_id: uuid.UUID, visit_date: date
) -> list[BookedInterval]:
    stmt = select(AttractionBooking).where(
        AttractionBooking.attraction_id == attraction_id,
        AttractionBooking.status != BookingStatus.CANCELLED,
        AttractionBooking.visit_date == visit_date,
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [BookedInterval.from_attraction_booking(row) for row in rows]


async def _lock_resource(
    session: AsyncSession, model: type[Vehicle] | type[Attraction], resource_id: uuid.UUID
) -> Vehicle | Attraction:
    stmt = (
        select(model)
        .where(model.id == resource_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    resource = (await session.execute(stmt)).scalar_one_or_none()
    if resource is None or not resource.is_active:
        raise ResourceNotFound(f"{model.__name__} not found")
    return resource


async def check_vehicle_availability(
    session: AsyncSession,
    *,
    vehicle_id: uuid.UUID,
    start: datetime | date | str,
    end: datetime | date | str,
) -> AvailabilityDecision:
    """Advisory check; admission is decided again when the booking is committed."""
    span = Span.parse(start, end)
    vehicle = await get_bookable_vehicle(session, vehicle_id)
    existing = await _vehicle_intervals(session, vehicle_id=vehicle.id, span=span)
    return check_availability(ResourceCalendar.for_vehicle(vehicle), span, 1, existing)


async def check_attraction_availability(
    session: AsyncSession,
    *,
    attraction_id: uuid.UUID,
    visit_date: date | datetime | str,
    units: int = 1,
    time_slot: str | None = None,
) -> AvailabilityDecision:
    day = parse_visit_date(visit_date)
    attraction = await get_bookable_attraction(session, attraction_id)
    existing = await _attraction_intervals(
        session, attraction_id=attraction.id, visit_date=day
    )
    return check_availability(
        ResourceCalendar.for_attraction(attraction),
        Span.for_day(day),
        units,
        existing,
        time_slot=_clean_slot(time_slot),
    )


async def quote_vehicle(
    session: AsyncSession,
    *,
    vehicle_id: uuid.UUID,
    start: datetime | date | str,
    end: datetime | date | str,
) -> RentalQuote:
    span = Span.parse(start, end)
    vehicle = await get_bookable_vehicle(session, vehicle_id)
    return quote_rental(RateCard.from_vehicle(vehicle), span)


# --- commit path ----------------------------------------------------------


async def _end_rejected_admission(session: AsyncSession) -> None:
    """Close the locking read transaction after a rejection.

    Nothing was added, so committing only releases the row lock. Sessions are
    built with ``expire_on_commit=False``, so rows the caller already holds
    stay loaded; a rollback would expire them.
    """
    await session.commit()


async def _commit_admission(session: AsyncSession, booking: Any) -> None:
    session.add(booking)
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise


async def _admit_vehicle_booking(
    session: AsyncSession, *, span: Span, booking: VehicleBooking
) -> VehicleBooking:
    async with _lock_for(booking.vehicle_id):
        try:
            vehicle = await _lock_resource(session, Vehicle, booking.vehicle_id)
            existing = await _vehicle_intervals(session, vehicle_id=vehicle.id, span=span)
            decision = check_availability(
                ResourceCalendar.for_vehicle(vehicle), span, 1, existing
            )
            if not decision.available:
                logger.info(
                    "Vehicle %s rejected %s -> %s: %s",
                    vehicle.id,
                    span.start.isoformat(),
                    span.end.isoformat(),
                    decision.reason.value if decision.reason else "unknown",
                )
                decision.raise_for_rejection()
        except ReservationEngineError:
            await _end_rejected_admission(session)
            raise
        except Exception:
            await session.rollback()
            raise
        await _commit_admission(session, booking)
    await session.refresh(booking)
    logger.info(
        "Vehicle booking %s admitted for vehicle %s via %s",
        booking.id,
        booking.vehicle_id,
        booking.channel.value,
    )
    return booking


async def _admit_attraction_booking(
    session: AsyncSession, *, booking: AttractionBooking
) -> AttractionBooking:
    async with _lock_for(booking.attraction_id):
        try:
            attraction = await _lock_resource(session, Attraction, booking.attraction_id)
            existing = await _attraction_intervals(
                session, attraction_id=attraction.id, visit_date=booking.visit_date
            )
            decision = check_availability(
                ResourceCalendar.for_attraction(attraction),
                Span.for_day(booking.visit_date),
                booking.number_of_people,
                existing,
                time_slot=booking.time_slot,
            )
            if not decision.available:
                logger.info(
                    "Attraction %s rejected %s tickets on %s: %s (remaining=%s)",
                    attraction.id,
                    booking.number_of_people,
                    booking.visit_date.isoformat(),
                    decision.reason.value if decision.reason else "unknown",
                    decision.remaining,
                )
                decision.raise_for_rejection()
        except ReservationEngineError:
            await _end_rejected_admission(session)
            raise
        except Exception:
            await session.rollback()
            raise
        await _commit_admission(session, booking)
    await session.refresh(booking)
    logger.info(
        "Attraction booking %s (%s) admitted for attraction %s",
        booking.id,
        booking.confirmation_code,
        booking.attraction_id,
    )
    return booking


async def create_vehicle_booking(
    session: AsyncSession,
    *,
    guest: User,
    vehicle_id: uuid.UUID,
    pickup_at: datetime | date | str,
    return_at: datetime | date | str,
    pickup_location: str,
    return_location: str | None = None,
    payment_method: Any = None,
    with_driver: bool = False,
    contact_phone: str | None = None,
    special_requests: str | None = None,
) -> VehicleBooking:
    """Book a vehicle online at the rate-card price."""
    span = Span.parse(pickup_at, return_at)
    vehicle = await get_bookable_vehicle(session, vehicle_id)
    rate_card = RateCard.from_vehicle(vehicle)
    quote = quote_rental(rate_card, span)

    settings_row = await commission_service.get_commission_settings(session)
    level = None
    if vehicle.commission_level_id is not None:
        level = await commission_service.get_level(session, vehicle.commission_level_id)
    rate = commission_service.resolve_vehicle_rate(
        settings_row, level, BookingChannel.ONLINE
    )

    booking = VehicleBooking(
        vehicle_id=vehicle.id,
        guest_id=guest.id,
        pickup_at=span.start,
        return_at=span.end,
        pickup_location=pickup_location,
        return_location=return_location,
        number_of_days=quote.duration_days,
        total_amount=quote.amount,
        rate_snapshot=rate_card.snapshot(),
        status=BookingStatus.PENDING,
        channel=BookingChannel.ONLINE,
        commission_rate=rate,
        commission_amount=compute_commission(quote.amount, rate),
        payment_method=normalize_payment_method(payment_method),
        with_driver=with_driver,
        contact_phone=contact_phone,
        special_requests=special_requests,
        guest_name=f"{guest.first_name} {guest.last_name}".strip(),
        guest_email=guest.email,
    )
    return await _admit_vehicle_booking(session, span=span, booking=booking)


async def create_direct_vehicle_booking(
    session: AsyncSession,
    *,
    actor: User,
    vehicle_id: uuid.UUID,
    pickup_at: datetime | date | str,
    return_at: datetime | date | str,
    final_price: Decimal,
    pickup_location: str,
    return_location: str | None = None,
    guest_name: str | None = None,
    guest_email: str | None = None,
    contact_phone: str | None = None,
    payment_method: Any = None,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> VehicleBooking:
    """Record a booking negotiated offline by the vehicle owner."""
    span = Span.parse(pickup_at, return_at)
    vehicle = await get_bookable_vehicle(session, vehicle_id)
    ensure_owner_or_admin(actor, vehicle.owner_id)
    if final_price is None or Decimal(final_price) <= 0:
        raise ReservationEngineError("final_price must be a positive amount")
    if status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
        raise InvalidStatusTransition("Direct bookings start as pending or confirmed")
    total = _to_money(final_price)

    settings_row = await commission_service.get_commission_settings(session)
    level = None
    if vehicle.commission_level_id is not None:
        level = await commission_service.get_level(session, vehicle.commission_level_id)
    rate = commission_service.resolve_vehicle_rate(
        settings_row, level, BookingChannel.DIRECT
    )

    booking = VehicleBooking(
        vehicle_id=vehicle.id,
        guest_id=actor.id,
        pickup_at=span.start,
        return_at=span.end,
        pickup_location=pickup_location,
        return_location=return_location,
        number_of_days=rental_days(span),
        total_amount=total,
        rate_snapshot=RateCard.from_vehicle(vehicle).snapshot(),
        status=status,
        channel=BookingChannel.DIRECT,
        final_agreed_amount=total,
        commission_rate=rate,
        commission_amount=compute_commission(total, rate),
        payment_method=normalize_payment_method(payment_method),
        contact_phone=contact_phone,
        guest_name=guest_name,
        guest_email=guest_email,
    )
    return await _admit_vehicle_booking(session, span=span, booking=booking)


async def create_attraction_booking(
    session: AsyncSession,
    *,
    guest: User,
    attraction_id: uuid.UUID,
    visit_date: date | datetime | str,
    number_of_people: int,
    time_slot: str | None = None,
    payment_method: Any = None,
    contact_phone: str | None = None,
    special_requests: str | None = None,
) -> AttractionBooking:
    day = parse_visit_date(visit_date)
    attraction = await get_bookable_attraction(session, attraction_id)
    total = compute_ticket_charge(attraction.price_per_ticket, number_of_people)
    rate = resolve_commission_rate(attraction.commission_rate)

    booking = AttractionBooking(
        attraction_id=attraction.id,
        guest_id=guest.id,
        confirmation_code=generate_confirmation_code(),
        visit_date=day,
        time_slot=_clean_slot(time_slot),
        number_of_people=number_of_people,
        unit_price=Decimal(attraction.price_per_ticket),
        total_amount=total,
        status=BookingStatus.PENDING,
        commission_amount=compute_commission(total, rate),
        payment_method=normalize_payment_method(payment_method),
        contact_phone=contact_phone,
        special_requests=special_requests,
    )
    return await _admit_attraction_booking(session, booking=booking)


# --- lifecycle --------------------------------------------------------------


def validate_status_transition(
    table: dict[BookingStatus, frozenset[BookingStatus]],
    current: BookingStatus,
    target: BookingStatus,
) -> None:
    if target == current:
        return
    if target not in table[current]:
        raise InvalidStatusTransition(
            f"Invalid status transition from {current.value} to {target.value}"
        )


async def get_vehicle_booking(
    session: AsyncSession, booking_id: uuid.UUID
) -> VehicleBooking:
    stmt = (
        select(VehicleBooking)
        .options(selectinload(VehicleBooking.vehicle))
        .where(VehicleBooking.id == booking_id)
    )
    booking = (await session.execute(stmt)).scalar_one_or_none()
    if booking is None:
        raise ResourceNotFound("Booking not found")
    return booking


async def get_attraction_booking(
    session: AsyncSession, booking_id: uuid.UUID
) -> AttractionBooking:
    stmt = (
        select(AttractionBooking)
        .options(selectinload(AttractionBooking.attraction))
        .where(AttractionBooking.id == booking_id)
    )
    booking = (await session.execute(stmt)).scalar_one_or_none()
    if booking is None:
        raise ResourceNotFound("Booking not found")
    return booking


def _ensure_may_set_status(
    actor: User, owner_id: uuid.UUID, guest_id: uuid.UUID, target: BookingStatus
) -> None:
    # Guests may only cancel their own bookings.
    if actor.id == guest_id and actor.id != owner_id and not actor.is_admin:
        if target is BookingStatus.CANCELLED:
            return
    ensure_owner_or_admin(actor, owner_id)


async def update_vehicle_booking_status(
    session: AsyncSession,
    *,
    actor: User,
    booking_id: uuid.UUID,
    status: BookingStatus,
) -> VehicleBooking:
    booking = await get_vehicle_booking(session, booking_id)
    _ensure_may_set_status(actor, booking.vehicle.owner_id, booking.guest_id, status)
    validate_status_transition(VEHICLE_STATUS_TRANSITIONS, booking.status, status)
    if booking.status != status:
        logger.info(
            "Vehicle booking %s: %s -> %s", booking.id, booking.status.value, status.value
        )
        booking.status = status
        await session.commit()
        await session.refresh(booking)
    return booking


async def update_attraction_booking_status(
    session: AsyncSession,
    *,
    actor: User,
    booking_id: uuid.UUID,
    status: BookingStatus,
) -> AttractionBooking:
    booking = await get_attraction_booking(session, booking_id)
    _ensure_may_set_status(actor, booking.attraction.owner_id, booking.guest_id, status)
    validate_status_transition(ATTRACTION_STATUS_TRANSITIONS, booking.status, status)
    if booking.status != status:
        logger.info(
            "Attraction booking %s: %s -> %s",
            booking.id,
            booking.status.value,
            status.value,
        )
        booking.status = status
        await session.commit()
        await session.refresh(booking)
    return booking


async def record_mileage(
    session: AsyncSession,
    *,
    actor: User,
    booking_id: uuid.UUID,
    mileage_at_pickup: int | None = None,
    mileage_at_return: int | None = None,
) -> VehicleBooking:
    booking = await get_vehicle_booking(session, booking_id)
    ensure_owner_or_admin(actor, booking.vehicle.owner_id)
    pickup = mileage_at_pickup if mileage_at_pickup is not None else booking.mileage_at_pickup
    returned = mileage_at_return if mileage_at_return is not None else booking.mileage_at_return
    for reading in (pickup, returned):
        if reading is not None and reading < 0:
            raise ReservationEngineError("Mileage cannot be negative")
    if pickup is not None and returned is not None and returned < pickup:
        raise ReservationEngineError("Return mileage cannot be lower than pickup mileage")
    booking.mileage_at_pickup = pickup
    booking.mileage_at_return = returned
    await session.commit()
    await session.refresh(booking)
    return booking


async def list_guest_vehicle_bookings(
    session: AsyncSession, *, guest_id: uuid.UUID
) -> Sequence[VehicleBooking]:
    stmt = (
        select(VehicleBooking)
        .where(VehicleBooking.guest_id == guest_id)
        .order_by(VehicleBooking.pickup_at.desc())
    )
    return (await session.execute(stmt)).scalars().all()


async def list_owner_vehicle_bookings(
    session: AsyncSession, *, owner_id: uuid.UUID
) -> Sequence[VehicleBooking]:
    stmt = (
        select(VehicleBooking)
        .join(Vehicle, Vehicle.id == VehicleBooking.vehicle_id)
        .where(Vehicle.owner_id == owner_id)
        .order_by(VehicleBooking.pickup_at.desc())
    )
    return (await session.execute(stmt)).scalars().all()


async def list_guest_attraction_bookings(
    session: AsyncSession, *, guest_id: uuid.UUID
) -> Sequence[AttractionBooking]:
    stmt = (
        select(AttractionBooking)
        .where(AttractionBooking.guest_id == guest_id)
        .order_by(AttractionBooking.visit_date.desc())
    )
    return (await session.execute(stmt)).scalars().all()


async def list_owner_attraction_bookings(
    session: AsyncSession, *, owner_id: uuid.UUID
) -> Sequence[AttractionBooking]:
    stmt = (
        select(AttractionBooking)
        .join(Attraction, Attraction.id == AttractionBooking.attraction_id)
        .where(Attraction.owner_id == owner_id)
        .order_by(AttractionBooking.visit_date.desc())
    )
    return (await session.execute(stmt)).scalars().all()


@dataclass(frozen=True, slots=True)
class ChargeAudit:
    """Comparison between a persisted charge and its recomputation."""

    booking_id: uuid.UUID
    expected: Decimal
    recorded: Decimal

    @property
    def matches(self) -> bool:
        return self.expected == self.recorded

    def to_dict(self) -> dict[str, Any]:
        return {
            "booking_id": str(self.booking_id),
            "expected": str(self.expected),
            "recorded": str(self.recorded),
            "matches": self.matches,
        }


def audit_vehicle_charge(booking: VehicleBooking) -> ChargeAudit:
    """Recompute a vehicle booking's charge from its persisted rate snapshot."""
    recorded = _to_money(booking.total_amount)
    if booking.channel is BookingChannel.DIRECT:
        expected = _to_money(booking.final_agreed_amount or 0)
    elif booking.rate_snapshot:
        span = Span(booking.pickup_at, booking.return_at)
        expected = quote_rental(RateCard.from_snapshot(booking.rate_snapshot), span).amount
    else:
        expected = recorded
    if expected != recorded:
        logger.warning(
            "Charge mismatch on booking %s: expected %s, recorded %s",
            booking.id,
            expected,
            recorded,
        )
    return ChargeAudit(booking_id=booking.id, expected=expected, recorded=recorded)
