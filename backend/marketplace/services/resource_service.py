"""Vehicle and attraction listing helpers."""
from __future__ import annotations

import uuid
from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import ReservationEngineError, ResourceNotFound
from marketplace.models import (
    WEEKDAY_NAMES,
    Attraction,
    CommissionLevel,
    LedgerDomain,
    User,
    Vehicle,
    VehicleType,
)
from marketplace.security.permissions import ensure_owner_or_admin


def _normalize_days(days: Sequence[str] | None) -> list[str] | None:
    if not days:
        return None
    normalized: list[str] = []
    for day in days:
        key = day.strip().lower()
        if key not in WEEKDAY_NAMES:
            raise ReservationEngineError(f"Unknown weekday: {day!r}")
        if key not in normalized:
            normalized.append(key)
    return normalized


def _normalize_slots(slots: Sequence[str] | None) -> list[str] | None:
    if not slots:
        return None
    cleaned = [slot.strip() for slot in slots if slot and slot.strip()]
    return list(dict.fromkeys(cleaned)) or None


async def create_vehicle(
    session: AsyncSession,
    *,
    owner: User,
    name: str,
    price_per_day: Decimal,
    vehicle_type: VehicleType = VehicleType.ECONOMY,
    price_per_week: Decimal | None = None,
    price_per_month: Decimal | None = None,
    currency: str = "RWF",
    commission_level_id: uuid.UUID | None = None,
) -> Vehicle:
    if price_per_day <= 0:
        raise ReservationEngineError("price_per_day must be positive")
    if commission_level_id is not None:
        level = await session.get(CommissionLevel, commission_level_id)
        if level is None:
            raise ResourceNotFound("Commission level not found")
    vehicle = Vehicle(
        owner_id=owner.id,
        name=name,
        vehicle_type=vehicle_type,
        price_per_day=price_per_day,
        price_per_week=price_per_week,
        price_per_month=price_per_month,
        currency=currency,
        commission_level_id=commission_level_id,
    )
    session.add(vehicle)
    await session.commit()
    await session.refresh(vehicle)
    return vehicle


async def create_attraction(
    session: AsyncSession,
    *,
    owner: User,
    name: str,
    price_per_ticket: Decimal,
    capacity: int = 50,
    operating_days: Sequence[str] | None = None,
    time_slots: Sequence[str] | None = None,
    commission_rate: Decimal = Decimal("15"),
    currency: str = "RWF",
) -> Attraction:
    if price_per_ticket < 0:
        raise ReservationEngineError("price_per_ticket cannot be negative")
    if capacity < 1:
        raise ReservationEngineError("capacity must be at least 1")
    attraction = Attraction(
        owner_id=owner.id,
        name=name,
        price_per_ticket=price_per_ticket,
        capacity=capacity,
        operating_days=_normalize_days(operating_days),
        time_slots=_normalize_slots(time_slots),
        commission_rate=commission_rate,
        currency=currency,
    )
    session.add(attraction)
    await session.commit()
    await session.refresh(attraction)
    return attraction


async def list_vehicles(
    session: AsyncSession, *, owner_id: uuid.UUID | None = None
) -> Sequence[Vehicle]:
    stmt = select(Vehicle).order_by(Vehicle.created_at.desc())
    if owner_id is not None:
        stmt = stmt.where(Vehicle.owner_id == owner_id)
    else:
        stmt = stmt.where(Vehicle.is_active.is_(True))
    return (await session.execute(stmt)).scalars().all()


async def list_attractions(
    session: AsyncSession, *, owner_id: uuid.UUID | None = None
) -> Sequence[Attraction]:
    stmt = select(Attraction).order_by(Attraction.created_at.desc())
    if owner_id is not None:
        stmt = stmt.where(Attraction.owner_id == owner_id)
    else:
        stmt = stmt.where(Attraction.is_active.is_(True))
    return (await session.execute(stmt)).scalars().all()


async def get_vehicle(session: AsyncSession, vehicle_id: uuid.UUID) -> Vehicle:
    vehicle = await session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise ResourceNotFound("Vehicle not found")
    return vehicle


async def get_attraction(session: AsyncSession, attraction_id: uuid.UUID) -> Attraction:
    attraction = await session.get(Attraction, attraction_id)
    if attraction is None:
        raise ResourceNotFound("Attraction not found")
    return attraction


async def get_bookable_vehicle(session: AsyncSession, vehicle_id: uuid.UUID) -> Vehicle:
    """Return an active vehicle; inactive listings are treated as missing."""
    vehicle = await get_vehicle(session, vehicle_id)
    if not vehicle.is_active:
        raise ResourceNotFound("Vehicle not found")
    return vehicle


async def get_bookable_attraction(
    session: AsyncSession, attraction_id: uuid.UUID
) -> Attraction:
    attraction = await get_attraction(session, attraction_id)
    if not attraction.is_active:
        raise ResourceNotFound("Attraction not found")
    return attraction


async def set_active(
    session: AsyncSession,
    *,
    resource: Vehicle | Attraction,
    user: User,
    is_active: bool,
) -> Vehicle | Attraction:
    ensure_owner_or_admin(user, resource.owner_id)
    resource.is_active = is_active
    await session.commit()
    await session.refresh(resource)
    return resource


async def get_owned_resource(
    session: AsyncSession,
    *,
    user: User,
    domain: LedgerDomain,
    resource_id: uuid.UUID,
) -> Vehicle | Attraction:
    """Load a vehicle or attraction the user owns (admins may load any)."""
    if domain is LedgerDomain.VEHICLES:
        resource: Vehicle | Attraction = await get_vehicle(session, resource_id)
    else:
        resource = await get_attraction(session, resource_id)
    ensure_owner_or_admin(user, resource.owner_id)
    return resource
