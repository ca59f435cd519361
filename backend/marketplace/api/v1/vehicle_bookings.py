"""Vehicle booking endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api import deps
from marketplace.api.errors import to_http_exception
from marketplace.models.user import User
from marketplace.schemas.booking import (
    BookingStatusUpdate,
    ChargeAuditRead,
    DirectVehicleBookingCreate,
    MileageUpdate,
    VehicleBookingCreate,
    VehicleBookingRead,
)
from marketplace.security.permissions import ensure_owner_or_admin
from marketplace.services import booking_service

router = APIRouter(prefix="/vehicle-bookings")


@router.post(
    "",
    response_model=VehicleBookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book a vehicle online",
)
async def create_vehicle_booking(
    payload: VehicleBookingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> VehicleBookingRead:
    try:
        booking = await booking_service.create_vehicle_booking(
            session, guest=current_user, **payload.model_dump()
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleBookingRead.model_validate(booking)


@router.post(
    "/direct",
    response_model=VehicleBookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record a booking agreed directly with the owner",
)
async def create_direct_vehicle_booking(
    payload: DirectVehicleBookingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> VehicleBookingRead:
    try:
        booking = await booking_service.create_direct_vehicle_booking(
            session, actor=current_user, **payload.model_dump()
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleBookingRead.model_validate(booking)


@router.get("/mine", response_model=list[VehicleBookingRead], summary="My rentals")
async def list_my_vehicle_bookings(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> list[VehicleBookingRead]:
    bookings = await booking_service.list_guest_vehicle_bookings(
        session, guest_id=current_user.id
    )
    return [VehicleBookingRead.model_validate(item) for item in bookings]


@router.get(
    "/owner", response_model=list[VehicleBookingRead], summary="Bookings for my vehicles"
)
async def list_owner_vehicle_bookings(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> list[VehicleBookingRead]:
    bookings = await booking_service.list_owner_vehicle_bookings(
        session, owner_id=current_user.id
    )
    return [VehicleBookingRead.model_validate(item) for item in bookings]


@router.get("/{booking_id}", response_model=VehicleBookingRead, summary="Booking detail")
async def get_vehicle_booking(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> VehicleBookingRead:
    try:
        booking = await booking_service.get_vehicle_booking(session, booking_id)
        if booking.guest_id != current_user.id:
            ensure_owner_or_admin(current_user, booking.vehicle.owner_id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleBookingRead.model_validate(booking)


@router.patch(
    "/{booking_id}/status", response_model=VehicleBookingRead, summary="Change booking status"
)
async def update_vehicle_booking_status(
    booking_id: uuid.UUID,
    payload: BookingStatusUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> VehicleBookingRead:
    try:
        booking = await booking_service.update_vehicle_booking_status(
            session, actor=current_user, booking_id=booking_id, status=payload.status
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleBookingRead.model_validate(booking)


@router.patch(
    "/{booking_id}/mileage", response_model=VehicleBookingRead, summary="Record odometer readings"
)
async def record_vehicle_mileage(
    booking_id: uuid.UUID,
    payload: MileageUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> VehicleBookingRead:
    try:
        booking = await booking_service.record_mileage(
            session, actor=current_user, booking_id=booking_id, **payload.model_dump()
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleBookingRead.model_validate(booking)


@router.get(
    "/{booking_id}/audit",
    response_model=ChargeAuditRead,
    summary="Recompute the charge from the stored rate card",
)
async def audit_vehicle_booking(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> ChargeAuditRead:
    try:
        booking = await booking_service.get_vehicle_booking(session, booking_id)
        ensure_owner_or_admin(current_user, booking.vehicle.owner_id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    audit = booking_service.audit_vehicle_charge(booking)
    return ChargeAuditRead(**audit.to_dict())
