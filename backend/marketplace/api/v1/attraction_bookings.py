"""Attraction ticket booking endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api import deps
from marketplace.api.errors import to_http_exception
from marketplace.models.user import User
from marketplace.schemas.booking import (
    AttractionBookingCreate,
    AttractionBookingRead,
    BookingStatusUpdate,
)
from marketplace.security.permissions import ensure_owner_or_admin
from marketplace.services import booking_service

router = APIRouter(prefix="/attraction-bookings")


@router.post(
    "",
    response_model=AttractionBookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Buy attraction tickets",
)
async def create_attraction_booking(
    payload: AttractionBookingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AttractionBookingRead:
    try:
        booking = await booking_service.create_attraction_booking(
            session, guest=current_user, **payload.model_dump()
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return AttractionBookingRead.model_validate(booking)


@router.get("/mine", response_model=list[AttractionBookingRead], summary="My tickets")
async def list_my_attraction_bookings(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> list[AttractionBookingRead]:
    bookings = await booking_service.list_guest_attraction_bookings(
        session, guest_id=current_user.id
    )
    return [AttractionBookingRead.model_validate(item) for item in bookings]


@router.get(
    "/owner",
    response_model=list[AttractionBookingRead],
    summary="Bookings for my attractions",
)
async def list_owner_attraction_bookings(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> list[AttractionBookingRead]:
    bookings = await booking_service.list_owner_attraction_bookings(
        session, owner_id=current_user.id
    )
    return [AttractionBookingRead.model_validate(item) for item in bookings]


@router.get("/{booking_id}", response_model=AttractionBookingRead, summary="Booking detail")
async def get_attraction_booking(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AttractionBookingRead:
    try:
        booking = await booking_service.get_attraction_booking(session, booking_id)
        if booking.guest_id != current_user.id:
            ensure_owner_or_admin(current_user, booking.attraction.owner_id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return AttractionBookingRead.model_validate(booking)


@router.patch(
    "/{booking_id}/status",
    response_model=AttractionBookingRead,
    summary="Change booking status",
)
async def update_attraction_booking_status(
    booking_id: uuid.UUID,
    payload: BookingStatusUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AttractionBookingRead:
    try:
        booking = await booking_service.update_attraction_booking_status(
            session, actor=current_user, booking_id=booking_id, status=payload.status
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return AttractionBookingRead.model_validate(booking)
