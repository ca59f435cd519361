"""Attraction listing endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api import deps
from marketplace.api.errors import to_http_exception
from marketplace.models.user import User, UserRole
from marketplace.schemas.attraction import AttractionCreate, AttractionRead
from marketplace.schemas.booking import AvailabilityRead
from marketplace.schemas.vehicle import ListingActivation
from marketplace.security.permissions import require_roles
from marketplace.services import booking_service, resource_service

router = APIRouter(prefix="/attractions")

_LISTING_ROLES = {UserRole.HOST, UserRole.ADMIN}


@router.post(
    "",
    response_model=AttractionRead,
    status_code=status.HTTP_201_CREATED,
    summary="List an attraction",
)
async def create_attraction(
    payload: AttractionCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AttractionRead:
    try:
        require_roles(current_user, _LISTING_ROLES)
        attraction = await resource_service.create_attraction(
            session, owner=current_user, **payload.model_dump()
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return AttractionRead.model_validate(attraction)


@router.get("", response_model=list[AttractionRead], summary="Browse attractions")
async def list_attractions(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[AttractionRead]:
    attractions = await resource_service.list_attractions(session)
    return [AttractionRead.model_validate(item) for item in attractions]


@router.get("/mine", response_model=list[AttractionRead], summary="Attractions I own")
async def list_my_attractions(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> list[AttractionRead]:
    attractions = await resource_service.list_attractions(
        session, owner_id=current_user.id
    )
    return [AttractionRead.model_validate(item) for item in attractions]


@router.get("/{attraction_id}", response_model=AttractionRead, summary="Attraction detail")
async def get_attraction(
    attraction_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> AttractionRead:
    try:
        attraction = await resource_service.get_attraction(session, attraction_id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return AttractionRead.model_validate(attraction)


@router.patch(
    "/{attraction_id}/activation",
    response_model=AttractionRead,
    summary="Enable or disable bookings",
)
async def set_attraction_activation(
    attraction_id: uuid.UUID,
    payload: ListingActivation,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AttractionRead:
    try:
        attraction = await resource_service.get_attraction(session, attraction_id)
        attraction = await resource_service.set_active(
            session, resource=attraction, user=current_user, is_active=payload.is_active
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return AttractionRead.model_validate(attraction)


@router.get(
    "/{attraction_id}/availability",
    response_model=AvailabilityRead,
    summary="Remaining tickets for a visit day",
)
async def attraction_availability(
    attraction_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    visit_date: date = Query(..., alias="date"),
    units: int = Query(default=1, ge=1),
    time_slot: str | None = Query(default=None),
) -> AvailabilityRead:
    try:
        decision = await booking_service.check_attraction_availability(
            session,
            attraction_id=attraction_id,
            visit_date=visit_date,
            units=units,
            time_slot=time_slot,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return AvailabilityRead(**decision.to_dict())
