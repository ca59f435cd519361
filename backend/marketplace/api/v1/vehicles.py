"""Vehicle listing endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api import deps
from marketplace.api.errors import to_http_exception
from marketplace.models.user import User, UserRole
from marketplace.schemas.booking import RentalQuoteRead, VehicleAvailabilityRead
from marketplace.schemas.vehicle import ListingActivation, VehicleCreate, VehicleRead
from marketplace.security.permissions import require_roles
from marketplace.services import booking_service, resource_service

router = APIRouter(prefix="/vehicles")

_LISTING_ROLES = {UserRole.HOST, UserRole.ADMIN}


@router.post(
    "", response_model=VehicleRead, status_code=status.HTTP_201_CREATED, summary="List a vehicle"
)
async def create_vehicle(
    payload: VehicleCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> VehicleRead:
    try:
        require_roles(current_user, _LISTING_ROLES)
        vehicle = await resource_service.create_vehicle(
            session, owner=current_user, **payload.model_dump()
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleRead.model_validate(vehicle)


@router.get("", response_model=list[VehicleRead], summary="Browse bookable vehicles")
async def list_vehicles(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[VehicleRead]:
    vehicles = await resource_service.list_vehicles(session)
    return [VehicleRead.model_validate(vehicle) for vehicle in vehicles]


@router.get("/mine", response_model=list[VehicleRead], summary="Vehicles I own")
async def list_my_vehicles(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> list[VehicleRead]:
    vehicles = await resource_service.list_vehicles(session, owner_id=current_user.id)
    return [VehicleRead.model_validate(vehicle) for vehicle in vehicles]


@router.get("/{vehicle_id}", response_model=VehicleRead, summary="Vehicle detail")
async def get_vehicle(
    vehicle_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> VehicleRead:
    try:
        vehicle = await resource_service.get_vehicle(session, vehicle_id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleRead.model_validate(vehicle)


@router.patch(
    "/{vehicle_id}/activation", response_model=VehicleRead, summary="Enable or disable bookings"
)
async def set_vehicle_activation(
    vehicle_id: uuid.UUID,
    payload: ListingActivation,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> VehicleRead:
    try:
        vehicle = await resource_service.get_vehicle(session, vehicle_id)
        vehicle = await resource_service.set_active(
            session, resource=vehicle, user=current_user, is_active=payload.is_active
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleRead.model_validate(vehicle)


@router.get(
    "/{vehicle_id}/availability",
    response_model=VehicleAvailabilityRead,
    summary="Check availability and price for a rental span",
)
async def vehicle_availability(
    vehicle_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start: datetime = Query(...),
    end: datetime = Query(...),
) -> VehicleAvailabilityRead:
    try:
        decision = await booking_service.check_vehicle_availability(
            session, vehicle_id=vehicle_id, start=start, end=end
        )
        quote = await booking_service.quote_vehicle(
            session, vehicle_id=vehicle_id, start=start, end=end
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return VehicleAvailabilityRead(
        **decision.to_dict(), quote=RentalQuoteRead(**quote.to_dict())
    )
