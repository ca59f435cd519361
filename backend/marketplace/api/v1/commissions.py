"""Platform commission settings and levels (admin only)."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api import deps
from marketplace.api.errors import to_http_exception
from marketplace.models import CommissionScope, User, UserRole
from marketplace.schemas.commission import (
    CommissionLevelCreate,
    CommissionLevelRead,
    CommissionSettingsRead,
    CommissionSettingsUpdate,
)
from marketplace.security.permissions import require_roles
from marketplace.services import commission_service

router = APIRouter()

_ADMIN = {UserRole.ADMIN}


def _assert_admin(user: User) -> None:
    try:
        require_roles(user, _ADMIN)
    except ValueError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/commission-settings",
    response_model=CommissionSettingsRead,
    summary="Platform commission rates",
)
async def read_commission_settings(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> CommissionSettingsRead:
    _assert_admin(current_user)
    settings_row = await commission_service.get_commission_settings(session)
    return CommissionSettingsRead.model_validate(settings_row)


@router.put(
    "/commission-settings",
    response_model=CommissionSettingsRead,
    summary="Update platform commission rates",
)
async def update_commission_settings(
    payload: CommissionSettingsUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> CommissionSettingsRead:
    _assert_admin(current_user)
    settings_row = await commission_service.update_commission_settings(
        session, **payload.model_dump()
    )
    return CommissionSettingsRead.model_validate(settings_row)


@router.get(
    "/commission-levels",
    response_model=list[CommissionLevelRead],
    summary="List commission levels",
)
async def list_commission_levels(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    scope: CommissionScope | None = Query(default=None),
    active_only: bool = Query(default=False),
) -> list[CommissionLevelRead]:
    _assert_admin(current_user)
    levels = await commission_service.list_levels(
        session, scope=scope, active_only=active_only
    )
    return [CommissionLevelRead.model_validate(level) for level in levels]


@router.post(
    "/commission-levels",
    response_model=CommissionLevelRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a commission level",
)
async def create_commission_level(
    payload: CommissionLevelCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> CommissionLevelRead:
    _assert_admin(current_user)
    try:
        level = await commission_service.create_level(session, **payload.model_dump())
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return CommissionLevelRead.model_validate(level)
