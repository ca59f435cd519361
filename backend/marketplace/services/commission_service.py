"""Platform commission settings, commission levels and rate resolution."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import ReservationEngineError
from marketplace.models import (
    BookingChannel,
    CommissionLevel,
    CommissionScope,
    CommissionSettings,
)
from marketplace.services.pricing_service import resolve_commission_rate

logger = logging.getLogger(__name__)

SETTINGS_ID = 1
_MIN_RATE = Decimal("0")
_MAX_RATE = Decimal("100")

DEFAULT_LEVELS: tuple[dict[str, Any], ...] = (
    {
        "key": "standard",
        "name": "Standard",
        "description": "Default commission for new listings",
        "direct_rate": Decimal("5"),
        "online_rate": Decimal("8"),
        "is_default": True,
        "sort_order": 0,
    },
    {
        "key": "premium",
        "name": "Premium",
        "description": "Boosted placement in search results",
        "direct_rate": Decimal("7"),
        "online_rate": Decimal("10"),
        "is_premium": True,
        "sort_order": 1,
    },
    {
        "key": "featured",
        "name": "Featured",
        "description": "Homepage and campaign placement",
        "direct_rate": Decimal("9"),
        "online_rate": Decimal("12"),
        "is_premium": True,
        "sort_order": 2,
    },
)


def _clamp_rate(value: Decimal | float | int | str) -> Decimal:
    rate = Decimal(str(value))
    return min(max(rate, _MIN_RATE), _MAX_RATE)


async def get_commission_settings(session: AsyncSession) -> CommissionSettings:
    """Return the platform settings row, creating it with defaults on first use."""
    settings_row = await session.get(CommissionSettings, SETTINGS_ID)
    if settings_row is None:
        session.add(CommissionSettings(id=SETTINGS_ID))
        try:
            await session.commit()
        except IntegrityError:
            # Created concurrently by another request.
            await session.rollback()
        else:
            logger.info("Created default commission settings")
        settings_row = await session.get(CommissionSettings, SETTINGS_ID)
        if settings_row is None:  # pragma: no cover - row was just written
            raise ReservationEngineError("Commission settings unavailable")
    return settings_row


async def update_commission_settings(
    session: AsyncSession,
    *,
    base_rate: Decimal | None = None,
    premium_rate: Decimal | None = None,
    featured_rate: Decimal | None = None,
    enforcement_paused: bool | None = None,
) -> CommissionSettings:
    settings_row = await get_commission_settings(session)
    if base_rate is not None:
        settings_row.base_rate = _clamp_rate(base_rate)
    if premium_rate is not None:
        settings_row.premium_rate = _clamp_rate(premium_rate)
    if featured_rate is not None:
        settings_row.featured_rate = _clamp_rate(featured_rate)
    if enforcement_paused is not None:
        settings_row.enforcement_paused = enforcement_paused
    await session.commit()
    await session.refresh(settings_row)
    return settings_row


async def list_levels(
    session: AsyncSession,
    *,
    scope: CommissionScope | None = None,
    active_only: bool = False,
) -> Sequence[CommissionLevel]:
    stmt = select(CommissionLevel).order_by(
        CommissionLevel.sort_order, CommissionLevel.name
    )
    if scope is not None:
        stmt = stmt.where(CommissionLevel.scope == scope)
    if active_only:
        stmt = stmt.where(CommissionLevel.active.is_(True))
    return (await session.execute(stmt)).scalars().all()


async def create_level(
    session: AsyncSession,
    *,
    name: str,
    key: str,
    direct_rate: Decimal,
    online_rate: Decimal,
    description: str | None = None,
    is_premium: bool = False,
    is_default: bool = False,
    active: bool = True,
    sort_order: int = 0,
    scope: CommissionScope = CommissionScope.PROPERTY,
) -> CommissionLevel:
    key = key.strip().lower()
    existing = await session.execute(
        select(CommissionLevel.id).where(CommissionLevel.key == key)
    )
    if existing.first():
        raise ReservationEngineError(f"Commission level '{key}' already exists")
    level = CommissionLevel(
        name=name,
        key=key,
        description=description,
        direct_rate=_clamp_rate(direct_rate),
        online_rate=_clamp_rate(online_rate),
        is_premium=is_premium,
        is_default=is_default,
        active=active,
        sort_order=sort_order,
        scope=scope,
    )
    session.add(level)
    await session.commit()
    await session.refresh(level)
    return level


async def ensure_default_levels(
    session: AsyncSession, *, scope: CommissionScope = CommissionScope.VEHICLE
) -> int:
    """Install the default levels for ``scope``; returns the number created."""
    created = 0
    for template in DEFAULT_LEVELS:
        key = f"{scope.value}-{template['key']}"
        found = await session.execute(
            select(CommissionLevel.id).where(CommissionLevel.key == key)
        )
        if found.first():
            continue
        session.add(CommissionLevel(**{**template, "key": key, "scope": scope}))
        created += 1
    if created:
        await session.commit()
    return created


def resolve_vehicle_rate(
    settings_row: CommissionSettings,
    level: CommissionLevel | None,
    channel: BookingChannel,
) -> Decimal:
    """Commission percentage for a vehicle booking on ``channel``.

    Online bookings use the level's online rate, then the platform premium
    rate, then the base rate. Direct bookings use the level's direct rate,
    then the base rate. Inactive levels are ignored.
    """
    if level is not None and not level.active:
        level = None
    if channel is BookingChannel.DIRECT:
        candidates = (
            level.direct_rate if level is not None else None,
            settings_row.base_rate,
        )
    else:
        candidates = (
            level.online_rate if level is not None else None,
            settings_row.premium_rate,
            settings_row.base_rate,
        )
    rate = resolve_commission_rate(*candidates)
    if level is None:
        logger.debug("Commission for %s booking fell back to platform rate %s", channel.value, rate)
    return rate


async def get_level(session: AsyncSession, level_id: uuid.UUID) -> CommissionLevel | None:
    return await session.get(CommissionLevel, level_id)
