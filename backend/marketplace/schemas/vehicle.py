"""Pydantic schemas for rental vehicles."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from marketplace.models.vehicle import VehicleType


class VehicleBase(BaseModel):
    """Shared vehicle fields."""

    name: str = Field(min_length=1, max_length=255)
    vehicle_type: VehicleType = VehicleType.ECONOMY
    price_per_day: Decimal = Field(gt=Decimal("0"))
    price_per_week: Decimal | None = Field(default=None, ge=Decimal("0"))
    price_per_month: Decimal | None = Field(default=None, ge=Decimal("0"))
    currency: str = "RWF"
    commission_level_id: uuid.UUID | None = None


class VehicleCreate(VehicleBase):
    """Payload for listing a vehicle."""


class VehicleRead(VehicleBase):
    """Serialized vehicle representation."""

    id: uuid.UUID
    owner_id: uuid.UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ListingActivation(BaseModel):
    is_active: bool
