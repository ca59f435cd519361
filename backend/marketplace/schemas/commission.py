"""Commission settings and level schemas."""
from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from marketplace.models.commission import CommissionScope


class CommissionSettingsRead(BaseModel):
    base_rate: Decimal
    premium_rate: Decimal
    featured_rate: Decimal
    enforcement_paused: bool

    model_config = ConfigDict(from_attributes=True)


class CommissionSettingsUpdate(BaseModel):
    """Rates outside 0-100 are clamped by the service."""

    base_rate: Decimal | None = None
    premium_rate: Decimal | None = None
    featured_rate: Decimal | None = None
    enforcement_paused: bool | None = None


class CommissionLevelBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    key: str = Field(min_length=1, max_length=64)
    description: str | None = None
    direct_rate: Decimal
    online_rate: Decimal
    is_premium: bool = False
    is_default: bool = False
    active: bool = True
    sort_order: int = 0
    scope: CommissionScope = CommissionScope.PROPERTY


class CommissionLevelCreate(CommissionLevelBase):
    """Payload for creating a commission level."""


class CommissionLevelRead(CommissionLevelBase):
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)
