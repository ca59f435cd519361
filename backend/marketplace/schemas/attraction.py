"""Pydantic schemas for attractions."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from marketplace.models.attraction import WEEKDAY_NAMES


class AttractionBase(BaseModel):
    """Shared attraction fields."""

    name: str = Field(min_length=1, max_length=255)
    price_per_ticket: Decimal = Field(ge=Decimal("0"))
    capacity: int = Field(default=50, ge=1)
    operating_days: list[str] | None = None
    time_slots: list[str] | None = None
    commission_rate: Decimal = Field(default=Decimal("15"), ge=0, le=100)
    currency: str = "RWF"


class AttractionCreate(AttractionBase):
    """Payload for listing an attraction.

    ``time_slots`` and ``operating_days`` accept a comma-separated string.
    """

    @field_validator("time_slots", "operating_days", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("operating_days")
    @classmethod
    def _known_weekdays(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        days = [day.lower() for day in value]
        unknown = [day for day in days if day not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
        return days


class AttractionRead(AttractionBase):
    """Serialized attraction representation."""

    id: uuid.UUID
    owner_id: uuid.UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
