"""Rental vehicle listings."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base
from marketplace.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from marketplace.models.reservation import VehicleBooking
    from marketplace.models.commission import CommissionLevel


class VehicleType(str, enum.Enum):
    """Vehicle categories offered for rent."""

    ECONOMY = "economy"
    COMPACT = "compact"
    MID_SIZE = "mid-size"
    FULL_SIZE = "full-size"
    LUXURY = "luxury"
    SUV = "suv"
    MINIVAN = "minivan"
    MOTORCYCLE = "motorcycle"
    BICYCLE = "bicycle"


class Vehicle(TimestampMixin, Base):
    """An exclusively-rented vehicle with a tiered rate card."""

    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    vehicle_type: Mapped[VehicleType] = mapped_column(
        Enum(VehicleType), default=VehicleType.ECONOMY, nullable=False
    )
    price_per_day: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    price_per_week: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    price_per_month: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    currency: Mapped[str] = mapped_column(String(8), default="RWF", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    commission_level_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("commission_levels.id", ondelete="SET NULL")
    )

    commission_level: Mapped["CommissionLevel | None"] = relationship("CommissionLevel")
    bookings: Mapped[list["VehicleBooking"]] = relationship(
        "VehicleBooking", back_populates="vehicle"
    )
