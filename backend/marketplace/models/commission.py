"""Platform commission configuration."""

from __future__ import annotations

import enum
import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.db.base import Base
from marketplace.models.mixins import TimestampMixin


class CommissionScope(str, enum.Enum):
    """Product family a commission level applies to."""

    PROPERTY = "property"
    VEHICLE = "vehicle"
    FLIGHT = "flight"


class CommissionSettings(TimestampMixin, Base):
    """Singleton row holding the platform-wide fallback rates (percent)."""

    __tablename__ = "commission_settings"

    id: Mapped[int] = mapped_column(Integer(), primary_key=True, default=1)
    base_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("8"), nullable=False
    )
    premium_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("10"), nullable=False
    )
    featured_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("12"), nullable=False
    )
    enforcement_paused: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )


class CommissionLevel(TimestampMixin, Base):
    """Named commission tier assignable to individual listings."""

    __tablename__ = "commission_levels"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(512))
    direct_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    online_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer(), default=0, nullable=False)
    scope: Mapped[CommissionScope] = mapped_column(
        Enum(CommissionScope), default=CommissionScope.PROPERTY, nullable=False
    )
