"""Attraction listings sold as day tickets."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base
from marketplace.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from marketplace.models.reservation import AttractionBooking


WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class Attraction(TimestampMixin, Base):
    """A shared-capacity attraction with optional named time slots."""

    __tablename__ = "attractions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_per_ticket: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), default="RWF", nullable=False)
    capacity: Mapped[int] = mapped_column(Integer(), default=50, nullable=False)
    operating_days: Mapped[list[str] | None] = mapped_column(JSON)
    time_slots: Mapped[list[str] | None] = mapped_column(JSON)
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("15"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    bookings: Mapped[list["AttractionBooking"]] = relationship(
        "AttractionBooking", back_populates="attraction"
    )

    @property
    def allowed_weekdays(self) -> frozenset[int] | None:
        """Operating weekdays as ``date.weekday()`` numbers, or None when unrestricted."""
        if not self.operating_days:
            return None
        return frozenset(
            WEEKDAY_NAMES.index(day.lower())
            for day in self.operating_days
            if day.lower() in WEEKDAY_NAMES
        )
