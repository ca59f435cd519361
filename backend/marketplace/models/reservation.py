"""Reservation models for vehicles and attractions."""
from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base
from marketplace.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from marketplace.models.attraction import Attraction
    from marketplace.models.vehicle import Vehicle


class BookingStatus(str, enum.Enum):
    """Lifecycle states shared by all reservations."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingChannel(str, enum.Enum):
    """How a vehicle booking entered the system."""

    ONLINE = "online"
    DIRECT = "direct"


class PaymentMethod(str, enum.Enum):
    """Payment methods a guest may declare at booking time."""

    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"


class VehicleBooking(TimestampMixin, Base):
    """Exclusive rental of a vehicle over ``[pickup_at, return_at)``."""

    __tablename__ = "vehicle_bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    pickup_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    return_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    pickup_location: Mapped[str] = mapped_column(String(255), nullable=False)
    return_location: Mapped[str | None] = mapped_column(String(255))
    number_of_days: Mapped[int] = mapped_column(Integer(), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    rate_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False
    )
    channel: Mapped[BookingChannel] = mapped_column(
        Enum(BookingChannel), default=BookingChannel.ONLINE, nullable=False
    )
    final_agreed_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    commission_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    commission_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_method: Mapped[PaymentMethod | None] = mapped_column(Enum(PaymentMethod))
    with_driver: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contact_phone: Mapped[str | None] = mapped_column(String(32))
    special_requests: Mapped[str | None] = mapped_column(String(1024))
    guest_name: Mapped[str | None] = mapped_column(String(255))
    guest_email: Mapped[str | None] = mapped_column(String(320))
    mileage_at_pickup: Mapped[int | None] = mapped_column(Integer())
    mileage_at_return: Mapped[int | None] = mapped_column(Integer())

    vehicle: Mapped["Vehicle"] = relationship("Vehicle", back_populates="bookings")


class AttractionBooking(TimestampMixin, Base):
    """Tickets for one attraction visit day, optionally within a named slot."""

    __tablename__ = "attraction_bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    attraction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("attractions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    confirmation_code: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    visit_date: Mapped[date] = mapped_column(Date(), nullable=False)
    time_slot: Mapped[str | None] = mapped_column(String(64))
    number_of_people: Mapped[int] = mapped_column(Integer(), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), nullable=False
    )
    commission_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_method: Mapped[PaymentMethod | None] = mapped_column(Enum(PaymentMethod))
    contact_phone: Mapped[str | None] = mapped_column(String(32))
    special_requests: Mapped[str | None] = mapped_column(String(1024))

    attraction: Mapped["Attraction"] = relationship(
        "Attraction", back_populates="bookings"
    )
