"""Pydantic schemas for vehicle and attraction bookings."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from marketplace.models.reservation import BookingChannel, BookingStatus, PaymentMethod


class AvailabilityRead(BaseModel):
    """Outcome of an availability check."""

    available: bool
    reason: str | None = None
    remaining: int | None = None
    capacity: int | None = None
    conflicts: int = 0


class RentalQuoteRead(BaseModel):
    tier: str
    duration_days: int
    whole_periods: int
    remainder_days: int
    amount: Decimal


class VehicleAvailabilityRead(AvailabilityRead):
    quote: RentalQuoteRead | None = None


class VehicleBookingCreate(BaseModel):
    """Payload for an online vehicle booking."""

    vehicle_id: uuid.UUID
    pickup_at: datetime
    return_at: datetime
    pickup_location: str = Field(min_length=1, max_length=255)
    return_location: str | None = None
    payment_method: str | None = None
    with_driver: bool = False
    contact_phone: str | None = None
    special_requests: str | None = None


class DirectVehicleBookingCreate(BaseModel):
    """Payload for a booking agreed offline by the vehicle owner."""

    vehicle_id: uuid.UUID
    pickup_at: datetime
    return_at: datetime
    final_price: Decimal = Field(gt=Decimal("0"))
    pickup_location: str = Field(min_length=1, max_length=255)
    return_location: str | None = None
    guest_name: str | None = None
    guest_email: str | None = None
    contact_phone: str | None = None
    payment_method: str | None = None
    status: BookingStatus = BookingStatus.CONFIRMED


class VehicleBookingRead(BaseModel):
    """Serialized vehicle booking."""

    id: uuid.UUID
    vehicle_id: uuid.UUID
    guest_id: uuid.UUID
    pickup_at: datetime
    return_at: datetime
    pickup_location: str
    return_location: str | None = None
    number_of_days: int
    total_amount: Decimal
    rate_snapshot: dict[str, Any] | None = None
    status: BookingStatus
    channel: BookingChannel
    final_agreed_amount: Decimal | None = None
    commission_rate: Decimal | None = None
    commission_amount: Decimal
    commission_paid: bool
    payment_method: PaymentMethod | None = None
    with_driver: bool
    contact_phone: str | None = None
    special_requests: str | None = None
    guest_name: str | None = None
    guest_email: str | None = None
    mileage_at_pickup: int | None = None
    mileage_at_return: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttractionBookingCreate(BaseModel):
    """Payload for buying attraction tickets."""

    attraction_id: uuid.UUID
    visit_date: date
    number_of_people: int = Field(default=1, ge=1)
    time_slot: str | None = None
    payment_method: str | None = None
    contact_phone: str | None = None
    special_requests: str | None = None


class AttractionBookingRead(BaseModel):
    """Serialized attraction booking."""

    id: uuid.UUID
    attraction_id: uuid.UUID
    guest_id: uuid.UUID
    confirmation_code: str
    visit_date: date
    time_slot: str | None = None
    number_of_people: int
    unit_price: Decimal
    total_amount: Decimal
    status: BookingStatus
    commission_amount: Decimal
    commission_paid: bool
    payment_method: PaymentMethod | None = None
    contact_phone: str | None = None
    special_requests: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class MileageUpdate(BaseModel):
    mileage_at_pickup: int | None = Field(default=None, ge=0)
    mileage_at_return: int | None = Field(default=None, ge=0)


class ChargeAuditRead(BaseModel):
    booking_id: uuid.UUID
    expected: Decimal
    recorded: Decimal
    matches: bool
