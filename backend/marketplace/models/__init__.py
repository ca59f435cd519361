"""ORM models package export."""

from marketplace.models.attraction import WEEKDAY_NAMES, Attraction
from marketplace.models.commission import (
    CommissionLevel,
    CommissionScope,
    CommissionSettings,
)
from marketplace.models.expense import Expense, LedgerDomain
from marketplace.models.reservation import (
    AttractionBooking,
    BookingChannel,
    BookingStatus,
    PaymentMethod,
    VehicleBooking,
)
from marketplace.models.user import User, UserRole, UserStatus
from marketplace.models.vehicle import Vehicle, VehicleType

__all__ = [
    "Attraction",
    "AttractionBooking",
    "BookingChannel",
    "BookingStatus",
    "CommissionLevel",
    "CommissionScope",
    "CommissionSettings",
    "Expense",
    "LedgerDomain",
    "PaymentMethod",
    "User",
    "UserRole",
    "UserStatus",
    "Vehicle",
    "VehicleBooking",
    "VehicleType",
    "WEEKDAY_NAMES",
]
