"""Schema exports."""

from marketplace.schemas.attraction import AttractionCreate, AttractionRead
from marketplace.schemas.booking import (
    AttractionBookingCreate,
    AttractionBookingRead,
    AvailabilityRead,
    BookingStatusUpdate,
    ChargeAuditRead,
    DirectVehicleBookingCreate,
    MileageUpdate,
    RentalQuoteRead,
    VehicleAvailabilityRead,
    VehicleBookingCreate,
    VehicleBookingRead,
)
from marketplace.schemas.commission import (
    CommissionLevelCreate,
    CommissionLevelRead,
    CommissionSettingsRead,
    CommissionSettingsUpdate,
)
from marketplace.schemas.finance import (
    CategoryTotalRead,
    CommissionStatementRead,
    ExpenseCreate,
    ExpenseList,
    ExpenseRead,
    ExpenseUpdate,
    LedgerSummaryRead,
)
from marketplace.schemas.vehicle import ListingActivation, VehicleCreate, VehicleRead

__all__ = [
    "AttractionBookingCreate",
    "AttractionBookingRead",
    "AttractionCreate",
    "AttractionRead",
    "AvailabilityRead",
    "BookingStatusUpdate",
    "CategoryTotalRead",
    "ChargeAuditRead",
    "CommissionLevelCreate",
    "CommissionLevelRead",
    "CommissionSettingsRead",
    "CommissionSettingsUpdate",
    "CommissionStatementRead",
    "DirectVehicleBookingCreate",
    "ExpenseCreate",
    "ExpenseList",
    "ExpenseRead",
    "ExpenseUpdate",
    "LedgerSummaryRead",
    "ListingActivation",
    "MileageUpdate",
    "RentalQuoteRead",
    "VehicleAvailabilityRead",
    "VehicleBookingCreate",
    "VehicleBookingRead",
    "VehicleCreate",
    "VehicleRead",
]
