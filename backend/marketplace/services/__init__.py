"""Service layer exports."""
from marketplace.services import (
    booking_service,
    calendar_service,
    commission_service,
    expense_service,
    ledger_service,
    pricing_service,
    resource_service,
)

__all__ = [
    "booking_service",
    "calendar_service",
    "commission_service",
    "expense_service",
    "ledger_service",
    "pricing_service",
    "resource_service",
]
