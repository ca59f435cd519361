"""Pricing engine for vehicle rentals, attraction tickets and commissions."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from marketplace.core.errors import ReservationEngineError
from marketplace.models.vehicle import Vehicle
from marketplace.services.calendar_service import Span

# Whole currency units; ROUND_HALF_UP rounds half away from zero.
MONEY_PLACES = Decimal("1")
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
_ONE_DAY = timedelta(days=1)
_HUNDRED = Decimal("100")


class PricingTier(str, enum.Enum):
    """Tier decomposition applied to a rental."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def _to_str(value: Decimal) -> str:
    return f"{_to_money(value)}"


def _optional_price(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation as exc:
        raise ReservationEngineError(f"Invalid price: {value!r}") from exc
    # Zero means the tier is not offered.
    return price if price > 0 else None


@dataclass(frozen=True, slots=True)
class RateCard:
    """Per-day price with optional discounted weekly and monthly tiers."""

    per_day: Decimal
    per_week: Decimal | None = None
    per_month: Decimal | None = None

    @classmethod
    def from_vehicle(cls, vehicle: Vehicle) -> RateCard:
        return cls(
            per_day=Decimal(vehicle.price_per_day or 0),
            per_week=_optional_price(vehicle.price_per_week),
            per_month=_optional_price(vehicle.price_per_month),
        )

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> RateCard:
        """Rebuild the rate card persisted on a booking."""
        return cls(
            per_day=Decimal(str(data.get("per_day") or 0)),
            per_week=_optional_price(data.get("per_week")),
            per_month=_optional_price(data.get("per_month")),
        )

    def snapshot(self) -> dict[str, str | None]:
        return {
            "per_day": str(self.per_day),
            "per_week": str(self.per_week) if self.per_week is not None else None,
            "per_month": str(self.per_month) if self.per_month is not None else None,
        }


@dataclass(frozen=True, slots=True)
class RentalQuote:
    """Breakdown of a rental charge."""

    tier: PricingTier
    duration_days: int
    whole_periods: int
    remainder_days: int
    amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier.value,
            "duration_days": self.duration_days,
            "whole_periods": self.whole_periods,
            "remainder_days": self.remainder_days,
            "amount": _to_str(self.amount),
        }


def rental_days(span: Span) -> int:
    """Number of billable days; a partial day counts as a full day."""
    days, leftover = divmod(span.duration, _ONE_DAY)
    return days + (1 if leftover else 0)


def quote_rental(rate_card: RateCard, span: Span) -> RentalQuote:
    """Price a rental span using exactly one tier: the largest threshold met.

    The monthly remainder is charged at ``per_week / 7`` when a weekly price
    exists, otherwise at ``per_day``.
    """
    days = rental_days(span)

    if rate_card.per_month is not None and days >= DAYS_PER_MONTH:
        months, remainder = divmod(days, DAYS_PER_MONTH)
        if rate_card.per_week is not None:
            remainder_charge = remainder * rate_card.per_week / DAYS_PER_WEEK
        else:
            remainder_charge = remainder * rate_card.per_day
        amount = months * rate_card.per_month + _to_money(remainder_charge)
        return RentalQuote(PricingTier.MONTHLY, days, months, remainder, _to_money(amount))

    if rate_card.per_week is not None and days >= DAYS_PER_WEEK:
        weeks, remainder = divmod(days, DAYS_PER_WEEK)
        amount = weeks * rate_card.per_week + _to_money(remainder * rate_card.per_day)
        return RentalQuote(PricingTier.WEEKLY, days, weeks, remainder, _to_money(amount))

    return RentalQuote(
        PricingTier.DAILY, days, days, 0, _to_money(rate_card.per_day * days)
    )


def compute_charge(rate_card: RateCard, span: Span) -> Decimal:
    """Total charge for renting over ``span``."""
    return quote_rental(rate_card, span).amount


def compute_ticket_charge(per_ticket: Decimal, units_requested: int) -> Decimal:
    """Flat attraction price: ``per_ticket`` times the number of tickets."""
    if units_requested < 1:
        raise ReservationEngineError("At least one ticket must be requested")
    return _to_money(Decimal(per_ticket) * units_requested)


def normalize_rate(value: Decimal | float | int | str | None) -> Decimal | None:
    """Return a usable commission percentage, or None when unset/out of range."""
    if value is None:
        return None
    try:
        rate = Decimal(str(value))
    except InvalidOperation:
        return None
    if rate <= 0 or rate > _HUNDRED:
        return None
    return rate


def resolve_commission_rate(*candidates: Decimal | float | int | str | None) -> Decimal:
    """First usable rate among ``candidates`` in priority order, else zero."""
    for candidate in candidates:
        rate = normalize_rate(candidate)
        if rate is not None:
            return rate
    return Decimal("0")


def compute_commission(amount: Decimal, rate: Decimal) -> Decimal:
    """Commission owed on ``amount`` at ``rate`` percent, in whole units."""
    if rate <= 0:
        return Decimal("0")
    return _to_money(Decimal(amount) * rate / _HUNDRED)
