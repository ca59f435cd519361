"""Ledger aggregation: period buckets and owner finance summaries."""

from __future__ import annotations

import enum
import uuid
from collections import defaultdict
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.core.errors import ReservationEngineError
from marketplace.models import (
    Attraction,
    AttractionBooking,
    BookingStatus,
    Expense,
    LedgerDomain,
    Vehicle,
    VehicleBooking,
)
from marketplace.services.calendar_service import coerce_utc

DEFAULT_CATEGORY = "general"
_ZERO = Decimal("0")

# Every status listed; cancelled bookings never earn revenue.
EARNS_REVENUE: dict[BookingStatus, bool] = {
    BookingStatus.PENDING: True,
    BookingStatus.CONFIRMED: True,
    BookingStatus.ACTIVE: True,
    BookingStatus.COMPLETED: True,
    BookingStatus.CANCELLED: False,
}


class ReportRange(str, enum.Enum):
    """Period granularity for finance summaries."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ANNUAL = "annual"


@dataclass(frozen=True, slots=True)
class PeriodBucket:
    """Half-open reporting window ``[start, end)``."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        instant = coerce_utc(instant)
        return self.start <= instant < self.end

    def contains_day(self, day: date) -> bool:
        return self.start.date() <= day < self.end.date()

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return coerce_utc(start) < self.end and coerce_utc(end) > self.start

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def report_timezone() -> tzinfo:
    """Timezone in which period boundaries fall on local midnight."""
    return ZoneInfo(get_settings().report_timezone)


def parse_range(value: ReportRange | str | None) -> ReportRange:
    if value is None or value == "":
        return ReportRange.MONTHLY
    try:
        return ReportRange(value)
    except ValueError as exc:
        raise ReservationEngineError(f"Unknown report range: {value!r}") from exc


def compute_period(
    range_: ReportRange | str | None = None,
    anchor: datetime | date | None = None,
    *,
    tz: tzinfo | None = None,
) -> PeriodBucket:
    """Return the week, month or year containing ``anchor``.

    Weeks start on Monday. Naive anchors are read in ``tz`` (UTC by default);
    ``anchor`` defaults to the current time.
    """
    tz = tz or UTC
    report_range = parse_range(range_)
    if anchor is None:
        local = datetime.now(tz)
    elif isinstance(anchor, datetime):
        local = anchor.replace(tzinfo=tz) if anchor.tzinfo is None else anchor.astimezone(tz)
    else:
        local = datetime.combine(anchor, time.min, tzinfo=tz)
    day = local.date()

    if report_range is ReportRange.WEEKLY:
        start_day = day - timedelta(days=day.weekday())
        end_day = start_day + timedelta(days=7)
    elif report_range is ReportRange.ANNUAL:
        start_day = date(day.year, 1, 1)
        end_day = date(day.year + 1, 1, 1)
    else:
        start_day = day.replace(day=1)
        if day.month == 12:
            end_day = date(day.year + 1, 1, 1)
        else:
            end_day = date(day.year, day.month + 1, 1)

    return PeriodBucket(
        start=datetime.combine(start_day, time.min, tzinfo=tz),
        end=datetime.combine(end_day, time.min, tzinfo=tz),
    )


@dataclass(frozen=True, slots=True)
class RevenueEntry:
    """A reservation projected onto the ledger."""

    resource_id: uuid.UUID
    start: datetime
    end: datetime
    amount: Decimal
    status: BookingStatus
    commission: Decimal = _ZERO
    visit_date: date | None = None

    @classmethod
    def from_vehicle_booking(cls, booking: VehicleBooking) -> RevenueEntry:
        return cls(
            resource_id=booking.vehicle_id,
            start=coerce_utc(booking.pickup_at),
            end=coerce_utc(booking.return_at),
            amount=Decimal(booking.total_amount or 0),
            status=booking.status,
            commission=Decimal(booking.commission_amount or 0),
        )

    @classmethod
    def from_attraction_booking(cls, booking: AttractionBooking) -> RevenueEntry:
        start = datetime.combine(booking.visit_date, time.min, tzinfo=UTC)
        return cls(
            resource_id=booking.attraction_id,
            start=start,
            end=start + timedelta(days=1),
            amount=Decimal(booking.total_amount or 0),
            status=booking.status,
            commission=Decimal(booking.commission_amount or 0),
            visit_date=booking.visit_date,
        )

    def falls_in(self, period: PeriodBucket) -> bool:
        if self.visit_date is not None:
            return period.contains_day(self.visit_date)
        return period.overlaps(self.start, self.end)


@dataclass(frozen=True, slots=True)
class ExpenseEntry:
    """An expense projected onto the ledger."""

    owner_id: uuid.UUID
    resource_id: uuid.UUID
    incurred_at: datetime
    amount: Decimal
    category: str | None = None

    @classmethod
    def from_expense(cls, expense: Expense) -> ExpenseEntry:
        return cls(
            owner_id=expense.owner_id,
            resource_id=expense.resource_id,
            incurred_at=coerce_utc(expense.incurred_at),
            amount=Decimal(expense.amount or 0),
            category=expense.category,
        )


@dataclass(frozen=True, slots=True)
class CategoryTotal:
    category: str
    total: Decimal
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, "total": self.total, "count": self.count}


@dataclass(slots=True)
class LedgerSummary:
    """Period-bucketed finance figures for one owner."""

    range: ReportRange
    period: PeriodBucket
    revenue_total: Decimal = _ZERO
    expense_total: Decimal = _ZERO
    commission_total: Decimal = _ZERO
    by_category: list[CategoryTotal] = field(default_factory=list)
    reservation_count: int = 0
    expense_count: int = 0

    @property
    def profit(self) -> Decimal:
        return self.revenue_total - self.expense_total

    @property
    def net_earnings(self) -> Decimal:
        return self.revenue_total - self.commission_total - self.expense_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "range": self.range.value,
            "period": self.period.to_dict(),
            "revenue_total": self.revenue_total,
            "expense_total": self.expense_total,
            "commission_total": self.commission_total,
            "profit": self.profit,
            "net_earnings": self.net_earnings,
            "by_category": [bucket.to_dict() for bucket in self.by_category],
            "counts": {
                "reservations": self.reservation_count,
                "expenses": self.expense_count,
            },
        }


def category_breakdown(expenses: Iterable[ExpenseEntry]) -> list[CategoryTotal]:
    """Group expenses by category, largest total first, then by name."""
    totals: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    counts: dict[str, int] = defaultdict(int)
    for expense in expenses:
        key = expense.category or DEFAULT_CATEGORY
        totals[key] += expense.amount
        counts[key] += 1
    buckets = [CategoryTotal(key, totals[key], counts[key]) for key in totals]
    return sorted(buckets, key=lambda bucket: (-bucket.total, bucket.category))


def summarize(
    owner_id: uuid.UUID,
    resource_ids: Collection[uuid.UUID],
    period: PeriodBucket,
    reservations: Iterable[RevenueEntry],
    expenses: Iterable[ExpenseEntry],
    *,
    range_: ReportRange = ReportRange.MONTHLY,
) -> LedgerSummary:
    """Aggregate revenue, commission and expenses falling inside ``period``.

    ``resource_ids`` is the owner's resource filter; an empty filter yields a
    zero-valued summary. Entitlement to the filter is the caller's concern.
    """
    summary = LedgerSummary(range=range_, period=period)
    if not resource_ids:
        return summary
    wanted = set(resource_ids)

    counted = [
        entry
        for entry in reservations
        if entry.resource_id in wanted
        and EARNS_REVENUE[entry.status]
        and entry.falls_in(period)
    ]
    matching_expenses = [
        expense
        for expense in expenses
        if expense.owner_id == owner_id
        and expense.resource_id in wanted
        and period.contains(expense.incurred_at)
    ]

    summary.revenue_total = sum((entry.amount for entry in counted), _ZERO)
    summary.commission_total = sum((entry.commission for entry in counted), _ZERO)
    summary.expense_total = sum((expense.amount for expense in matching_expenses), _ZERO)
    summary.by_category = category_breakdown(matching_expenses)
    summary.reservation_count = len(counted)
    summary.expense_count = len(matching_expenses)
    return summary


@dataclass(frozen=True, slots=True)
class CommissionStatement:
    """Monthly gross and commission owed for an owner's bookings."""

    year: int
    month: int
    gross: Decimal
    commission: Decimal
    bookings: int

    @property
    def code(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "period": {"year": self.year, "month": self.month},
            "gross": self.gross,
            "commission": self.commission,
            "bookings": self.bookings,
        }


async def owned_resource_ids(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    domain: LedgerDomain,
    resource_id: uuid.UUID | None = None,
) -> list[uuid.UUID]:
    """Resources of ``domain`` owned by ``owner_id``, optionally narrowed to one."""
    model = Vehicle if domain is LedgerDomain.VEHICLES else Attraction
    stmt = select(model.id).where(model.owner_id == owner_id)
    if resource_id is not None:
        stmt = stmt.where(model.id == resource_id)
    return list((await session.execute(stmt)).scalars().all())


async def _load_revenue(
    session: AsyncSession,
    *,
    domain: LedgerDomain,
    resource_ids: list[uuid.UUID],
    period: PeriodBucket,
) -> list[RevenueEntry]:
    start_utc = period.start.astimezone(UTC)
    end_utc = period.end.astimezone(UTC)
    if domain is LedgerDomain.VEHICLES:
        vehicle_stmt = select(VehicleBooking).where(
            VehicleBooking.vehicle_id.in_(resource_ids),
            VehicleBooking.status != BookingStatus.CANCELLED,
            VehicleBooking.pickup_at < end_utc,
            VehicleBooking.return_at > start_utc,
        )
        rows = (await session.execute(vehicle_stmt)).scalars().all()
        return [RevenueEntry.from_vehicle_booking(row) for row in rows]

    attraction_stmt = select(AttractionBooking).where(
        AttractionBooking.attraction_id.in_(resource_ids),
        AttractionBooking.status != BookingStatus.CANCELLED,
        AttractionBooking.visit_date >= period.start.date(),
        AttractionBooking.visit_date < period.end.date(),
    )
    rows = (await session.execute(attraction_stmt)).scalars().all()
    return [RevenueEntry.from_attraction_booking(row) for row in rows]


async def _load_expenses(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    domain: LedgerDomain,
    resource_ids: list[uuid.UUID],
    period: PeriodBucket,
) -> list[ExpenseEntry]:
    stmt = select(Expense).where(
        Expense.owner_id == owner_id,
        Expense.domain == domain,
        Expense.resource_id.in_(resource_ids),
        Expense.incurred_at >= period.start.astimezone(UTC),
        Expense.incurred_at < period.end.astimezone(UTC),
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [ExpenseEntry.from_expense(row) for row in rows]


async def owner_summary(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    domain: LedgerDomain,
    resource_id: uuid.UUID | None = None,
    anchor: datetime | date,
    range_: ReportRange | str | None = None,
) -> LedgerSummary:
    """Finance summary for an owner's vehicles or attractions.

    An owner without matching resources receives a zero-valued summary.
    """
    report_range = parse_range(range_)
    period = compute_period(report_range, anchor, tz=report_timezone())
    resource_ids = await owned_resource_ids(
        session, owner_id=owner_id, domain=domain, resource_id=resource_id
    )
    if not resource_ids:
        return LedgerSummary(range=report_range, period=period)

    revenue = await _load_revenue(
        session, domain=domain, resource_ids=resource_ids, period=period
    )
    expenses = await _load_expenses(
        session,
        owner_id=owner_id,
        domain=domain,
        resource_ids=resource_ids,
        period=period,
    )
    return summarize(
        owner_id, resource_ids, period, revenue, expenses, range_=report_range
    )


async def commission_statement(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    domain: LedgerDomain,
    resource_id: uuid.UUID | None = None,
    year: int,
    month: int,
) -> CommissionStatement:
    """Gross takings and platform commission for one calendar month."""
    if not 1 <= month <= 12:
        raise ReservationEngineError("month must be between 1 and 12")

    summary = await owner_summary(
        session,
        owner_id=owner_id,
        domain=domain,
        resource_id=resource_id,
        range_=ReportRange.MONTHLY,
        anchor=date(year, month, 1),
    )
    return CommissionStatement(
        year=year,
        month=month,
        gross=summary.revenue_total,
        commission=summary.commission_total,
        bookings=summary.reservation_count,
    )
