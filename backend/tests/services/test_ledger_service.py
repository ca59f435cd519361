"""Tests for ledger periods and owner finance summaries."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from marketplace.core.errors import ReservationEngineError
from marketplace.models import (
    AttractionBooking,
    BookingStatus,
    Expense,
    LedgerDomain,
    VehicleBooking,
)
from marketplace.services import ledger_service
from marketplace.services.ledger_service import (
    ExpenseEntry,
    ReportRange,
    RevenueEntry,
    category_breakdown,
    compute_period,
    summarize,
)

OWNER = uuid.uuid4()
CAR = uuid.uuid4()
PARK = uuid.uuid4()


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def _expense(
    amount: str,
    category: str | None = "fuel",
    *,
    when: datetime | None = None,
    owner: uuid.UUID = OWNER,
    resource: uuid.UUID = CAR,
) -> ExpenseEntry:
    return ExpenseEntry(
        owner_id=owner,
        resource_id=resource,
        incurred_at=when or _utc(2025, 1, 15, 12),
        amount=Decimal(amount),
        category=category,
    )


def test_weekly_period_starts_on_monday() -> None:
    # 2025-01-15 is a Wednesday.
    period = compute_period(ReportRange.WEEKLY, _utc(2025, 1, 15, 17))
    assert period.start == _utc(2025, 1, 13)
    assert period.end == _utc(2025, 1, 20)


def test_weekly_period_on_sunday_belongs_to_previous_monday() -> None:
    period = compute_period("weekly", date(2025, 1, 19))
    assert period.start == _utc(2025, 1, 13)


def test_monthly_period_is_the_default() -> None:
    period = compute_period(None, _utc(2025, 2, 14, 9))
    assert (period.start, period.end) == (_utc(2025, 2, 1), _utc(2025, 3, 1))


def test_december_rolls_into_next_year() -> None:
    period = compute_period(ReportRange.MONTHLY, date(2024, 12, 31))
    assert (period.start, period.end) == (_utc(2024, 12, 1), _utc(2025, 1, 1))


def test_annual_period() -> None:
    period = compute_period(ReportRange.ANNUAL, date(2024, 6, 30))
    assert (period.start, period.end) == (_utc(2024, 1, 1), _utc(2025, 1, 1))


def test_unknown_range_is_rejected() -> None:
    with pytest.raises(ReservationEngineError):
        compute_period("fortnightly", date(2025, 1, 1))


def test_boundaries_fall_on_local_midnight() -> None:
    kigali = ZoneInfo("Africa/Kigali")
    naive = compute_period(ReportRange.MONTHLY, datetime(2025, 1, 31, 23, 30), tz=kigali)
    assert naive.start == datetime(2025, 1, 1, tzinfo=kigali)
    # 23:30 UTC on Jan 31 is already February in Kigali.
    aware = compute_period(ReportRange.MONTHLY, _utc(2025, 1, 31, 23, 30), tz=kigali)
    assert aware.start == datetime(2025, 2, 1, tzinfo=kigali)
    assert aware.start.astimezone(UTC) == _utc(2025, 1, 31, 22)


def test_categories_sort_by_total_then_name() -> None:
    buckets = category_breakdown(
        [
            _expense("100", "maintenance"),
            _expense("300", "fuel"),
            _expense("100", "insurance"),
            _expense("50", None),
            _expense("50", "fuel"),
        ]
    )
    assert [(b.category, b.total, b.count) for b in buckets] == [
        ("fuel", Decimal("350"), 2),
        ("insurance", Decimal("100"), 1),
        ("maintenance", Decimal("100"), 1),
        ("general", Decimal("50"), 1),
    ]


def test_summarize_uses_overlap_for_rentals_and_day_membership_for_visits() -> None:
    period = compute_period(ReportRange.MONTHLY, date(2025, 1, 10))
    reservations = [
        # Straddles the month start: overlaps, counted in full.
        RevenueEntry(CAR, _utc(2024, 12, 29), _utc(2025, 1, 3), Decimal("50000"), BookingStatus.COMPLETED, Decimal("5000")),
        # Ends exactly at the period start: no overlap.
        RevenueEntry(CAR, _utc(2024, 12, 20), _utc(2025, 1, 1), Decimal("70000"), BookingStatus.COMPLETED),
        RevenueEntry(CAR, _utc(2025, 1, 5), _utc(2025, 1, 6), Decimal("10000"), BookingStatus.CANCELLED),
        RevenueEntry(
            PARK,
            _utc(2025, 1, 31),
            _utc(2025, 2, 1),
            Decimal("15000"),
            BookingStatus.CONFIRMED,
            Decimal("2250"),
            visit_date=date(2025, 1, 31),
        ),
        RevenueEntry(
            PARK,
            _utc(2025, 2, 1),
            _utc(2025, 2, 2),
            Decimal("5000"),
            BookingStatus.CONFIRMED,
            visit_date=date(2025, 2, 1),
        ),
    ]
    expenses = [
        _expense("8000", "fuel"),
        _expense("2000", "cleaning", resource=PARK),
        _expense("999", "fuel", owner=uuid.uuid4()),
        _expense("111", "fuel", when=_utc(2025, 2, 1)),
    ]

    summary = summarize(OWNER, [CAR, PARK], period, reservations, expenses)

    assert summary.revenue_total == Decimal("65000")
    assert summary.commission_total == Decimal("7250")
    assert summary.expense_total == Decimal("10000")
    assert summary.profit == Decimal("55000")
    assert summary.net_earnings == Decimal("47750")
    assert summary.reservation_count == 2
    assert summary.expense_count == 2
    assert [bucket.category for bucket in summary.by_category] == ["fuel", "cleaning"]


def test_summarize_respects_resource_filter() -> None:
    period = compute_period(ReportRange.MONTHLY, date(2025, 1, 10))
    reservations = [
        RevenueEntry(CAR, _utc(2025, 1, 2), _utc(2025, 1, 4), Decimal("20000"), BookingStatus.CONFIRMED),
        RevenueEntry(uuid.uuid4(), _utc(2025, 1, 2), _utc(2025, 1, 4), Decimal("99999"), BookingStatus.CONFIRMED),
    ]
    summary = summarize(OWNER, [CAR], period, reservations, [_expense("500")])
    assert summary.revenue_total == Decimal("20000")
    assert summary.expense_total == Decimal("500")


def test_empty_resource_filter_yields_zero_summary() -> None:
    period = compute_period(ReportRange.MONTHLY, date(2025, 1, 10))
    reservations = [
        RevenueEntry(CAR, _utc(2025, 1, 2), _utc(2025, 1, 4), Decimal("20000"), BookingStatus.CONFIRMED)
    ]
    summary = summarize(OWNER, [], period, reservations, [_expense("500")])
    payload = summary.to_dict()
    assert payload["revenue_total"] == Decimal("0")
    assert payload["expense_total"] == Decimal("0")
    assert payload["profit"] == Decimal("0")
    assert payload["by_category"] == []
    assert payload["counts"] == {"reservations": 0, "expenses": 0}
    assert payload["range"] == "monthly"


def test_revenue_table_covers_every_status() -> None:
    assert set(ledger_service.EARNS_REVENUE) == set(BookingStatus)


pytestmark_db = pytest.mark.asyncio


@pytestmark_db
async def test_owner_summary_reads_bookings_and_expenses(
    db_session, seeded: dict[str, object]
) -> None:
    host = seeded["host"]
    guest = seeded["guest"]
    vehicle = seeded["vehicle"]
    attraction = seeded["attraction"]

    db_session.add_all(
        [
            VehicleBooking(
                vehicle_id=vehicle.id,
                guest_id=guest.id,
                pickup_at=_utc(2025, 1, 5, 10),
                return_at=_utc(2025, 1, 8, 10),
                pickup_location="Kigali",
                number_of_days=3,
                total_amount=Decimal("30000"),
                commission_amount=Decimal("3000"),
                status=BookingStatus.COMPLETED,
            ),
            VehicleBooking(
                vehicle_id=vehicle.id,
                guest_id=guest.id,
                pickup_at=_utc(2025, 1, 20, 10),
                return_at=_utc(2025, 1, 22, 10),
                pickup_location="Kigali",
                number_of_days=2,
                total_amount=Decimal("20000"),
                commission_amount=Decimal("2000"),
                status=BookingStatus.CANCELLED,
            ),
            AttractionBooking(
                attraction_id=attraction.id,
                guest_id=guest.id,
                confirmation_code="ABCD2345",
                visit_date=date(2025, 1, 11),
                number_of_people=2,
                unit_price=Decimal("5000"),
                total_amount=Decimal("10000"),
                commission_amount=Decimal("1500"),
                status=BookingStatus.CONFIRMED,
            ),
            Expense(
                owner_id=host.id,
                domain=LedgerDomain.VEHICLES,
                resource_id=vehicle.id,
                incurred_at=_utc(2025, 1, 9, 8),
                amount=Decimal("4000"),
                category="fuel",
            ),
            Expense(
                owner_id=host.id,
                domain=LedgerDomain.ATTRACTIONS,
                resource_id=attraction.id,
                incurred_at=_utc(2025, 1, 9, 8),
                amount=Decimal("700"),
                category="cleaning",
            ),
        ]
    )
    await db_session.commit()

    vehicles = await ledger_service.owner_summary(
        db_session,
        owner_id=host.id,
        domain=LedgerDomain.VEHICLES,
        range_=ReportRange.MONTHLY,
        anchor=date(2025, 1, 15),
    )
    assert vehicles.revenue_total == Decimal("30000")
    assert vehicles.commission_total == Decimal("3000")
    assert vehicles.expense_total == Decimal("4000")
    assert vehicles.net_earnings == Decimal("23000")
    assert vehicles.reservation_count == 1

    attractions = await ledger_service.owner_summary(
        db_session,
        owner_id=host.id,
        domain=LedgerDomain.ATTRACTIONS,
        range_=ReportRange.WEEKLY,
        anchor=date(2025, 1, 8),
    )
    # Jan 11 is the Saturday of the week starting Monday Jan 6.
    assert attractions.revenue_total == Decimal("10000")
    assert attractions.expense_total == Decimal("700")

    statement = await ledger_service.commission_statement(
        db_session,
        owner_id=host.id,
        domain=LedgerDomain.VEHICLES,
        year=2025,
        month=1,
    )
    assert statement.to_dict() == {
        "code": "2025-01",
        "period": {"year": 2025, "month": 1},
        "gross": Decimal("30000"),
        "commission": Decimal("3000"),
        "bookings": 1,
    }


@pytestmark_db
async def test_owner_without_resources_gets_zero_summary(
    db_session, seeded: dict[str, object]
) -> None:
    other_host = seeded["other_host"]
    summary = await ledger_service.owner_summary(
        db_session,
        owner_id=other_host.id,
        domain=LedgerDomain.ATTRACTIONS,
        anchor=date(2025, 1, 15),
    )
    assert summary.revenue_total == Decimal("0")
    assert summary.expense_total == Decimal("0")
    assert summary.profit == Decimal("0")
    assert summary.by_category == []
    assert summary.period.start == _utc(2025, 1, 1)
