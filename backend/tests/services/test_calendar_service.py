"""Tests for calendar admission checks."""

from __future__ import annotations

import itertools
import uuid
from datetime import UTC, date, datetime, timedelta

import pytest

from marketplace.core.errors import (
    BookingConflict,
    ClosedOnDay,
    InvalidSlot,
    InvalidSpan,
    ReservationEngineError,
    SlotRequired,
)
from marketplace.models import BookingStatus
from marketplace.services.calendar_service import (
    OCCUPIES_CALENDAR,
    AvailabilityReason,
    BookedInterval,
    ResourceCalendar,
    Span,
    check_availability,
)

VEHICLE_ID = uuid.uuid4()
ATTRACTION_ID = uuid.uuid4()


def _at(day: int, month: int = 1, hour: int = 0) -> datetime:
    return datetime(2025, month, day, hour, tzinfo=UTC)


def _vehicle_calendar() -> ResourceCalendar:
    return ResourceCalendar(resource_id=VEHICLE_ID, exclusive=True, capacity=1)


def _booked(
    start: datetime,
    end: datetime,
    status: BookingStatus = BookingStatus.CONFIRMED,
    resource_id: uuid.UUID = VEHICLE_ID,
) -> BookedInterval:
    return BookedInterval(resource_id=resource_id, span=Span(start, end), status=status)


def _tickets(
    day: date,
    units: int,
    *,
    slot: str | None = None,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> BookedInterval:
    return BookedInterval(
        resource_id=ATTRACTION_ID,
        span=Span.for_day(day),
        status=status,
        units=units,
        time_slot=slot,
    )


def test_span_rejects_empty_and_reversed_intervals() -> None:
    with pytest.raises(InvalidSpan):
        Span(_at(5), _at(5))
    with pytest.raises(InvalidSpan):
        Span(_at(6), _at(5))


def test_span_parse_rejects_garbage() -> None:
    with pytest.raises(InvalidSpan):
        Span.parse("not-a-date", "2025-01-10")
    with pytest.raises(InvalidSpan):
        Span.parse("", "2025-01-10")


def test_span_parse_treats_naive_values_as_utc() -> None:
    span = Span.parse("2025-01-01T10:00:00", "2025-01-02T10:00:00+02:00")
    assert span.start == datetime(2025, 1, 1, 10, tzinfo=UTC)
    assert span.end == datetime(2025, 1, 2, 8, tzinfo=UTC)


def test_touching_rental_is_admitted() -> None:
    existing = [_booked(_at(1), _at(10))]
    decision = check_availability(_vehicle_calendar(), Span(_at(10), _at(15)), 1, existing)
    assert decision.available
    assert decision.remaining == 1


def test_overlapping_rental_is_rejected() -> None:
    existing = [_booked(_at(1), _at(10))]
    decision = check_availability(_vehicle_calendar(), Span(_at(9), _at(12)), 1, existing)
    assert not decision.available
    assert decision.reason is AvailabilityReason.CONFLICT
    assert decision.remaining == 0
    assert decision.conflicts == 1
    with pytest.raises(BookingConflict) as excinfo:
        decision.raise_for_rejection()
    assert excinfo.value.status_code == 409
    assert excinfo.value.reason == "conflict"


def test_cancelled_and_foreign_reservations_are_ignored() -> None:
    existing = [
        _booked(_at(1), _at(10), status=BookingStatus.CANCELLED),
        _booked(_at(1), _at(10), resource_id=uuid.uuid4()),
    ]
    decision = check_availability(_vehicle_calendar(), Span(_at(2), _at(4)), 1, existing)
    assert decision.available


def test_completed_reservations_still_occupy_the_calendar() -> None:
    existing = [_booked(_at(1), _at(10), status=BookingStatus.COMPLETED)]
    decision = check_availability(_vehicle_calendar(), Span(_at(2), _at(4)), 1, existing)
    assert not decision.available


def test_occupancy_table_covers_every_status() -> None:
    assert set(OCCUPIES_CALENDAR) == set(BookingStatus)
    assert [status for status, occupies in OCCUPIES_CALENDAR.items() if not occupies] == [
        BookingStatus.CANCELLED
    ]


def test_capacity_remaining_is_reported_on_rejection() -> None:
    calendar = ResourceCalendar(resource_id=ATTRACTION_ID, exclusive=False, capacity=50)
    visit = date(2025, 3, 1)
    existing = [_tickets(visit, 30), _tickets(visit, 18)]
    decision = check_availability(calendar, Span.for_day(visit), 5, existing)
    assert not decision.available
    assert decision.reason is AvailabilityReason.CAPACITY_EXCEEDED
    assert decision.remaining == 2
    assert decision.capacity == 50
    with pytest.raises(BookingConflict) as excinfo:
        decision.raise_for_rejection()
    assert excinfo.value.remaining == 2
    assert excinfo.value.reason == "capacity_exceeded"

    assert check_availability(calendar, Span.for_day(visit), 2, existing).available


def test_other_days_do_not_consume_capacity() -> None:
    calendar = ResourceCalendar(resource_id=ATTRACTION_ID, exclusive=False, capacity=10)
    existing = [_tickets(date(2025, 3, 1), 10)]
    decision = check_availability(calendar, Span.for_day(date(2025, 3, 2)), 10, existing)
    assert decision.available
    assert decision.remaining == 10


def test_slots_are_required_and_validated() -> None:
    calendar = ResourceCalendar(
        resource_id=ATTRACTION_ID,
        exclusive=False,
        capacity=10,
        time_slots=("09:00", "14:00"),
    )
    visit = Span.for_day(date(2025, 3, 1))

    missing = check_availability(calendar, visit, 1, [])
    assert missing.reason is AvailabilityReason.SLOT_REQUIRED
    with pytest.raises(SlotRequired):
        missing.raise_for_rejection()

    unknown = check_availability(calendar, visit, 1, [], time_slot="18:00")
    assert unknown.reason is AvailabilityReason.INVALID_SLOT
    with pytest.raises(InvalidSlot):
        unknown.raise_for_rejection()


def test_slot_capacity_is_counted_per_slot() -> None:
    calendar = ResourceCalendar(
        resource_id=ATTRACTION_ID,
        exclusive=False,
        capacity=10,
        time_slots=("09:00", "14:00"),
    )
    visit = date(2025, 3, 1)
    existing = [_tickets(visit, 10, slot="09:00")]

    morning = check_availability(calendar, Span.for_day(visit), 1, existing, time_slot="09:00")
    afternoon = check_availability(calendar, Span.for_day(visit), 1, existing, time_slot="14:00")
    assert not morning.available
    assert afternoon.available
    assert afternoon.remaining == 10


def test_unslotted_reservations_count_against_every_slot() -> None:
    calendar = ResourceCalendar(
        resource_id=ATTRACTION_ID,
        exclusive=False,
        capacity=10,
        time_slots=("09:00", "14:00"),
    )
    visit = date(2025, 3, 1)
    existing = [_tickets(visit, 6)]
    decision = check_availability(calendar, Span.for_day(visit), 5, existing, time_slot="14:00")
    assert not decision.available
    assert decision.remaining == 4


def test_closed_weekday_is_rejected() -> None:
    calendar = ResourceCalendar(
        resource_id=ATTRACTION_ID,
        exclusive=False,
        capacity=10,
        allowed_weekdays=frozenset({5, 6}),
    )
    # 2025-03-03 is a Monday.
    decision = check_availability(calendar, Span.for_day(date(2025, 3, 3)), 1, [])
    assert decision.reason is AvailabilityReason.CLOSED
    with pytest.raises(ClosedOnDay):
        decision.raise_for_rejection()

    saturday = check_availability(calendar, Span.for_day(date(2025, 3, 1)), 1, [])
    assert saturday.available


def test_units_must_be_positive() -> None:
    with pytest.raises(ReservationEngineError):
        check_availability(_vehicle_calendar(), Span(_at(1), _at(2)), 0, [])


def test_availability_check_is_idempotent() -> None:
    calendar = ResourceCalendar(resource_id=ATTRACTION_ID, exclusive=False, capacity=5)
    visit = date(2025, 3, 1)
    existing = [_tickets(visit, 3)]
    first = check_availability(calendar, Span.for_day(visit), 2, existing)
    second = check_availability(calendar, Span.for_day(visit), 2, existing)
    assert first == second


def test_sequential_admissions_never_double_book() -> None:
    """Greedy admission over every ordered pair of candidate spans keeps the calendar disjoint."""
    calendar = _vehicle_calendar()
    candidates = [
        Span(_at(start), _at(start + length))
        for start in range(1, 15, 2)
        for length in (1, 3, 5)
    ]
    for first, second in itertools.permutations(candidates, 2):
        admitted: list[BookedInterval] = []
        for span in (first, second):
            if check_availability(calendar, span, 1, admitted).available:
                admitted.append(
                    BookedInterval(VEHICLE_ID, span, BookingStatus.PENDING)
                )
        for left, right in itertools.combinations(admitted, 2):
            assert not left.span.overlaps(right.span)


def test_capacity_is_never_exceeded_by_greedy_admission() -> None:
    calendar = ResourceCalendar(resource_id=ATTRACTION_ID, exclusive=False, capacity=7)
    visit = date(2025, 3, 1)
    admitted: list[BookedInterval] = []
    for units in (3, 2, 4, 1, 1, 5, 1):
        if check_availability(calendar, Span.for_day(visit), units, admitted).available:
            admitted.append(_tickets(visit, units))
    assert sum(item.units for item in admitted) <= 7
    assert sum(item.units for item in admitted) == 7


def test_span_for_day_covers_one_calendar_day() -> None:
    span = Span.for_day(date(2025, 3, 1))
    assert span.duration == timedelta(days=1)
    assert span.day == date(2025, 3, 1)
