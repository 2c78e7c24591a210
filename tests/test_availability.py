"""Tests for slot generation and validation."""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from app.core import calendar_rules
from app.schemas.appointments import TimeSlot
from app.services.availability import AvailabilityCalculator
from tests.fakes import FrozenClock

SAO_PAULO = ZoneInfo("America/Sao_Paulo")
SATURDAY = date(2025, 2, 15)


@pytest.fixture
def calculator(clock: FrozenClock) -> AvailabilityCalculator:
    return AvailabilityCalculator(clock, SAO_PAULO)


def local(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=SAO_PAULO)


def test_generate_slots_for_saturday(calculator: AvailabilityCalculator) -> None:
    """Test four contiguous two-hour slots from 09:00 to 17:00."""
    slots = calculator.generate_slots(SATURDAY)

    assert [slot.start_time for slot in slots] == [
        local(SATURDAY, 9),
        local(SATURDAY, 11),
        local(SATURDAY, 13),
        local(SATURDAY, 15),
    ]
    assert slots[-1].end_time == local(SATURDAY, 17)
    for slot in slots:
        assert slot.end_time - slot.start_time == timedelta(hours=2)
    for earlier, later in zip(slots, slots[1:]):
        assert earlier.end_time == later.start_time
        assert not calculator.overlaps(earlier, later)


def test_generate_slots_2000_to_2100() -> None:
    """Test every day of the century: only non-holiday Saturdays get slots."""
    calculator = AvailabilityCalculator(FrozenClock(datetime(1999, 1, 1, tzinfo=UTC)), SAO_PAULO)

    day = date(2000, 1, 1)
    while day <= date(2100, 12, 31):
        slots = calculator.generate_slots(day)
        if calendar_rules.is_saturday(day) and not calendar_rules.is_holiday(day):
            assert len(slots) == 4, day
            assert all(calculator.is_valid_slot(slot) for slot in slots), day
        else:
            assert slots == [], day
        day += timedelta(days=1)


def test_holiday_saturday_has_no_slots() -> None:
    """Test a Saturday New Year's Day."""
    calculator = AvailabilityCalculator(FrozenClock(datetime(2021, 6, 1, tzinfo=UTC)), SAO_PAULO)
    assert date(2022, 1, 1).weekday() == 5
    assert calculator.generate_slots(date(2022, 1, 1)) == []


def test_generate_slots_same_day_skips_started_slots(clock: FrozenClock) -> None:
    calculator = AvailabilityCalculator(clock, SAO_PAULO)

    clock.set(local(SATURDAY, 10, 30))
    assert [s.start_time for s in calculator.generate_slots(SATURDAY)] == [
        local(SATURDAY, 11),
        local(SATURDAY, 13),
        local(SATURDAY, 15),
    ]

    clock.set(local(SATURDAY, 15, 30))
    assert calculator.generate_slots(SATURDAY) == []


def test_generate_slots_past_saturday(calculator: AvailabilityCalculator) -> None:
    assert calculator.generate_slots(date(2025, 2, 8)) == []


def test_is_valid_slot_accepts_canonical_slot(calculator: AvailabilityCalculator) -> None:
    assert calculator.is_valid_slot(calculator.slot_for(local(SATURDAY, 13)))


def test_is_valid_slot_accepts_other_timezone(calculator: AvailabilityCalculator) -> None:
    """Test 12:00 UTC, which is 09:00 in the clinic."""
    start = datetime(2025, 2, 15, 12, 0, tzinfo=UTC)
    assert calculator.is_valid_slot(calculator.slot_for(start))


@pytest.mark.parametrize(
    ("start", "end"),
    [
        # off-boundary start
        (local(SATURDAY, 10), local(SATURDAY, 12)),
        (local(SATURDAY, 9, 30), local(SATURDAY, 11, 30)),
        # outside opening hours
        (local(SATURDAY, 17), local(SATURDAY, 19)),
        (local(SATURDAY, 7), local(SATURDAY, 9)),
        # wrong duration
        (local(SATURDAY, 9), local(SATURDAY, 12)),
        (local(SATURDAY, 9), local(SATURDAY, 10)),
        # not a Saturday
        (local(date(2025, 2, 14), 9), local(date(2025, 2, 14), 11)),
        # in the past
        (local(date(2025, 2, 8), 9), local(date(2025, 2, 8), 11)),
    ],
)
def test_is_valid_slot_rejects(
    calculator: AvailabilityCalculator, start: datetime, end: datetime
) -> None:
    assert not calculator.is_valid_slot(TimeSlot(start_time=start, end_time=end))


def test_is_valid_slot_rejects_holiday() -> None:
    calculator = AvailabilityCalculator(FrozenClock(datetime(2021, 6, 1, tzinfo=UTC)), SAO_PAULO)
    new_year = date(2022, 1, 1)
    assert not calculator.is_valid_slot(calculator.slot_for(local(new_year, 9)))


def test_slot_for(calculator: AvailabilityCalculator) -> None:
    slot = calculator.slot_for(local(SATURDAY, 11))
    assert slot.start_time == local(SATURDAY, 11)
    assert slot.end_time == local(SATURDAY, 13)


def test_overlaps(calculator: AvailabilityCalculator) -> None:
    nine = calculator.slot_for(local(SATURDAY, 9))
    ten = calculator.slot_for(local(SATURDAY, 10))
    eleven = calculator.slot_for(local(SATURDAY, 11))

    assert calculator.overlaps(nine, nine)
    assert calculator.overlaps(nine, ten)
    assert calculator.overlaps(ten, nine)
    assert not calculator.overlaps(nine, eleven)
    assert not calculator.overlaps(eleven, nine)
