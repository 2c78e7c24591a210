"""Saturday slot generation and validation."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.core import calendar_rules
from app.core.clock import Clock
from app.schemas.appointments import TimeSlot

SLOT_DURATION = timedelta(hours=2)
SLOT_START_HOURS = (9, 11, 13, 15)
OPENING_TIME = time(9, 0)
CLOSING_TIME = time(18, 0)


class AvailabilityCalculator:
    """Computes bookable 2-hour blocks in clinic-local time."""

    def __init__(self, clock: Clock, timezone: ZoneInfo):
        """Initialize calculator with a clock and the clinic timezone."""
        self.clock = clock
        self.timezone = timezone

    def _local(self, instant: datetime) -> datetime:
        return instant.astimezone(self.timezone)

    def _is_open_day(self, day: date) -> bool:
        return calendar_rules.is_saturday(day) and not calendar_rules.is_holiday(day)

    def generate_slots(self, day: date) -> list[TimeSlot]:
        """
        Generate the bookable slots for a calendar day.

        Args:
            day: Clinic-local calendar day

        Returns:
            Canonical slots that have not started yet; empty for non-Saturdays,
            holidays and days whose slots have all started
        """
        if isinstance(day, datetime):
            day = self._local(day).date()

        if not self._is_open_day(day):
            return []

        slots = []
        for hour in SLOT_START_HOURS:
            start = datetime.combine(day, time(hour, 0), tzinfo=self.timezone)
            if calendar_rules.is_past(start, self.clock):
                continue
            slots.append(TimeSlot(start_time=start, end_time=start + SLOT_DURATION))
        return slots

    def is_valid_slot(self, slot: TimeSlot) -> bool:
        """
        Check whether a slot could be booked right now.

        A valid slot lies on a non-holiday Saturday, has not started, spans
        exactly two hours within opening hours and begins on a canonical
        boundary.
        """
        start = self._local(slot.start_time)
        end = self._local(slot.end_time)

        if not self._is_open_day(start.date()):
            return False
        if calendar_rules.is_past(slot.start_time, self.clock):
            return False
        if end - start != SLOT_DURATION or start.date() != end.date():
            return False
        if start.time() < OPENING_TIME or end.time() > CLOSING_TIME:
            return False
        return start.minute == 0 and start.second == 0 and start.microsecond == 0 and (
            start.hour in SLOT_START_HOURS
        )

    def slot_for(self, scheduled_at: datetime) -> TimeSlot:
        """Build the 2-hour slot that starts at ``scheduled_at``."""
        start = self._local(scheduled_at)
        return TimeSlot(start_time=start, end_time=start + SLOT_DURATION)

    @staticmethod
    def overlaps(a: TimeSlot, b: TimeSlot) -> bool:
        """Half-open interval overlap; adjacent slots do not overlap."""
        return a.start_time < b.end_time and b.start_time < a.end_time
