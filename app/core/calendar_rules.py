"""
Calendar rules for Saturday-only scheduling.

Holidays follow the Brazilian national calendar: fixed dates (Ano Novo,
Natal) plus Carnaval and Sexta-feira Santa, both derived from Easter Sunday.
All day-level checks compare calendar days, never instants.
"""

from datetime import date, datetime, timedelta
from functools import lru_cache

from app.core.clock import Clock

SATURDAY = 5  # date.weekday()

# (month, day)
FIXED_HOLIDAYS: frozenset[tuple[int, int]] = frozenset(
    {
        (1, 1),  # Ano Novo
        (12, 25),  # Natal
    }
)

CARNAVAL_OFFSET_DAYS = 47
GOOD_FRIDAY_OFFSET_DAYS = 2


@lru_cache(maxsize=256)
def easter_sunday(year: int) -> date:
    """
    Compute Easter Sunday with the anonymous Gregorian algorithm
    (Meeus/Jones/Butcher).

    Args:
        year: Gregorian calendar year

    Returns:
        Date of Easter Sunday
    """
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def carnaval(year: int) -> date:
    """Carnaval Tuesday, 47 days before Easter."""
    return easter_sunday(year) - timedelta(days=CARNAVAL_OFFSET_DAYS)


def good_friday(year: int) -> date:
    """Sexta-feira Santa, 2 days before Easter."""
    return easter_sunday(year) - timedelta(days=GOOD_FRIDAY_OFFSET_DAYS)


def _as_day(day: date) -> date:
    # datetime is a date subclass; keep only the calendar part
    if isinstance(day, datetime):
        return day.date()
    return day


def is_saturday(day: date) -> bool:
    """Check whether the calendar day is a Saturday."""
    return _as_day(day).weekday() == SATURDAY


def is_holiday(day: date) -> bool:
    """
    Check whether the calendar day is a national holiday.

    Args:
        day: Calendar day (a clinic-local date or naive local datetime)

    Returns:
        True for Jan 1, Dec 25, Carnaval and Good Friday of that year
    """
    day = _as_day(day)
    if (day.month, day.day) in FIXED_HOLIDAYS:
        return True
    return day in (carnaval(day.year), good_friday(day.year))


def is_past(instant: datetime, clock: Clock) -> bool:
    """Check whether the instant is strictly before now."""
    return instant < clock.now()


def hours_until(instant: datetime, clock: Clock) -> float:
    """Hours from now until the instant (negative when already past)."""
    return (instant - clock.now()).total_seconds() / 3600


def within_hours(instant: datetime, hours: float, clock: Clock) -> bool:
    """
    Check whether the instant is at most ``hours`` away from now.

    The upper boundary is inclusive: an instant exactly ``hours`` away is
    considered within the window.
    """
    return instant - clock.now() <= timedelta(hours=hours)
