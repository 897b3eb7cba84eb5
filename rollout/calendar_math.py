"""
Working-day arithmetic.

Every function here is pure: the answer depends only on the date/number
arguments and the (optional) holiday predicate passed in.
"""

import math
from datetime import date as date_type, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Optional, FrozenSet

from .errors import ValidationError

# 1 credit = 10 notional hours, 8 hours = 1 working day
DAYS_PER_CREDIT = 1.25

HolidayPredicate = Callable[[date_type], bool]


def no_holidays(day: date_type) -> bool:
    return False


def year_end_closure(day: date_type) -> bool:
    """Training providers close from 15 December to 2 January."""
    if day.month == 12 and day.day >= 15:
        return True
    if day.month == 1 and day.day <= 2:
        return True
    return False


class HolidayCalendar:
    """
    Callable holiday predicate built from explicit dates,
    optionally combined with the year-end closure.
    """

    def __init__(self, dates: Iterable[date_type] = (), include_year_end_closure: bool = False):
        self.dates: FrozenSet[date_type] = frozenset(dates)
        self.include_year_end_closure = include_year_end_closure

    def __call__(self, day: date_type) -> bool:
        if day in self.dates:
            return True
        return self.include_year_end_closure and year_end_closure(day)

    def __repr__(self) -> str:
        return f"HolidayCalendar({len(self.dates)} dates, year_end_closure={self.include_year_end_closure})"


def is_working_day(day: date_type, holidays: Optional[HolidayPredicate] = None) -> bool:
    if day.weekday() >= 5:
        return False
    return not (holidays or no_holidays)(day)


# More consecutive non-working days than this means the holiday predicate closes everything
MAX_NON_WORKING_RUN = 366


def add_working_days(day: date_type, n: int, holidays: Optional[HolidayPredicate] = None) -> date_type:
    """
    Advance by exactly n working days (backwards when n is negative).
    n = 0 rolls a non-working day forward to the next working day.
    """
    result = day
    idle = 0
    if n == 0:
        while not is_working_day(result, holidays):
            result += timedelta(days=1)
            idle = _count_idle(idle, day)
        return result

    step = 1 if n > 0 else -1
    remaining = abs(n)
    while remaining:
        result += timedelta(days=step)
        if is_working_day(result, holidays):
            remaining -= 1
            idle = 0
        else:
            idle = _count_idle(idle, day)
    return result


def _count_idle(idle: int, start: date_type) -> int:
    idle += 1
    if idle > MAX_NON_WORKING_RUN:
        raise ValidationError(
            "holidays", f"no working day within {MAX_NON_WORKING_RUN} days of {start.isoformat()}"
        )
    return idle


def credits_to_duration_days(credits: float, days_per_credit: float = DAYS_PER_CREDIT) -> int:
    # Decimal keeps e.g. 3 * 1.25 from picking up float noise before the ceiling
    exact = Decimal(str(credits)) * Decimal(str(days_per_credit))
    return math.ceil(exact)


def iter_days(start: date_type, end: date_type) -> Iterator[date_type]:
    """Calendar days from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def working_days_between(start: date_type, end: date_type, holidays: Optional[HolidayPredicate] = None) -> int:
    """Number of working days in [start, end]; 0 when end is before start."""
    return sum(1 for d in iter_days(start, end) if is_working_day(d, holidays))
