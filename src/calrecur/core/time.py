"""
calrecur.core.time
------------------
Calendar-agnostic date arithmetic. Every month and year length is taken from
the Calendar Model; nothing here assumes 30-day months or 365-day years.

A ``None`` calendar is tolerated everywhere and yields conservative defaults
(7-day weeks, 30-day months, zero distances). Arithmetic failures caused by
malformed dates or degenerate calendars are logged and degrade to a neutral
value instead of raising.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from .engine import CalendarModel
from .types import CalDate

DEFAULT_DAYS_IN_WEEK = 7
DEFAULT_DAYS_IN_MONTH = 30
DEFAULT_MONTHS_PER_YEAR = 12

_ARITH_ERRORS = (ArithmeticError, IndexError, KeyError, TypeError, ValueError)


def compare_days(a: CalDate, b: CalDate) -> int:
    """-1, 0 or 1, ignoring time of day."""
    ka = (a.year, a.month, a.day)
    kb = (b.year, b.month, b.day)
    return (ka > kb) - (ka < kb)


def is_same_day(a: CalDate, b: CalDate) -> bool:
    return a.year == b.year and a.month == b.month and a.day == b.day


def internal_year(year: int, cal: Optional[CalendarModel]) -> int:
    return year - (cal.year_zero if cal is not None else 0)


def days_in_week(cal: Optional[CalendarModel]) -> int:
    if cal is None:
        return DEFAULT_DAYS_IN_WEEK
    return cal.days_in_week or DEFAULT_DAYS_IN_WEEK


def months_per_year(cal: Optional[CalendarModel]) -> int:
    if cal is None:
        return DEFAULT_MONTHS_PER_YEAR
    if cal.is_monthless:
        return 1
    return len(cal.months) or DEFAULT_MONTHS_PER_YEAR


def last_day_of_month(d: CalDate, cal: Optional[CalendarModel]) -> int:
    if cal is None:
        return DEFAULT_DAYS_IN_MONTH
    return cal.get_days_in_month(d.month, internal_year(d.year, cal))


def days_in_year(year: int, cal: Optional[CalendarModel]) -> int:
    """Length of a display year."""
    if cal is None:
        return DEFAULT_DAYS_IN_MONTH * DEFAULT_MONTHS_PER_YEAR
    return cal.get_days_in_year(internal_year(year, cal))


def day_of_year(d: CalDate, cal: Optional[CalendarModel]) -> int:
    """1-based, leap-aware."""
    if cal is None:
        return d.day
    y = internal_year(d.year, cal)
    return sum(cal.get_days_in_month(m, y) for m in range(d.month)) + d.day


def days_since_epoch(d: CalDate, cal: Optional[CalendarModel]) -> int:
    """Whole days from internal year 0, month 0, day 1."""
    if cal is None:
        return 0
    try:
        t = cal.components_to_time(internal_year(d.year, cal), d.month, d.day - 1)
        return t // cal.seconds_per_day
    except _ARITH_ERRORS as exc:
        logger.warning("Error counting days since epoch for {}: {}", d, exc)
        return 0


def days_between(start: CalDate, end: CalDate, cal: Optional[CalendarModel]) -> int:
    """Signed whole-day distance from start to end."""
    if cal is None:
        return 0
    try:
        spd = cal.seconds_per_day
        t0 = cal.components_to_time(internal_year(start.year, cal), start.month, start.day - 1)
        t1 = cal.components_to_time(internal_year(end.year, cal), end.month, end.day - 1)
        return (t1 - t0) // spd
    except _ARITH_ERRORS as exc:
        logger.warning("Error calculating days between {} and {}: {}", start, end, exc)
        return 0


def months_between(start: CalDate, end: CalDate, cal: Optional[CalendarModel]) -> int:
    if cal is None:
        return 0
    return (end.year - start.year) * months_per_year(cal) + (end.month - start.month)


def day_of_week(d: CalDate, cal: Optional[CalendarModel]) -> int:
    """0-based weekday index."""
    if cal is None:
        return 0
    try:
        return cal.day_of_week(internal_year(d.year, cal), d.month, d.day - 1)
    except _ARITH_ERRORS as exc:
        logger.warning("Error calculating day of week for {}: {}", d, exc)
        return 0


def add_days(d: CalDate, days: int, cal: Optional[CalendarModel]) -> CalDate:
    if cal is None or days == 0:
        return d
    try:
        spd = cal.seconds_per_day
        t = cal.components_to_time(internal_year(d.year, cal), d.month, d.day - 1)
        c = cal.time_to_components(t + days * spd)
        return CalDate(c["year"] + cal.year_zero, c["month"], c["day_of_month"] + 1, d.hour, d.minute)
    except _ARITH_ERRORS as exc:
        logger.warning("Error adding {} days to {}: {}", days, d, exc)
        return d


def add_months(d: CalDate, months: int, cal: Optional[CalendarModel]) -> CalDate:
    """Shift by whole months, clamping the day to the target month's length."""
    if cal is None:
        return d
    per_year = months_per_year(cal)
    year, month = divmod(d.month + months, per_year)
    year += d.year
    max_days = cal.get_days_in_month(month, internal_year(year, cal))
    return CalDate(year, month, min(d.day, max_days), d.hour, d.minute)


def add_years(d: CalDate, years: int, cal: Optional[CalendarModel]) -> CalDate:
    if cal is None:
        return d
    year = d.year + years
    max_days = cal.get_days_in_month(d.month, internal_year(year, cal))
    return CalDate(year, d.month, min(d.day, max_days), d.hour, d.minute)


def date_from_day_of_year(doy: int, year: int, cal: Optional[CalendarModel]) -> CalDate:
    """Inverse of day_of_year; days past the year's end clamp to its last day."""
    if cal is None or not cal.months:
        return CalDate(year, 0, max(1, doy))
    y = internal_year(year, cal)
    remaining = doy
    for m in range(len(cal.months)):
        n = cal.get_days_in_month(m, y)
        if remaining <= n:
            return CalDate(year, m, max(1, remaining))
        remaining -= n
    last = len(cal.months) - 1
    return CalDate(year, last, max(1, cal.get_days_in_month(last, y)))


def last_date_of_year(year: int, cal: Optional[CalendarModel]) -> CalDate:
    if cal is None or not cal.months:
        return CalDate(year, 0, days_in_year(year, cal))
    last = len(cal.months) - 1
    return CalDate(year, last, max(1, cal.get_days_in_month(last, internal_year(year, cal))))


def is_valid_date(d: CalDate, cal: Optional[CalendarModel]) -> bool:
    if not all(isinstance(v, int) for v in (d.year, d.month, d.day)):
        return False
    if cal is None:
        return True
    y = internal_year(d.year, cal)
    if cal.is_monthless:
        if d.month != 0:
            return False
        max_days = cal.get_days_in_year(y)
    else:
        if d.month < 0 or d.month >= len(cal.months):
            return False
        max_days = cal.get_days_in_month(d.month, y)
    if d.day < 1 or d.day > max_days:
        return False
    if d.hour is not None and not (0 <= d.hour < cal.hours_per_day):
        return False
    if d.minute is not None and not (0 <= d.minute < 60):
        return False
    return True
