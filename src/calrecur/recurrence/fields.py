"""
calrecur.recurrence.fields
--------------------------
Standard condition fields.

Each resolver maps a date (plus an optional secondary index such as a moon or
cycle number) to a number or boolean. ``None`` means "cannot be resolved"
and never matches. Month, weekday, season and era are reported 1-based.
"""
from __future__ import annotations

import math
from typing import Optional

from ..core import time as t
from ..core.types import CalDate, FieldValue, MoonPhaseInfo
from . import seasons as s
from .context import EvalContext
from .registry import list_fields, register_field, resolve_field

__all__ = ["list_fields", "register_field", "resolve_field", "moon_phase_info", "era_index", "era_year"]


# ---------------------------------------------------------
# Shared lookups
# ---------------------------------------------------------
def moon_phase_info(date: CalDate, moon_index: int, ctx: EvalContext) -> Optional[MoonPhaseInfo]:
    """Phase of one moon at noon on ``date``."""
    cal = ctx.calendar
    if cal is None or not 0 <= moon_index < len(cal.moons):
        return None
    return cal.get_moon_phase(moon_index, t.internal_year(date.year, cal), date.month, date.day - 1, 12)


def _phase_index(date: CalDate, moon_index: int, ctx: EvalContext) -> Optional[int]:
    info = moon_phase_info(date, moon_index, ctx)
    return info.phase_index if info is not None else None


def _count_phase_entries(days, current: int, moon_index: int, ctx: EvalContext) -> int:
    count = 0
    was_in = False
    for d in days:
        now_in = _phase_index(d, moon_index, ctx) == current
        if now_in and not was_in:
            count += 1
        was_in = now_in
    return count


def era_index(year: int, eras) -> int:
    for i in range(len(eras) - 1, -1, -1):
        era = eras[i]
        if year >= era.start_year and (era.end_year is None or year <= era.end_year):
            return i
    return 0


def era_year(year: int, eras) -> int:
    if not eras:
        return year
    return year - eras[era_index(year, eras)].start_year + 1


def cycle_value(date: CalDate, cycle, ctx: EvalContext) -> int:
    if not cycle.length or not cycle.entries:
        return 0
    cal = ctx.calendar
    basis = cycle.based_on
    if basis == "year":
        value = date.year
    elif basis == "eraYear":
        value = era_year(date.year, cal.eras if cal is not None else ())
    elif basis == "month":
        value = date.month
    elif basis == "monthDay":
        value = date.day
    elif basis == "yearDay":
        value = t.day_of_year(date, cal)
    else:
        value = t.days_since_epoch(date, cal)
    return (value - (cycle.offset or 0)) % cycle.length


def _diw(ctx: EvalContext) -> int:
    return t.days_in_week(ctx.calendar)


def _seasons(ctx: EvalContext):
    return ctx.calendar.seasons if ctx.calendar is not None else ()


def _index(value2: Optional[int]) -> int:
    return 0 if value2 is None else value2


# ---------------------------------------------------------
# Resolvers
# ---------------------------------------------------------
def year(d, v2, ctx):
    return d.year


def month(d, v2, ctx):
    return d.month + 1


def day(d, v2, ctx):
    return d.day


def day_of_year(d, v2, ctx):
    return t.day_of_year(d, ctx.calendar)


def days_before_month_end(d, v2, ctx):
    return t.last_day_of_month(d, ctx.calendar) - d.day


def weekday(d, v2, ctx):
    return t.day_of_week(d, ctx.calendar) + 1


def week_number_in_month(d, v2, ctx):
    return math.ceil(d.day / _diw(ctx))


def inverse_week_number(d, v2, ctx):
    return (t.last_day_of_month(d, ctx.calendar) - d.day) // _diw(ctx) + 1


def week_in_year(d, v2, ctx):
    return math.ceil(t.day_of_year(d, ctx.calendar) / _diw(ctx))


def total_week(d, v2, ctx):
    return t.days_since_epoch(d, ctx.calendar) // _diw(ctx)


def weeks_before_month_end(d, v2, ctx):
    return (t.last_day_of_month(d, ctx.calendar) - d.day) // _diw(ctx)


def weeks_before_year_end(d, v2, ctx):
    return (t.days_in_year(d.year, ctx.calendar) - t.day_of_year(d, ctx.calendar)) // _diw(ctx)


def season(d, v2, ctx):
    seasons = _seasons(ctx)
    if not seasons:
        return None
    return s.season_index(t.day_of_year(d, ctx.calendar), seasons) + 1


def season_percent(d, v2, ctx):
    seasons = _seasons(ctx)
    if not seasons:
        return None
    return s.season_percent(t.day_of_year(d, ctx.calendar), seasons, t.days_in_year(d.year, ctx.calendar))


def season_day(d, v2, ctx):
    seasons = _seasons(ctx)
    if not seasons:
        return None
    return s.season_day(t.day_of_year(d, ctx.calendar), seasons, t.days_in_year(d.year, ctx.calendar))


def _solstice_field(kind: str):
    def resolve(d, v2, ctx):
        seasons = _seasons(ctx)
        if not seasons:
            return False
        doy = t.day_of_year(d, ctx.calendar)
        return s.is_solstice_or_equinox(doy, seasons, t.days_in_year(d.year, ctx.calendar), kind)
    return resolve


def moon_phase(d, v2, ctx):
    info = moon_phase_info(d, _index(v2), ctx)
    return info.position if info is not None else None


def moon_phase_index(d, v2, ctx):
    return _phase_index(d, _index(v2), ctx)


def moon_phase_count_month(d, v2, ctx):
    """Times the current phase was entered since the 1st of the month."""
    moon = _index(v2)
    current = _phase_index(d, moon, ctx)
    if current is None:
        return None
    days = (d.replace(day=n) for n in range(1, d.day + 1))
    return _count_phase_entries(days, current, moon, ctx)


def moon_phase_count_year(d, v2, ctx):
    """Times the current phase was entered since the first day of the year."""
    moon = _index(v2)
    current = _phase_index(d, moon, ctx)
    if current is None:
        return None
    cal = ctx.calendar
    days = (t.date_from_day_of_year(n, d.year, cal) for n in range(1, t.day_of_year(d, cal) + 1))
    return _count_phase_entries(days, current, moon, ctx)


def cycle(d, v2, ctx):
    cycles = ctx.calendar.cycles if ctx.calendar is not None else ()
    idx = _index(v2)
    if not 0 <= idx < len(cycles):
        return None
    return cycle_value(d, cycles[idx], ctx)


def era(d, v2, ctx):
    eras = ctx.calendar.eras if ctx.calendar is not None else ()
    if not eras:
        return None
    return era_index(d.year, eras) + 1


def era_year_field(d, v2, ctx):
    eras = ctx.calendar.eras if ctx.calendar is not None else ()
    return era_year(d.year, eras)


def intercalary(d, v2, ctx):
    months = ctx.calendar.months if ctx.calendar is not None else ()
    if not 0 <= d.month < len(months):
        return False
    return months[d.month].type == "intercalary"


register_field("year", year)
register_field("month", month)
register_field("day", day)
register_field("dayOfYear", day_of_year)
register_field("daysBeforeMonthEnd", days_before_month_end)
register_field("weekday", weekday)
register_field("weekNumberInMonth", week_number_in_month)
register_field("inverseWeekNumber", inverse_week_number)
register_field("weekInMonth", week_number_in_month)
register_field("weekInYear", week_in_year)
register_field("totalWeek", total_week)
register_field("weeksBeforeMonthEnd", weeks_before_month_end)
register_field("weeksBeforeYearEnd", weeks_before_year_end)
register_field("season", season)
register_field("seasonPercent", season_percent)
register_field("seasonDay", season_day)
register_field("isLongestDay", _solstice_field("longest"))
register_field("isShortestDay", _solstice_field("shortest"))
register_field("isSpringEquinox", _solstice_field("spring"))
register_field("isAutumnEquinox", _solstice_field("autumn"))
register_field("moonPhase", moon_phase)
register_field("moonPhaseIndex", moon_phase_index)
register_field("moonPhaseCountMonth", moon_phase_count_month)
register_field("moonPhaseCountYear", moon_phase_count_year)
register_field("cycle", cycle)
register_field("era", era)
register_field("eraYear", era_year_field)
register_field("intercalary", intercalary)
