"""
calrecur.calendars.factory
--------------------------
Transforms pure data specifications into live calendar objects.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..core.errors import RecordFormatError
from ..core.records import as_int, as_number, date_from_dict, opt_int, require
from .leap import LeapYearRule
from .model import (
    CalendarId,
    CalendarSpec,
    ConfigurableCalendar,
    CycleDef,
    EraDef,
    MonthDef,
    MoonDef,
    PhaseDef,
    SeasonDef,
    WeekdayDef,
)


def make_calendar(spec: CalendarSpec) -> ConfigurableCalendar:
    """The universal entry point."""
    if not isinstance(spec, CalendarSpec):
        raise TypeError(f"Unknown calendar spec type: {type(spec)}")
    return ConfigurableCalendar(spec)


def _name(entry: Any, where: str) -> str:
    if isinstance(entry, str):
        return entry
    return str(require(entry, "name", where))


def _month(m: Mapping[str, Any], where: str) -> MonthDef:
    return MonthDef(
        name=_name(m, where),
        days=as_int(require(m, "days", where), f"{where}.days"),
        leap_days=opt_int(m, "leapDays", where),
        type=m.get("type") or "standard",
        abbreviation=m.get("abbreviation", ""),
        starting_weekday=opt_int(m, "startingWeekday", where),
    )


def _moon(m: Mapping[str, Any], where: str) -> MoonDef:
    phases = []
    for j, p in enumerate(require(m, "phases", where)):
        pw = f"{where}.phases[{j}]"
        start = p.get("start") if isinstance(p, Mapping) else None
        end = p.get("end") if isinstance(p, Mapping) else None
        phases.append(PhaseDef(
            name=_name(p, pw),
            start=None if start is None else as_number(start, f"{pw}.start"),
            end=None if end is None else as_number(end, f"{pw}.end"),
        ))
    ref = m.get("referenceDate")
    return MoonDef(
        name=_name(m, where),
        cycle_length=as_number(require(m, "cycleLength", where), f"{where}.cycleLength"),
        phases=tuple(phases),
        reference_date=date_from_dict(ref, f"{where}.referenceDate") if ref else MoonDef.reference_date,
        reference_phase=opt_int(m, "referencePhase", where, 0),
        cycle_day_adjust=as_number(m.get("cycleDayAdjust", 0), f"{where}.cycleDayAdjust"),
    )


def _cycle(c: Mapping[str, Any], where: str) -> CycleDef:
    entries = tuple(_name(e, f"{where}.entries[{j}]") for j, e in enumerate(c.get("entries") or ()))
    return CycleDef(
        name=_name(c, where),
        length=as_int(require(c, "length", where), f"{where}.length"),
        entries=entries,
        offset=opt_int(c, "offset", where, 0),
        based_on=c.get("basedOn", "year"),
    )


def _leap_rule(data: Any) -> LeapYearRule:
    if not data:
        return LeapYearRule()
    return LeapYearRule(
        rule=data.get("rule", "none"),
        interval=opt_int(data, "interval", "leapYear", 0),
        start=opt_int(data, "start", "leapYear", 0),
        pattern=data.get("pattern", ""),
    )


def calendar_spec_from_dict(data: Mapping[str, Any]) -> CalendarSpec:
    """Build a CalendarSpec from a camelCase JSON calendar definition."""
    name = str(require(data, "name", "calendar"))
    try:
        return CalendarSpec(
            id=CalendarId(name=name, version=str(data.get("version", "1"))),
            months=tuple(_month(m, f"months[{i}]") for i, m in enumerate(data.get("months") or ())),
            weekdays=tuple(WeekdayDef(_name(w, f"weekdays[{i}]")) for i, w in enumerate(data.get("weekdays") or ())),
            seasons=tuple(
                SeasonDef(
                    name=_name(s, f"seasons[{i}]"),
                    day_start=as_int(require(s, "dayStart", f"seasons[{i}]"), f"seasons[{i}].dayStart"),
                    day_end=as_int(require(s, "dayEnd", f"seasons[{i}]"), f"seasons[{i}].dayEnd"),
                )
                for i, s in enumerate(data.get("seasons") or ())
            ),
            moons=tuple(_moon(m, f"moons[{i}]") for i, m in enumerate(data.get("moons") or ())),
            eras=tuple(
                EraDef(
                    name=_name(e, f"eras[{i}]"),
                    start_year=as_int(require(e, "startYear", f"eras[{i}]"), f"eras[{i}].startYear"),
                    end_year=opt_int(e, "endYear", f"eras[{i}]"),
                    abbreviation=e.get("abbreviation", ""),
                )
                for i, e in enumerate(data.get("eras") or ())
            ),
            cycles=tuple(_cycle(c, f"cycles[{i}]") for i, c in enumerate(data.get("cycles") or ())),
            leap_year=_leap_rule(data.get("leapYear")),
            year_zero=opt_int(data, "yearZero", "calendar", 0),
            first_weekday=opt_int(data, "firstWeekday", "calendar", 0),
            days_per_year=opt_int(data, "daysPerYear", "calendar", 365),
            hours_per_day=opt_int(data, "hoursPerDay", "calendar", 24),
            minutes_per_hour=opt_int(data, "minutesPerHour", "calendar", 60),
            seconds_per_minute=opt_int(data, "secondsPerMinute", "calendar", 60),
            daylight={k: as_int(v, f"daylight.{k}") for k, v in (data.get("daylight") or {}).items()},
            meta=dict(data.get("meta") or {}),
        )
    except RecordFormatError:
        raise
    except (TypeError, AttributeError, ValueError) as exc:
        raise RecordFormatError(f"calendar '{name}': {exc}") from exc


def calendar_from_dict(data: Mapping[str, Any]) -> ConfigurableCalendar:
    return make_calendar(calendar_spec_from_dict(data))
