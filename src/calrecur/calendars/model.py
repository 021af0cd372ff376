"""
calrecur.calendars.model
------------------------
Configurable in-world calendar engine.

A ``CalendarSpec`` is pure data (months, weekdays, seasons, moons, eras,
cycles, leap rule); ``ConfigurableCalendar`` turns it into a live object
implementing the ``CalendarModel`` protocol. Time is counted in seconds
from internal year 0, month 0, day 1; negative internal years lie before it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from ..core.types import CalDate, MoonPhaseInfo
from .leap import LeapYearRule


@dataclass(frozen=True)
class CalendarId:
    name: str
    version: str = "1"


@dataclass(frozen=True)
class MonthDef:
    name: str
    days: int
    leap_days: Optional[int] = None
    type: Literal["standard", "intercalary"] = "standard"
    abbreviation: str = ""
    starting_weekday: Optional[int] = None

    def __post_init__(self) -> None:
        if self.days < 0:
            raise ValueError(f"Month '{self.name}' has negative length {self.days}")
        if self.leap_days is not None and self.leap_days < 0:
            raise ValueError(f"Month '{self.name}' has negative leap length {self.leap_days}")
        if self.type not in ("standard", "intercalary"):
            raise ValueError(f"Month '{self.name}' has unknown type '{self.type}'")

    @property
    def is_intercalary(self) -> bool:
        return self.type == "intercalary"

    def length(self, leap: bool) -> int:
        if leap and self.leap_days is not None:
            return self.leap_days
        return self.days


@dataclass(frozen=True)
class WeekdayDef:
    name: str
    abbreviation: str = ""


@dataclass(frozen=True)
class SeasonDef:
    """``day_start``/``day_end`` are 1-based days of the year, inclusive.

    ``day_start > day_end`` means the season wraps over the year end.
    """
    name: str
    day_start: int
    day_end: int


@dataclass(frozen=True)
class PhaseDef:
    """A named moon phase; ``start``/``end`` are cycle fractions in [0, 1].

    Phases without a range are spread over the cycle by position.
    """
    name: str
    start: Optional[float] = None
    end: Optional[float] = None

    def __post_init__(self) -> None:
        if (self.start is None) != (self.end is None):
            raise ValueError(f"Phase '{self.name}' needs both start and end, or neither")

    @property
    def has_range(self) -> bool:
        return self.start is not None and self.end is not None


@dataclass(frozen=True)
class MoonDef:
    name: str
    cycle_length: float
    phases: Tuple[PhaseDef, ...]
    reference_date: CalDate = CalDate(0, 0, 1)  # display year
    reference_phase: int = 0
    cycle_day_adjust: float = 0.0

    def __post_init__(self) -> None:
        if not self.phases:
            raise ValueError(f"Moon '{self.name}' has no phases")
        if not (self.cycle_length > 0):
            raise ValueError(f"Moon '{self.name}' needs a positive cycle length")


@dataclass(frozen=True)
class EraDef:
    name: str
    start_year: int
    end_year: Optional[int] = None
    abbreviation: str = ""


CycleBasis = Literal["year", "eraYear", "month", "monthDay", "yearDay", "day"]


@dataclass(frozen=True)
class CycleDef:
    name: str
    length: int
    entries: Tuple[str, ...]
    offset: int = 0
    based_on: CycleBasis = "year"

    def __post_init__(self) -> None:
        if self.based_on not in ("year", "eraYear", "month", "monthDay", "yearDay", "day"):
            raise ValueError(f"Cycle '{self.name}' has unknown basis '{self.based_on}'")


@dataclass(frozen=True)
class CalendarSpec:
    """Pure data payload for constructing a calendar.

    ``days_per_year`` is only consulted for monthless calendars.
    ``daylight`` may pin ``summerSolstice``/``winterSolstice`` to a day of
    the year, overriding the season midpoint.
    """
    id: CalendarId
    months: Tuple[MonthDef, ...] = ()
    weekdays: Tuple[WeekdayDef, ...] = ()
    seasons: Tuple[SeasonDef, ...] = ()
    moons: Tuple[MoonDef, ...] = ()
    eras: Tuple[EraDef, ...] = ()
    cycles: Tuple[CycleDef, ...] = ()
    leap_year: LeapYearRule = LeapYearRule()
    year_zero: int = 0
    first_weekday: int = 0
    days_per_year: int = 365
    hours_per_day: int = 24
    minutes_per_hour: int = 60
    seconds_per_minute: int = 60
    daylight: Mapping[str, int] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("hours_per_day", "minutes_per_hour", "seconds_per_minute"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if not self.months and self.days_per_year <= 0:
            raise ValueError("A monthless calendar needs a positive days_per_year")

    def tweak(self, **changes) -> "CalendarSpec":
        return replace(self, **changes)


class ConfigurableCalendar:
    """
    Live calendar built from a CalendarSpec. Fully implements CalendarModel.

    Cumulative year starts are memoized per instance; the spec is frozen, so
    the memo never goes stale.
    """
    def __init__(self, spec: CalendarSpec):
        self.spec = spec
        self.months = spec.months
        self.weekdays = spec.weekdays
        self.seasons = spec.seasons
        self.moons = spec.moons
        self.eras = spec.eras
        self.cycles = spec.cycles
        self.daylight = dict(spec.daylight)

        # (days, intercalary days) from year 0 to the start of year i / year -(i+1)
        self._pos: List[Tuple[int, int]] = [(0, 0)]
        self._neg: List[Tuple[int, int]] = []

    # ---------------------------------------------------------
    # Protocol Properties
    # ---------------------------------------------------------
    @property
    def id(self) -> CalendarId:
        return self.spec.id

    @property
    def days_in_week(self) -> int:
        return len(self.weekdays)

    @property
    def year_zero(self) -> int:
        return self.spec.year_zero

    @property
    def is_monthless(self) -> bool:
        return not self.months

    @property
    def hours_per_day(self) -> int:
        return self.spec.hours_per_day

    @property
    def seconds_per_hour(self) -> int:
        return self.spec.minutes_per_hour * self.spec.seconds_per_minute

    @property
    def seconds_per_day(self) -> int:
        return self.spec.hours_per_day * self.seconds_per_hour

    def info(self) -> Dict[str, Any]:
        return {
            "id": {"name": self.id.name, "version": self.id.version},
            "months": [m.name for m in self.months],
            "weekdays": [w.name for w in self.weekdays],
            "seasons": [s.name for s in self.seasons],
            "moons": [m.name for m in self.moons],
            "eras": [e.name for e in self.eras],
            "cycles": [c.name for c in self.cycles],
            "leap_year": self.spec.leap_year.describe(),
            "year_zero": self.year_zero,
            "days_in_week": self.days_in_week,
            "meta": dict(self.spec.meta),
        }

    # ---------------------------------------------------------
    # Year and Month Lengths
    # ---------------------------------------------------------
    def is_leap_year(self, year: int) -> bool:
        """``year`` is internal; the rule is evaluated on the display year."""
        return self.spec.leap_year.is_leap(year + self.year_zero)

    def get_days_in_month(self, month: int, year: int) -> int:
        if self.is_monthless:
            return self.get_days_in_year(year) if month == 0 else 0
        if not 0 <= month < len(self.months):
            return 0
        return self.months[month].length(self.is_leap_year(year))

    def get_days_in_year(self, year: int) -> int:
        leap = self.is_leap_year(year)
        if self.is_monthless:
            return self.spec.days_per_year + (1 if leap else 0)
        return sum(m.length(leap) for m in self.months)

    def _intercalary_days_in_year(self, year: int) -> int:
        leap = self.is_leap_year(year)
        return sum(m.length(leap) for m in self.months if m.is_intercalary)

    def _year_start(self, year: int) -> Tuple[int, int]:
        if year >= 0:
            while len(self._pos) <= year:
                y = len(self._pos) - 1
                days, ic = self._pos[-1]
                self._pos.append((days + self.get_days_in_year(y), ic + self._intercalary_days_in_year(y)))
            return self._pos[year]
        idx = -year - 1
        while len(self._neg) <= idx:
            y = -len(self._neg) - 1
            days, ic = self._neg[-1] if self._neg else (0, 0)
            self._neg.append((days - self.get_days_in_year(y), ic - self._intercalary_days_in_year(y)))
        return self._neg[idx]

    def _day_of_year0(self, year: int, month: int, day_of_month: int) -> int:
        """0-based day of year; months past the end count as whole months."""
        if self.is_monthless:
            return day_of_month
        leap = self.is_leap_year(year)
        before = sum(m.length(leap) for m in self.months[:max(0, month)])
        return before + day_of_month

    # ---------------------------------------------------------
    # Absolute Time
    # ---------------------------------------------------------
    def days_from_epoch(self, year: int, month: int, day_of_month: int) -> int:
        return self._year_start(year)[0] + self._day_of_year0(year, month, day_of_month)

    def components_to_time(
        self, year: int, month: int, day_of_month: int, hour: int = 0, minute: int = 0, second: int = 0
    ) -> int:
        days = self.days_from_epoch(year, month, day_of_month)
        return (
            days * self.seconds_per_day
            + hour * self.seconds_per_hour
            + minute * self.spec.seconds_per_minute
            + second
        )

    def time_to_components(self, time: int) -> Dict[str, int]:
        spd = self.seconds_per_day
        days, rem = divmod(int(time), spd)
        hour, rem = divmod(rem, self.seconds_per_hour)
        minute, second = divmod(rem, self.spec.seconds_per_minute)

        typical = self.get_days_in_year(0) or self.get_days_in_year(1)
        if typical <= 0:
            raise ValueError("Calendar has zero-length years")
        year = days // typical
        while self._year_start(year)[0] > days:
            year -= 1
        while self._year_start(year + 1)[0] <= days:
            year += 1

        remaining = days - self._year_start(year)[0]
        month = 0
        if not self.is_monthless:
            leap = self.is_leap_year(year)
            for i, m in enumerate(self.months):
                n = m.length(leap)
                if remaining < n:
                    month = i
                    break
                remaining -= n
        return {
            "year": year,
            "month": month,
            "day_of_month": remaining,
            "hour": hour,
            "minute": minute,
            "second": second,
        }

    # ---------------------------------------------------------
    # Weekdays
    # ---------------------------------------------------------
    def day_of_week(self, year: int, month: int, day_of_month: int) -> int:
        """0-based weekday. Days of intercalary months do not advance the week."""
        diw = self.days_in_week
        if diw <= 0:
            return 0
        if not self.is_monthless and 0 <= month < len(self.months):
            anchor = self.months[month].starting_weekday
            if anchor is not None:
                return (anchor + day_of_month) % diw

        start_days, start_ic = self._year_start(year)
        ic_in_year = 0
        if not self.is_monthless:
            leap = self.is_leap_year(year)
            for i, m in enumerate(self.months[:max(0, month)]):
                if m.is_intercalary:
                    ic_in_year += m.length(leap)
            if 0 <= month < len(self.months) and self.months[month].is_intercalary:
                ic_in_year += day_of_month
        counting = start_days + self._day_of_year0(year, month, day_of_month) - start_ic - ic_in_year
        return (counting + self.spec.first_weekday) % diw

    # ---------------------------------------------------------
    # Moons
    # ---------------------------------------------------------
    def get_moon_phase(
        self, moon_index: int, year: int, month: int, day_of_month: int, hour: int = 12
    ) -> Optional[MoonPhaseInfo]:
        """Phase of one moon on one day; whole days only, ``hour`` never crosses a day."""
        if not 0 <= moon_index < len(self.moons):
            return None
        moon = self.moons[moon_index]
        phases = moon.phases
        length = moon.cycle_length

        spd = self.seconds_per_day
        current = self.components_to_time(year, month, day_of_month, hour) // spd
        ref = moon.reference_date
        since = current - self.days_from_epoch(ref.year - self.year_zero, ref.month, ref.day - 1)

        ref_phase = phases[moon.reference_phase] if 0 <= moon.reference_phase < len(phases) else None
        phase_offset = (ref_phase.start or 0.0) * length if ref_phase is not None else 0.0
        into = (since % length + phase_offset + moon.cycle_day_adjust) % length
        position = into / length
        day_index = int(math.floor(into))

        if phases[0].has_range:
            index, within, duration = self._ranged_phase(phases, length, day_index)
        else:
            index, within, duration = self._distributed_phase(len(phases), length, day_index)
        return MoonPhaseInfo(
            name=phases[index].name,
            phase_index=index,
            position=position,
            day_in_cycle=day_index,
            day_within_phase=within,
            phase_duration=duration,
        )

    @staticmethod
    def _ranged_phase(phases: Tuple[PhaseDef, ...], length: float, day_index: int) -> Tuple[int, int, int]:
        # fractional boundaries are snapped to whole days before comparing
        total = int(round(length))
        for i, p in enumerate(phases):
            start_day = int(round((p.start or 0.0) * length))
            end_day = int(round((p.end if p.end is not None else 1.0) * length))
            if end_day > start_day:
                inside = start_day <= day_index < end_day
                duration = end_day - start_day
            else:
                inside = day_index >= start_day or day_index < end_day
                duration = total - start_day + end_day
            if inside:
                within = day_index - start_day if day_index >= start_day else day_index + total - start_day
                return i, within, max(1, duration)
        return 0, 0, 1

    @staticmethod
    def _distributed_phase(count: int, length: float, day_index: int) -> Tuple[int, int, int]:
        cursor = 0
        spans = phase_day_distribution(length, count)
        for i, span in enumerate(spans):
            if day_index < cursor + span:
                return i, day_index - cursor, span
            cursor += span
        return 0, 0, 1


def phase_day_distribution(length: float, count: int = 8) -> List[int]:
    """Days per phase for moons whose phases carry no explicit range.

    With eight phases, new and full moon (indices 0 and 4) get
    ``floor(length / 8)`` days each and the six others share the rest.
    """
    if count <= 0:
        return []
    if count != 8:
        base = int(length // count)
        extra = int(length % count)
        return [base + (1 if i < extra else 0) for i in range(count)]
    primary = int(length // 8)
    remaining = length - 2 * primary
    secondary = int(remaining // 6)
    extra = int(remaining % 6)
    out: List[int] = []
    assigned = 0
    for i in range(8):
        if i in (0, 4):
            out.append(primary)
        else:
            out.append(secondary + (1 if assigned < extra else 0))
            assigned += 1
    return out
