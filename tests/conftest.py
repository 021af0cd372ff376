# tests/conftest.py

import pytest

from calrecur.calendars.factory import make_calendar
from calrecur.calendars.model import (
    CalendarId,
    CalendarSpec,
    CycleDef,
    EraDef,
    MonthDef,
    MoonDef,
    PhaseDef,
    SeasonDef,
    WeekdayDef,
)
from calrecur.calendars.specs import ALL_SPECS
from calrecur.recurrence.context import EvalContext


def tidy_spec() -> CalendarSpec:
    """
    Twelve 30-day months, no leap years, 7-day weeks starting at index 0 on
    day 0 of year 0. The moon has eight one-day phases, so on epoch day n the
    phase index is n % 8 and the weekday is n % 7, where
    n = 360 * year + 30 * month + (day - 1).
    """
    return CalendarSpec(
        id=CalendarId("tidy"),
        months=tuple(MonthDef(f"M{i + 1}", 30) for i in range(12)),
        weekdays=tuple(WeekdayDef(f"D{i + 1}") for i in range(7)),
        seasons=(
            SeasonDef("Spring", 1, 90),
            SeasonDef("Summer", 91, 180),
            SeasonDef("Autumn", 181, 270),
            SeasonDef("Winter", 271, 360),
        ),
        moons=(
            MoonDef(
                "Octo",
                cycle_length=8,
                phases=tuple(PhaseDef(f"P{i}", i / 8, (i + 1) / 8) for i in range(8)),
            ),
        ),
        eras=(EraDef("Old", 0, 99), EraDef("New", 100)),
        cycles=(CycleDef("Element", 5, ("Wood", "Fire", "Earth", "Metal", "Water")),),
    )


def festival_spec() -> CalendarSpec:
    """Two 10-day months with a one-day intercalary festival between them; 5-day weeks."""
    return CalendarSpec(
        id=CalendarId("festival"),
        months=(
            MonthDef("Early", 10),
            MonthDef("Feast", 1, type="intercalary"),
            MonthDef("Late", 10),
        ),
        weekdays=tuple(WeekdayDef(n) for n in ("A", "B", "C", "D", "E")),
    )


@pytest.fixture
def tidy():
    return make_calendar(tidy_spec())


@pytest.fixture
def festival():
    return make_calendar(festival_spec())


@pytest.fixture
def greg():
    return make_calendar(ALL_SPECS["gregorian"])


@pytest.fixture
def harptos():
    return make_calendar(ALL_SPECS["harptos"])


@pytest.fixture
def tidy_ctx(tidy):
    return EvalContext(calendar=tidy)


@pytest.fixture
def greg_ctx(greg):
    return EvalContext(calendar=greg)


@pytest.fixture
def slow_moon_ctx():
    """Tidy calendar whose moon has eight three-day phases: cycle day n is in phase n // 3."""
    phases = tuple(PhaseDef(f"S{i}", i / 8, (i + 1) / 8) for i in range(8))
    cal = make_calendar(tidy_spec().tweak(moons=(MoonDef("Slow", 24, phases),)))
    return EvalContext(calendar=cal)


@pytest.fixture
def wrapped_winter_ctx():
    """Tidy calendar whose winter runs from day 330 over new year to day 30; its midpoint is day 360."""
    seasons = (
        SeasonDef("Spring", 31, 120),
        SeasonDef("Summer", 121, 210),
        SeasonDef("Autumn", 211, 329),
        SeasonDef("Winter", 330, 30),
    )
    return EvalContext(calendar=make_calendar(tidy_spec().tweak(seasons=seasons)))
