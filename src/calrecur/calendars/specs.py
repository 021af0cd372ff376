from __future__ import annotations

from typing import Dict, Tuple

from ..core.types import CalDate
from .leap import LeapYearRule
from .model import (
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


# ============================================================
# SHARED BUILDING BLOCKS
# ============================================================

SEVEN_DAY_WEEK = tuple(
    WeekdayDef(n, n[:3])
    for n in ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
)

# Eight phases with explicit cycle-fraction windows
EIGHT_PHASES_RANGED = (
    PhaseDef("New Moon", 0.0, 0.0625),
    PhaseDef("Waxing Crescent", 0.0625, 0.1875),
    PhaseDef("First Quarter", 0.1875, 0.3125),
    PhaseDef("Waxing Gibbous", 0.3125, 0.4375),
    PhaseDef("Full Moon", 0.4375, 0.5625),
    PhaseDef("Waning Gibbous", 0.5625, 0.6875),
    PhaseDef("Last Quarter", 0.6875, 0.8125),
    PhaseDef("Waning Crescent", 0.8125, 1.0),
)

# Same names; days handed out by the eight-phase distribution
EIGHT_PHASES = tuple(PhaseDef(p.name) for p in EIGHT_PHASES_RANGED)

# Days of the year, non-leap
FOUR_SEASONS = (
    SeasonDef("Spring", 80, 171),
    SeasonDef("Summer", 172, 265),
    SeasonDef("Autumn", 266, 355),
    SeasonDef("Winter", 356, 79),
)


def _months(*pairs: Tuple[str, int]) -> Tuple[MonthDef, ...]:
    return tuple(MonthDef(name, days, abbreviation=name[:3]) for name, days in pairs)


# ============================================================
# PRESETS
# ============================================================

def gregorian() -> CalendarSpec:
    months = list(_months(
        ("January", 31), ("February", 28), ("March", 31), ("April", 30),
        ("May", 31), ("June", 30), ("July", 31), ("August", 31),
        ("September", 30), ("October", 31), ("November", 30), ("December", 31),
    ))
    months[1] = MonthDef("February", 28, leap_days=29, abbreviation="Feb")
    return CalendarSpec(
        id=CalendarId("gregorian"),
        months=tuple(months),
        weekdays=SEVEN_DAY_WEEK,
        seasons=FOUR_SEASONS,
        moons=(
            MoonDef(
                "Luna",
                cycle_length=29.53059,
                phases=EIGHT_PHASES_RANGED,
                reference_date=CalDate(2000, 0, 6),  # new moon
            ),
        ),
        eras=(EraDef("Common Era", 1, abbreviation="CE"),),
        cycles=(
            CycleDef(
                "Zodiac",
                length=12,
                offset=4,
                based_on="year",
                entries=("Rat", "Ox", "Tiger", "Rabbit", "Dragon", "Snake",
                         "Horse", "Goat", "Monkey", "Rooster", "Dog", "Pig"),
            ),
        ),
        leap_year=LeapYearRule(rule="gregorian"),
        # proleptic 0000-01-01 is a Saturday
        first_weekday=6,
        meta={"description": "Proleptic Gregorian calendar"},
    )


def harptos() -> CalendarSpec:
    """Calendar of Harptos: twelve 30-day months, festival days between them."""
    def festival(name: str, days: int = 1, leap_days=None) -> MonthDef:
        return MonthDef(name, days, leap_days=leap_days, type="intercalary")

    def month(name: str) -> MonthDef:
        return MonthDef(name, 30)

    return CalendarSpec(
        id=CalendarId("harptos"),
        months=(
            month("Hammer"), festival("Midwinter"),
            month("Alturiak"), month("Ches"), month("Tarsakh"), festival("Greengrass"),
            month("Mirtul"), month("Kythorn"), month("Flamerule"), festival("Midsummer"),
            festival("Shieldmeet", 0, leap_days=1),
            month("Eleasis"), month("Eleint"), festival("Highharvestide"),
            month("Marpenoth"), month("Uktar"), festival("Feast of the Moon"), month("Nightal"),
        ),
        weekdays=tuple(
            WeekdayDef(n) for n in (
                "First-day", "Second-day", "Third-day", "Fourth-day", "Fifth-day",
                "Sixth-day", "Seventh-day", "Eighth-day", "Ninth-day", "Tenth-day",
            )
        ),
        seasons=(
            SeasonDef("Spring", 80, 171),
            SeasonDef("Summer", 172, 264),
            SeasonDef("Autumn", 265, 354),
            SeasonDef("Winter", 355, 79),
        ),
        moons=(
            MoonDef("Selûne", cycle_length=30.4375, phases=EIGHT_PHASES, reference_date=CalDate(1372, 0, 1)),
        ),
        eras=(EraDef("Dale Reckoning", 1, abbreviation="DR"),),
        leap_year=LeapYearRule(rule="simple", interval=4),
        daylight={"summerSolstice": 172, "winterSolstice": 355},
        meta={"description": "Forgotten Realms"},
    )


def barovia() -> CalendarSpec:
    """Thirteen lunar months of 28 days; the moon is the calendar."""
    names = (
        "First Moon", "Second Moon", "Third Moon", "Fourth Moon", "Fifth Moon", "Sixth Moon",
        "Seventh Moon", "Eighth Moon", "Ninth Moon", "Tenth Moon", "Eleventh Moon",
        "Twelfth Moon", "Thirteenth Moon",
    )
    return CalendarSpec(
        id=CalendarId("barovia"),
        months=tuple(MonthDef(n, 28, starting_weekday=0) for n in names),
        weekdays=SEVEN_DAY_WEEK,
        seasons=(
            SeasonDef("Spring", 71, 161),
            SeasonDef("Summer", 162, 252),
            SeasonDef("Autumn", 253, 343),
            SeasonDef("Winter", 344, 70),
        ),
        moons=(
            MoonDef(
                "Moon",
                cycle_length=28,
                phases=(
                    PhaseDef("New", 0.0, 0.25),
                    PhaseDef("Waxing", 0.25, 0.5),
                    PhaseDef("Full", 0.5, 0.75),
                    PhaseDef("Waning", 0.75, 1.0),
                ),
            ),
        ),
        eras=(
            EraDef("Before Strahd", -1000, 350, abbreviation="BS"),
            EraDef("Strahd's Reign", 351, abbreviation="SR"),
        ),
        cycles=(
            CycleDef("Watch", length=4, based_on="monthDay", entries=("Dawn", "Noon", "Dusk", "Night")),
        ),
        meta={"description": "Mists of Barovia"},
    )


def traveller() -> CalendarSpec:
    """Imperial calendar: a monthless 365-day year of 7-day weeks."""
    return CalendarSpec(
        id=CalendarId("traveller"),
        weekdays=tuple(
            WeekdayDef(n) for n in ("Wonday", "Tuday", "Thirday", "Forday", "Fiday", "Sixday", "Senday")
        ),
        days_per_year=365,
        eras=(EraDef("Imperial", 0, abbreviation="Imp"),),
        cycles=(CycleDef("Holiday cycle", length=7, based_on="yearDay", entries=tuple("ABCDEFG")),),
        meta={"description": "Third Imperium"},
    )


ALL_SPECS: Dict[str, CalendarSpec] = {
    "gregorian": gregorian(),
    "harptos": harptos(),
    "barovia": barovia(),
    "traveller": traveller(),
}
