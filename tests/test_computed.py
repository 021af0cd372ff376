# tests/test_computed.py

from calrecur.core import time as t
from calrecur.core.types import CalDate, ComputedConfig, ComputedStep, RecurrenceSpec, Repeat
from calrecur.recurrence.computed import resolve_anchor, resolve_computed_date
from calrecur.recurrence.context import EvalContext


def anchor(value):
    return ComputedStep("anchor", value=value)


def test_spring_plus_ten_days(tidy_ctx):
    config = ComputedConfig((anchor("springEquinox"), ComputedStep("daysAfter", params={"days": 10})))
    d = resolve_computed_date(config, 3, tidy_ctx)
    assert t.day_of_year(d, tidy_ctx.calendar) == 11


def test_spring_at_day_80_plus_ten_is_day_90(greg_ctx):
    config = ComputedConfig((anchor("springEquinox"), ComputedStep("daysAfter", params={"days": 10})))
    d = resolve_computed_date(config, 2023, greg_ctx)
    assert t.day_of_year(d, greg_ctx.calendar) == 90


def test_year_override_wins(tidy_ctx):
    config = ComputedConfig(
        (anchor("springEquinox"),),
        year_overrides={5: (6, 12)},
    )
    assert resolve_computed_date(config, 5, tidy_ctx) == CalDate(5, 6, 12)
    assert resolve_computed_date(config, 6, tidy_ctx) == CalDate(6, 0, 1)


def test_override_needs_no_calendar():
    config = ComputedConfig((anchor("springEquinox"),), year_overrides={5: (1, 2)})
    assert resolve_computed_date(config, 5, EvalContext()) == CalDate(5, 1, 2)
    assert resolve_computed_date(config, 6, EvalContext()) is None


def test_empty_chain_resolves_nothing(tidy_ctx):
    assert resolve_computed_date(ComputedConfig(()), 1, tidy_ctx) is None


def test_season_boundaries(tidy_ctx):
    assert resolve_anchor("seasonStart:2", 1, tidy_ctx) == CalDate(1, 6, 1)
    assert resolve_anchor("seasonEnd:1", 1, tidy_ctx) == CalDate(1, 5, 30)
    assert resolve_anchor("seasonStart:7", 1, tidy_ctx) is None
    assert resolve_anchor("seasonStart:x", 1, tidy_ctx) is None


def test_solstices_use_season_midpoint(tidy_ctx):
    assert resolve_anchor("summerSolstice", 1, tidy_ctx) == CalDate(1, 4, 15)
    assert resolve_anchor("winterSolstice", 1, tidy_ctx) == CalDate(1, 10, 15)


def test_solstice_daylight_override(harptos):
    ctx = EvalContext(calendar=harptos)
    d = resolve_anchor("summerSolstice", 1373, ctx)
    assert t.day_of_year(d, harptos) == 172


def test_unknown_anchor_aborts(tidy_ctx):
    config = ComputedConfig((anchor("midsummerNight"), ComputedStep("daysAfter", params={"days": 1})))
    assert resolve_computed_date(config, 1, tidy_ctx) is None


def test_step_before_anchor_aborts(tidy_ctx):
    config = ComputedConfig((ComputedStep("daysAfter", params={"days": 1}),))
    assert resolve_computed_date(config, 1, tidy_ctx) is None


def test_first_weekday_after_is_strict(tidy_ctx):
    # spring starts on year 1, day 1: epoch day 360, weekday 3
    config = ComputedConfig((
        anchor("springEquinox"),
        ComputedStep("firstAfter", condition="weekday", params={"weekday": 3}),
    ))
    assert resolve_computed_date(config, 1, tidy_ctx) == CalDate(1, 0, 8)


def test_weekday_on_or_after_is_inclusive(tidy_ctx):
    config = ComputedConfig((anchor("springEquinox"), ComputedStep("weekdayOnOrAfter", params={"weekday": 3})))
    assert resolve_computed_date(config, 1, tidy_ctx) == CalDate(1, 0, 1)
    config = ComputedConfig((anchor("springEquinox"), ComputedStep("weekdayOnOrAfter", params={"weekday": 1})))
    assert resolve_computed_date(config, 1, tidy_ctx) == CalDate(1, 0, 6)


def test_first_full_moon_after(tidy_ctx):
    # P4 is the "full" phase in this test; epoch day 360 is phase 0
    config = ComputedConfig((
        anchor("springEquinox"),
        ComputedStep("firstAfter", condition="moonPhase", params={"moon": 0, "phase": "p4"}),
    ))
    assert resolve_computed_date(config, 1, tidy_ctx) == CalDate(1, 0, 5)


def test_easter_like_chain(greg_ctx):
    config = ComputedConfig((
        anchor("springEquinox"),
        ComputedStep("firstAfter", condition="moonPhase", params={"phase": "full"}),
        ComputedStep("firstAfter", condition="weekday", params={"weekday": 0}),
    ))
    d = resolve_computed_date(config, 2024, greg_ctx)
    assert d is not None
    assert t.day_of_week(d, greg_ctx.calendar) == 0
    assert t.day_of_year(d, greg_ctx.calendar) > 81


def test_unmatched_moon_phase_aborts(tidy_ctx):
    config = ComputedConfig((
        anchor("springEquinox"),
        ComputedStep("firstAfter", condition="moonPhase", params={"phase": "blue"}),
    ))
    assert resolve_computed_date(config, 1, tidy_ctx) is None


def test_event_anchor(tidy_ctx):
    source = RecurrenceSpec(start_date=CalDate(0, 2, 5), repeat=Repeat.YEARLY)
    ctx = EvalContext(calendar=tidy_ctx.calendar, events={"fair": source})
    config = ComputedConfig((anchor("event:fair"), ComputedStep("daysAfter", params={"days": 2})))
    assert resolve_computed_date(config, 4, ctx) == CalDate(4, 2, 7)
    assert resolve_computed_date(config, 4, tidy_ctx) is None


def test_event_anchor_cycle_is_refused(tidy_ctx):
    loop = RecurrenceSpec(
        start_date=CalDate(0, 0, 1),
        repeat=Repeat.COMPUTED,
        computed_config=ComputedConfig((anchor("event:loop"),)),
    )
    ctx = EvalContext(calendar=tidy_ctx.calendar, events={"loop": loop})
    assert resolve_computed_date(loop.computed_config, 1, ctx) is None


def test_computed_cap_counts_from_start_year(tidy_ctx):
    config = ComputedConfig((anchor("springEquinox"),))
    spec = RecurrenceSpec(start_date=CalDate(0, 0, 1), repeat=Repeat.COMPUTED, computed_config=config, max_occurrences=2)
    from calrecur.recurrence.occurrences import occurrences_in_range

    assert occurrences_in_range(spec, CalDate(1, 0, 1), CalDate(5, 0, 1), 10, tidy_ctx) == [CalDate(1, 0, 1)]


def test_winter_solstice_on_last_day_of_year(wrapped_winter_ctx):
    assert resolve_anchor("winterSolstice", 1, wrapped_winter_ctx) == CalDate(1, 11, 30)
