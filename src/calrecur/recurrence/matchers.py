"""
calrecur.recurrence.matchers
----------------------------
One decision procedure per recurrence kind, plus the shared rules layered on
top of them: start/end bounds, multi-day spans, the occurrence cap, moon
conditions and extra field conditions.

Every function here is a pure predicate over ``(spec, date, ctx)``; nothing
is remembered between calls.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Tuple

from loguru import logger

from ..calendars.model import MoonDef
from ..core import time as t
from ..core.types import CalDate, MoonCondition, RangeBit, RangePattern, RecurrenceSpec, Repeat
from . import seasons as s
from .conditions import evaluate_conditions
from .context import EvalContext
from .fields import moon_phase_info
from .rng import matches_cached_occurrence, matches_random

MatchFn = Callable[[RecurrenceSpec, CalDate, EvalContext], bool]

MOON_WINDOW_TOLERANCE = 0.01


# ---------------------------------------------------------
# Per-kind matchers (no bounds, caps or conditions)
# ---------------------------------------------------------
def matches_never(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    return t.is_same_day(spec.start_date, d)


def matches_daily(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    diff = t.days_between(spec.start_date, d, ctx.calendar)
    return diff >= 0 and diff % spec.interval == 0


def matches_weekly(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    cal = ctx.calendar
    diff = t.days_between(spec.start_date, d, cal)
    if diff < 0:
        return False
    if t.day_of_week(spec.start_date, cal) != t.day_of_week(d, cal):
        return False
    return (diff // t.days_in_week(cal)) % spec.interval == 0


def _clamped_day_matches(start: CalDate, d: CalDate, ctx: EvalContext) -> bool:
    return d.day == min(start.day, t.last_day_of_month(d, ctx.calendar))


def matches_monthly(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    diff = t.months_between(spec.start_date, d, ctx.calendar)
    if diff < 0 or diff % spec.interval != 0:
        return False
    return _clamped_day_matches(spec.start_date, d, ctx)


def matches_yearly(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    diff = d.year - spec.start_date.year
    if diff < 0 or diff % spec.interval != 0:
        return False
    if d.month != spec.start_date.month:
        return False
    return _clamped_day_matches(spec.start_date, d, ctx)


def target_weekday(spec: RecurrenceSpec, ctx: EvalContext) -> int:
    if spec.weekday is not None:
        return spec.weekday
    return t.day_of_week(spec.start_date, ctx.calendar)


def target_week_number(spec: RecurrenceSpec, ctx: EvalContext) -> int:
    """1..5 counts from the month start, -1..-5 from its end."""
    if spec.week_number is not None:
        return spec.week_number
    return math.ceil(spec.start_date.day / t.days_in_week(ctx.calendar))


def matches_week_of_month(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    cal = ctx.calendar
    diw = t.days_in_week(cal)
    if t.day_of_week(d, cal) != target_weekday(spec, ctx):
        return False
    diff = t.months_between(spec.start_date, d, cal)
    if diff < 0 or diff % spec.interval != 0:
        return False
    n = target_week_number(spec, ctx)
    if n > 0:
        return math.ceil(d.day / diw) == n
    inverse = (t.last_day_of_month(d, cal) - d.day) // diw + 1
    return inverse == abs(n)


def matches_seasonal(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    cal = ctx.calendar
    config = spec.seasonal_config
    if cal is None or config is None or not cal.seasons:
        return False
    if not 0 <= config.season_index < len(cal.seasons):
        return False
    season = cal.seasons[config.season_index]
    doy = t.day_of_year(d, cal)
    if not s.in_season_range(doy, season.day_start, season.day_end):
        return False
    if config.trigger == "firstDay":
        return doy == season.day_start
    if config.trigger == "lastDay":
        return doy == season.day_end
    return True


def matches_range_bit(bit: RangeBit, value: int) -> bool:
    if bit is None:
        return True
    if isinstance(bit, tuple):
        lo, hi = bit
        return (lo is None or value >= lo) and (hi is None or value <= hi)
    return value == bit


def matches_range_pattern(pattern: RangePattern, d: CalDate) -> bool:
    return (
        matches_range_bit(pattern.year, d.year)
        and matches_range_bit(pattern.month, d.month)
        and matches_range_bit(pattern.day, d.day)
    )


def matches_range(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    if spec.range_pattern is None:
        return False
    return matches_range_pattern(spec.range_pattern, d)


def phase_window(moon: MoonDef, index: int) -> Tuple[float, float]:
    phase = moon.phases[index]
    if phase.start is not None and phase.end is not None:
        return phase.start, phase.end
    n = len(moon.phases)
    return index / n, (index + 1) / n


def matches_moon_conditions(conds, d: CalDate, ctx: EvalContext) -> bool:
    """True when any condition's phase window holds on ``d``."""
    cal = ctx.calendar
    if cal is None or not cal.moons:
        return False
    for cond in conds:
        if _matches_moon_condition(cond, d, ctx):
            return True
    return False


def _matches_moon_condition(cond: MoonCondition, d: CalDate, ctx: EvalContext) -> bool:
    info = moon_phase_info(d, cond.moon_index, ctx)
    if info is None:
        return False
    start, end = phase_window(ctx.calendar.moons[cond.moon_index], info.phase_index)
    if abs(start - cond.phase_start) >= MOON_WINDOW_TOLERANCE:
        return False
    if abs(end - cond.phase_end) >= MOON_WINDOW_TOLERANCE:
        return False
    modifier = cond.modifier or "any"
    if modifier == "any":
        return True
    third = info.phase_duration / 3
    within = info.day_within_phase
    if modifier == "rising":
        return within < third
    if modifier == "true":
        return third <= within < info.phase_duration - third
    if modifier == "fading":
        return within >= info.phase_duration - third
    return False


def matches_moon(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    if not spec.moon_conditions:
        return False
    return matches_moon_conditions(spec.moon_conditions, d, ctx)


def matches_random_spec(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    if spec.random_config is None:
        return False
    if spec.cached_random_occurrences:
        return matches_cached_occurrence(spec.cached_random_occurrences, d)
    return matches_random(spec.random_config, d, spec.start_date, ctx)


def matches_computed_spec(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    from .computed import resolve_computed_date

    if spec.computed_config is None or not spec.computed_config.chain:
        return False
    resolved = resolve_computed_date(spec.computed_config, d.year, ctx)
    return resolved is not None and t.is_same_day(resolved, d)


def matches_linked(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    """Occurs ``offset`` days after each occurrence of the linked event."""
    link = spec.linked_event
    if link is None or not link.note_id:
        return False
    if not _in_bounds(spec, d):
        return False
    if not ctx.can_follow(link.note_id):
        logger.warning("Not following link to '{}': chain {} is cyclic or too deep", link.note_id, ctx.chain)
        return False
    source = ctx.lookup(link.note_id)
    if source is None:
        return False
    shifted = t.add_days(d, -link.offset, ctx.calendar)
    return is_occurring(source.tweak(linked_event=None), shifted, ctx.following(link.note_id))


KIND_MATCHERS: Dict[Repeat, MatchFn] = {
    Repeat.NEVER: matches_never,
    Repeat.DAILY: matches_daily,
    Repeat.WEEKLY: matches_weekly,
    Repeat.MONTHLY: matches_monthly,
    Repeat.YEARLY: matches_yearly,
    Repeat.WEEK_OF_MONTH: matches_week_of_month,
    Repeat.SEASONAL: matches_seasonal,
    Repeat.RANGE: matches_range,
    Repeat.MOON: matches_moon,
    Repeat.RANDOM: matches_random_spec,
    Repeat.COMPUTED: matches_computed_spec,
    Repeat.LINKED: matches_linked,
}

_missing = set(Repeat) - set(KIND_MATCHERS)
if _missing:
    raise RuntimeError(f"No matcher for repeat kinds: {sorted(k.value for k in _missing)}")

# kinds whose occurrences stretch over start_date..end_date
SPANNING_KINDS = frozenset({
    Repeat.DAILY, Repeat.WEEKLY, Repeat.MONTHLY, Repeat.YEARLY, Repeat.WEEK_OF_MONTH, Repeat.SEASONAL,
})

# kinds whose occurrence index has a closed form
PERIODIC_KINDS = frozenset({
    Repeat.DAILY, Repeat.WEEKLY, Repeat.MONTHLY, Repeat.YEARLY, Repeat.WEEK_OF_MONTH,
})


# ---------------------------------------------------------
# Shared rules
# ---------------------------------------------------------
def effective_kind(spec: RecurrenceSpec) -> Repeat:
    """A set link overrides whatever ``repeat`` says."""
    link = spec.linked_event
    return Repeat.LINKED if link is not None and link.note_id else spec.repeat


def _in_bounds(spec: RecurrenceSpec, d: CalDate) -> bool:
    if t.compare_days(d, spec.start_date) < 0:
        return False
    if spec.repeat_end_date is not None and t.compare_days(d, spec.repeat_end_date) > 0:
        return False
    return True


def span_days(spec: RecurrenceSpec, ctx: EvalContext) -> int:
    """Extra days each occurrence covers beyond its start (0 for single-day events)."""
    end = spec.end_date
    if end is None or t.is_same_day(spec.start_date, end):
        return 0
    return max(0, t.days_between(spec.start_date, end, ctx.calendar))


def occurrence_index(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> int:
    """1-based number of the occurrence starting on ``d`` (start date is 1)."""
    cal = ctx.calendar
    start = spec.start_date
    kind = effective_kind(spec)
    interval = spec.interval
    if kind is Repeat.DAILY:
        return t.days_between(start, d, cal) // interval + 1
    if kind is Repeat.WEEKLY:
        return (t.days_between(start, d, cal) // t.days_in_week(cal)) // interval + 1
    if kind in (Repeat.MONTHLY, Repeat.WEEK_OF_MONTH):
        return t.months_between(start, d, cal) // interval + 1
    if kind is Repeat.YEARLY:
        return (d.year - start.year) // interval + 1
    if kind is Repeat.RANDOM and spec.cached_random_occurrences:
        return sum(1 for c in spec.cached_random_occurrences if t.compare_days(c, d) <= 0)

    from .occurrences import count_occurrences_up_to

    return count_occurrences_up_to(spec, d, ctx)


def _covering_start(spec: RecurrenceSpec, d: CalDate, span: int, ctx: EvalContext, match: MatchFn) -> Optional[CalDate]:
    for back in range(1, span + 1):
        candidate = t.add_days(d, -back, ctx.calendar)
        if not _in_bounds(spec, candidate):
            continue
        if match(spec, candidate, ctx):
            return candidate
    return None


def _evaluate(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext, *, spans: bool, capped: bool) -> bool:
    kind = effective_kind(spec)
    if kind is not Repeat.MOON and spec.moon_conditions:
        if not matches_moon_conditions(spec.moon_conditions, d, ctx):
            return False
    if kind is Repeat.LINKED:
        if not matches_linked(spec, d, ctx):
            return False
        if capped and spec.max_occurrences > 0:
            if occurrence_index(spec, d, ctx) > spec.max_occurrences:
                return False
        return evaluate_conditions(spec.conditions, d, ctx, spec.start_date)
    if kind is Repeat.NEVER:
        return matches_never(spec, d, ctx) and evaluate_conditions(spec.conditions, d, ctx, spec.start_date)
    if not _in_bounds(spec, d):
        return False

    match = KIND_MATCHERS[kind]
    span = span_days(spec, ctx) if spans and kind in SPANNING_KINDS else 0
    if span > 0 and t.compare_days(d, spec.end_date) <= 0:
        return evaluate_conditions(spec.conditions, d, ctx, spec.start_date)

    occurrence: Optional[CalDate] = d if match(spec, d, ctx) else None
    if occurrence is None and span > 0:
        occurrence = _covering_start(spec, d, span, ctx, match)
    if occurrence is None:
        return False
    if capped and spec.max_occurrences > 0:
        if occurrence_index(spec, occurrence, ctx) > spec.max_occurrences:
            return False
    return evaluate_conditions(spec.conditions, d, ctx, spec.start_date)


def is_occurring(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    """Whether the event is happening on ``d``, including days covered by a multi-day span."""
    return _evaluate(spec, d, ctx, spans=True, capped=True)


def is_occurrence_start(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext, *, capped: bool = True) -> bool:
    """Whether an occurrence begins on ``d``."""
    return _evaluate(spec, d, ctx, spans=False, capped=capped)
