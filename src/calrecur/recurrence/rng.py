"""
calrecur.recurrence.rng
-----------------------
Deterministic "random" occurrences.

A roll is a pure function of ``(seed, year, day_of_year)``: a small linear
congruential hash reduced modulo 2**31 at every step, so the same event
fires on the same days on every machine and in every session.
"""
from __future__ import annotations

from typing import List, Optional

from loguru import logger

from ..core import time as t
from ..core.types import CalDate, RandomConfig, RecurrenceSpec
from .context import EvalContext
from .limits import GENERATION_LIMIT, RANDOM_CACHE_LIMIT

_MASK31 = 0x7FFFFFFF
_LCG_MUL = 1103515245
_LCG_INC = 12345


def seeded_random(seed: int, year: int, day_of_year: int) -> float:
    """Roll in [0, 100) with two decimals."""
    h = abs(int(seed)) or 1
    h = (h * _LCG_MUL + _LCG_INC) & _MASK31
    h = (h + year * 31337) & _MASK31
    h = (h * _LCG_MUL + day_of_year * 7919) & _MASK31
    return (h % 10000) / 100


def passes_interval(config: RandomConfig, date: CalDate, start: CalDate, ctx: EvalContext) -> bool:
    """Weekly checks only start's weekday, monthly only start's day of month."""
    if config.check_interval == "weekly":
        return t.day_of_week(date, ctx.calendar) == t.day_of_week(start, ctx.calendar)
    if config.check_interval == "monthly":
        return date.day == start.day
    return True


def matches_random(config: RandomConfig, date: CalDate, start: CalDate, ctx: EvalContext) -> bool:
    if config.probability <= 0:
        return False
    if config.probability >= 100:
        return True
    if not passes_interval(config, date, start, ctx):
        return False
    roll = seeded_random(config.seed, date.year, t.day_of_year(date, ctx.calendar))
    return roll < config.probability


def matches_cached_occurrence(cached, date: CalDate) -> bool:
    return any(t.is_same_day(c, date) for c in cached)


def generate_random_occurrences(spec: RecurrenceSpec, target_year: int, ctx: EvalContext) -> List[CalDate]:
    """Every seeded hit from the start date through the end of ``target_year``.

    Stops at ``repeat_end_date`` when that comes first. Candidates step by
    the check interval; monthly candidates are re-derived from the start
    date so short months never pull the day of month down for good.
    """
    config = spec.random_config
    if config is None or config.probability <= 0:
        return []
    start = spec.start_date
    if start.year > target_year:
        return []
    cal = ctx.calendar
    range_end: CalDate = t.last_date_of_year(target_year, cal)
    if spec.repeat_end_date is not None and t.compare_days(spec.repeat_end_date, range_end) < 0:
        range_end = spec.repeat_end_date

    out: List[CalDate] = []
    current: Optional[CalDate] = start
    step = 0
    while current is not None and t.compare_days(current, range_end) <= 0:
        if step >= GENERATION_LIMIT:
            logger.debug("Random generation for '{}' stopped after {} candidates", spec.name, step)
            break
        if matches_random(config, current, start, ctx):
            out.append(CalDate(current.year, current.month, current.day))
            if len(out) >= RANDOM_CACHE_LIMIT:
                break
        step += 1
        current = _next_candidate(config, start, current, step, ctx)
    return out


def _next_candidate(
    config: RandomConfig, start: CalDate, current: CalDate, step: int, ctx: EvalContext
) -> Optional[CalDate]:
    cal = ctx.calendar
    if config.check_interval == "weekly":
        nxt = t.add_days(current, t.days_in_week(cal), cal)
    elif config.check_interval == "monthly":
        nxt = t.add_months(start, step, cal)
    else:
        nxt = t.add_days(current, 1, cal)
    # arithmetic that cannot move (no calendar) ends the walk
    return nxt if t.compare_days(nxt, current) > 0 else None
