"""
calrecur.recurrence.computed
----------------------------
Resolves a computed chain to one date per calendar year.

A chain folds left to right over a running date: an ``anchor`` step sets it
(an equinox or solstice, a season boundary, or another event's date), then
``firstAfter``, ``daysAfter`` and ``weekdayOnOrAfter`` move it forward. Any
step that cannot resolve aborts the chain. A per-year override replaces the
chain outright.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from loguru import logger

from ..core import time as t
from ..core.types import CalDate, ComputedConfig, ComputedStep, RecurrenceSpec, Repeat
from . import seasons as s
from .context import EvalContext
from .fields import moon_phase_info
from .limits import FIRST_AFTER_SEARCH_DAYS, MONTH_STEP_LIMIT
from .matchers import is_occurrence_start
from .occurrences import event_window, occurrences_in_range

NAMED_ANCHORS = ("springEquinox", "summerSolstice", "autumnEquinox", "winterSolstice")


def _int_param(params: Mapping[str, Any], key: str, default: int = 0) -> int:
    try:
        return int(params.get(key, default))
    except (TypeError, ValueError):
        return default


def _season_index_suffix(value: str) -> Optional[int]:
    try:
        return int(value.split(":", 1)[1])
    except (IndexError, ValueError):
        return None


def resolve_anchor(value: Optional[str], year: int, ctx: EvalContext) -> Optional[CalDate]:
    cal = ctx.calendar
    if cal is None or not value:
        return None
    seasons = cal.seasons
    if value in ("springEquinox", "autumnEquinox"):
        idx = s.named_season(seasons, "spring" if value == "springEquinox" else "autumn")
        if idx is None:
            return None
        return t.date_from_day_of_year(seasons[idx].day_start, year, cal)
    if value in ("summerSolstice", "winterSolstice"):
        pinned = (cal.daylight or {}).get(value)
        if pinned:
            return t.date_from_day_of_year(pinned, year, cal)
        idx = s.named_season(seasons, "summer" if value == "summerSolstice" else "winter")
        if idx is None:
            return None
        season = seasons[idx]
        mid = s.midpoint(season.day_start, season.day_end, t.days_in_year(year, cal))
        return t.date_from_day_of_year(mid, year, cal)
    if value.startswith("seasonStart:") or value.startswith("seasonEnd:"):
        idx = _season_index_suffix(value)
        if idx is None or not 0 <= idx < len(seasons):
            return None
        season = seasons[idx]
        doy = season.day_start if value.startswith("seasonStart:") else season.day_end
        return t.date_from_day_of_year(doy, year, cal)
    if value.startswith("event:"):
        return _resolve_event_anchor(value.split(":", 1)[1], year, ctx)
    return None


def _resolve_event_anchor(note_id: str, year: int, ctx: EvalContext) -> Optional[CalDate]:
    if not ctx.can_follow(note_id):
        logger.warning("Not following anchor 'event:{}': chain {} is cyclic or too deep", note_id, ctx.chain)
        return None
    source = ctx.lookup(note_id)
    if source is None:
        return None
    inner = ctx.following(note_id)
    if source.repeat is Repeat.COMPUTED and source.computed_config is not None:
        return resolve_computed_date(source.computed_config, year, inner)
    cal = ctx.calendar
    found = occurrences_in_range(
        source, CalDate(year, 0, 1), t.last_date_of_year(year, cal), 1, inner
    )
    return found[0] if found else None


def resolve_first_after(start: CalDate, step: ComputedStep, ctx: EvalContext) -> Optional[CalDate]:
    """First day strictly after ``start`` satisfying the step's condition."""
    cal = ctx.calendar
    params = step.params or {}
    condition = step.condition
    current = start
    for _ in range(FIRST_AFTER_SEARCH_DAYS):
        current = t.add_days(current, 1, cal)
        if condition == "moonPhase":
            moons = cal.moons if cal is not None else ()
            moon_index = _int_param(params, "moon")
            wanted = str(params.get("phase") or "full").lower()
            if not 0 <= moon_index < len(moons):
                return None
            info = moon_phase_info(current, moon_index, ctx)
            if info is None:
                continue
            if wanted in moons[moon_index].phases[info.phase_index].name.lower():
                return current
        elif condition == "weekday":
            if t.day_of_week(current, cal) == _int_param(params, "weekday"):
                return current
        else:
            return None
    return None


def weekday_on_or_after(start: CalDate, weekday: int, ctx: EvalContext) -> CalDate:
    cal = ctx.calendar
    current = t.day_of_week(start, cal)
    if current == weekday:
        return start
    return t.add_days(start, (weekday - current) % t.days_in_week(cal), cal)


def resolve_computed_date(config: ComputedConfig, year: int, ctx: EvalContext) -> Optional[CalDate]:
    if not config.chain:
        return None
    override = config.year_overrides.get(year)
    if override is not None:
        return CalDate(year, override[0], override[1])
    if ctx.calendar is None:
        return None

    current: Optional[CalDate] = None
    for step in config.chain:
        if step.type == "anchor":
            current = resolve_anchor(step.value, year, ctx)
        elif current is None:
            return None
        elif step.type == "firstAfter":
            current = resolve_first_after(current, step, ctx)
        elif step.type == "daysAfter":
            current = t.add_days(current, _int_param(step.params or {}, "days"), ctx.calendar)
        elif step.type == "weekdayOnOrAfter":
            current = weekday_on_or_after(current, _int_param(step.params or {}, "weekday"), ctx)
        else:
            logger.debug("Skipping unknown computed step '{}'", step.type)
        if current is None:
            return None
    return current


def computed_occurrences(
    spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext
) -> List[CalDate]:
    """One candidate per year. With a cap, counting starts from the start year."""
    config = spec.computed_config
    if config is None or not config.chain:
        return []
    window = event_window(spec, range_start, range_end)
    if window is None:
        return []
    lo, hi = window
    cap = spec.max_occurrences
    first_year = spec.start_date.year if cap > 0 else lo.year
    last_year = min(hi.year, first_year + MONTH_STEP_LIMIT)

    out: List[CalDate] = []
    seen = 0
    for year in range(first_year, last_year + 1):
        resolved = resolve_computed_date(config, year, ctx)
        if resolved is None or resolved.year != year:
            continue
        if not is_occurrence_start(spec, resolved, ctx, capped=False):
            continue
        seen += 1
        if cap > 0 and seen > cap:
            break
        if t.compare_days(resolved, lo) >= 0 and t.compare_days(resolved, hi) <= 0:
            out.append(resolved)
            if len(out) >= max_count:
                break
    return out
