"""
calrecur.recurrence.occurrences
-------------------------------
Enumerates occurrence start dates inside a date range.

Periodic kinds jump straight to the first aligned candidate and step by their
natural unit; week-of-month steps month by month; computed events resolve one
candidate per year; everything else scans day by day. Every candidate is
re-checked with the matcher, so enumeration and ``is_occurring`` always agree.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from ..core import time as t
from ..core.types import CalDate, RecurrenceSpec, Repeat
from .context import EvalContext
from .limits import MONTH_STEP_LIMIT, SCAN_LIMIT
from .matchers import (
    PERIODIC_KINDS,
    effective_kind,
    is_occurrence_start,
    occurrence_index,
    target_week_number,
    target_weekday,
)

EnumerateFn = Callable[[RecurrenceSpec, CalDate, CalDate, int, EvalContext], List[CalDate]]


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def event_window(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate) -> Optional[Tuple[CalDate, CalDate]]:
    """The part of the range the event can occupy at all."""
    lo = max(spec.start_date, range_start)
    hi = range_end
    if spec.repeat_end_date is not None:
        hi = min(hi, spec.repeat_end_date)
    if t.compare_days(lo, hi) > 0:
        return None
    return CalDate(lo.year, lo.month, lo.day), CalDate(hi.year, hi.month, hi.day)


def _over_cap(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> bool:
    return spec.max_occurrences > 0 and occurrence_index(spec, d, ctx) > spec.max_occurrences


# ---------------------------------------------------------
# Per-kind enumerators
# ---------------------------------------------------------
def _never(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext) -> List[CalDate]:
    d = spec.start_date
    if t.compare_days(d, range_start) < 0 or t.compare_days(d, range_end) > 0:
        return []
    return [d] if is_occurrence_start(spec, d, ctx) else []


def nth_candidate(spec: RecurrenceSpec, k: int, ctx: EvalContext) -> CalDate:
    """Start of the k-th (0-based) periodic step, always derived from the start date."""
    cal = ctx.calendar
    start = spec.start_date
    step = k * spec.interval
    if spec.repeat is Repeat.DAILY:
        return t.add_days(start, step, cal)
    if spec.repeat is Repeat.WEEKLY:
        return t.add_days(start, step * t.days_in_week(cal), cal)
    if spec.repeat is Repeat.MONTHLY:
        return t.add_months(start, step, cal)
    return t.add_years(start, step, cal)


def _first_step(spec: RecurrenceSpec, lo: CalDate, ctx: EvalContext) -> int:
    cal = ctx.calendar
    start = spec.start_date
    kind = spec.repeat
    if kind is Repeat.DAILY:
        k = _ceil_div(t.days_between(start, lo, cal), spec.interval)
    elif kind is Repeat.WEEKLY:
        k = _ceil_div(t.days_between(start, lo, cal), spec.interval * t.days_in_week(cal))
    elif kind is Repeat.MONTHLY:
        k = _ceil_div(t.months_between(start, lo, cal), spec.interval)
    else:
        k = _ceil_div(lo.year - start.year, spec.interval)
    return max(0, k)


def _weeks_skip_days(ctx: EvalContext) -> bool:
    """Whether some days do not advance the week, so weekly steps cannot be added blindly."""
    cal = ctx.calendar
    if cal is None:
        return False
    return any(
        getattr(m, "type", "standard") == "intercalary" or getattr(m, "starting_weekday", None) is not None
        for m in cal.months
    )


def _periodic(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext) -> List[CalDate]:
    window = event_window(spec, range_start, range_end)
    if window is None:
        return []
    lo, hi = window
    if spec.repeat is Repeat.WEEKLY and _weeks_skip_days(ctx):
        return _scan(spec, range_start, range_end, max_count, ctx)

    out: List[CalDate] = []
    k = _first_step(spec, lo, ctx)
    prev: Optional[CalDate] = None
    for _ in range(SCAN_LIMIT):
        d = nth_candidate(spec, k, ctx)
        k += 1
        if prev is not None and t.compare_days(d, prev) <= 0:
            # arithmetic stopped moving
            break
        prev = d
        if d.day < 1:
            # zero-length month (e.g. a festival outside leap years)
            continue
        if t.compare_days(d, lo) < 0:
            continue
        if t.compare_days(d, hi) > 0:
            break
        if _over_cap(spec, d, ctx):
            break
        if is_occurrence_start(spec, d, ctx, capped=False):
            out.append(d)
            if len(out) >= max_count:
                break
    return out


def find_weekday_in_month(year: int, month: int, weekday: int, week_number: int, ctx: EvalContext) -> Optional[int]:
    """Day of the ``week_number``-th ``weekday`` of a month; negative counts from the end."""
    cal = ctx.calendar
    days = t.last_day_of_month(CalDate(year, month, 1), cal)
    hits = [day for day in range(1, days + 1) if t.day_of_week(CalDate(year, month, day), cal) == weekday]
    if not hits or week_number == 0:
        return None
    idx = week_number - 1 if week_number > 0 else len(hits) + week_number
    if 0 <= idx < len(hits):
        return hits[idx]
    return None


def _week_of_month(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext) -> List[CalDate]:
    window = event_window(spec, range_start, range_end)
    if window is None:
        return []
    lo, hi = window
    cal = ctx.calendar
    start = spec.start_date
    weekday = target_weekday(spec, ctx)
    week_number = target_week_number(spec, ctx)
    first_of_start_month = CalDate(start.year, start.month, 1)

    out: List[CalDate] = []
    k = max(0, _ceil_div(t.months_between(start, lo, cal), spec.interval) - 1)
    for _ in range(MONTH_STEP_LIMIT):
        month_start = t.add_months(first_of_start_month, k * spec.interval, cal)
        k += 1
        if t.compare_days(month_start, hi) > 0:
            break
        day = find_weekday_in_month(month_start.year, month_start.month, weekday, week_number, ctx)
        if day is None:
            continue
        d = CalDate(month_start.year, month_start.month, day)
        if t.compare_days(d, lo) < 0:
            continue
        if t.compare_days(d, hi) > 0:
            break
        if _over_cap(spec, d, ctx):
            break
        if is_occurrence_start(spec, d, ctx, capped=False):
            out.append(d)
            if len(out) >= max_count:
                break
    return out


def _scan(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext) -> List[CalDate]:
    window = event_window(spec, range_start, range_end)
    if window is None:
        return []
    lo, hi = window
    cal = ctx.calendar
    cap = spec.max_occurrences
    periodic = spec.repeat in PERIODIC_KINDS
    seen = 0
    if cap > 0 and not periodic and t.compare_days(lo, spec.start_date) > 0:
        seen = count_occurrences_up_to(spec, t.add_days(lo, -1, cal), ctx)

    out: List[CalDate] = []
    d = lo
    for _ in range(SCAN_LIMIT):
        if t.compare_days(d, hi) > 0:
            break
        if is_occurrence_start(spec, d, ctx, capped=False):
            seen += 1
            if cap > 0 and (occurrence_index(spec, d, ctx) if periodic else seen) > cap:
                break
            out.append(d)
            if len(out) >= max_count:
                break
        nxt = t.add_days(d, 1, cal)
        if t.compare_days(nxt, d) <= 0:
            break
        d = nxt
    else:
        logger.debug("Scan for '{}' hit the {}-day limit at {}", spec.name, SCAN_LIMIT, d)
    return out


def _random(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext) -> List[CalDate]:
    if spec.random_config is None:
        return []
    cache = spec.cached_random_occurrences
    if not cache:
        return _scan(spec, range_start, range_end, max_count, ctx)
    ordered = sorted(cache)
    if spec.max_occurrences > 0:
        ordered = ordered[:spec.max_occurrences]
    out: List[CalDate] = []
    for d in ordered:
        if t.compare_days(d, range_start) < 0 or t.compare_days(d, range_end) > 0:
            continue
        if is_occurrence_start(spec, d, ctx, capped=False):
            out.append(d)
            if len(out) >= max_count:
                break
    return out


def _computed(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext) -> List[CalDate]:
    from .computed import computed_occurrences

    return computed_occurrences(spec, range_start, range_end, max_count, ctx)


def _linked(spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext) -> List[CalDate]:
    link = spec.linked_event
    if link is None or not link.note_id:
        return []
    window = event_window(spec, range_start, range_end)
    if window is None:
        return []
    if not ctx.can_follow(link.note_id):
        logger.warning("Not following link to '{}': chain {} is cyclic or too deep", link.note_id, ctx.chain)
        return []
    source = ctx.lookup(link.note_id)
    if source is None:
        return []
    cal = ctx.calendar
    lo, hi = window
    cap = spec.max_occurrences
    seen = 0
    if cap > 0 and t.compare_days(lo, spec.start_date) > 0:
        seen = count_occurrences_up_to(spec, t.add_days(lo, -1, cal), ctx)
    # conditions can reject source dates, so max_count bounds the output only
    filtered = bool(spec.conditions or spec.moon_conditions)
    found = occurrences_in_range(
        source.tweak(linked_event=None),
        t.add_days(lo, -link.offset, cal),
        t.add_days(hi, -link.offset, cal),
        SCAN_LIMIT if filtered else max_count,
        ctx.following(link.note_id),
    )
    out: List[CalDate] = []
    for occ in found:
        d = t.add_days(occ, link.offset, cal)
        if t.compare_days(d, lo) < 0 or t.compare_days(d, hi) > 0:
            continue
        if filtered and not is_occurrence_start(spec, d, ctx, capped=False):
            continue
        seen += 1
        if cap > 0 and seen > cap:
            break
        out.append(d)
        if len(out) >= max_count:
            break
    return out


ENUMERATORS: Dict[Repeat, EnumerateFn] = {
    Repeat.NEVER: _never,
    Repeat.DAILY: _periodic,
    Repeat.WEEKLY: _periodic,
    Repeat.MONTHLY: _periodic,
    Repeat.YEARLY: _periodic,
    Repeat.WEEK_OF_MONTH: _week_of_month,
    Repeat.SEASONAL: _scan,
    Repeat.RANGE: _scan,
    Repeat.MOON: _scan,
    Repeat.RANDOM: _random,
    Repeat.COMPUTED: _computed,
    Repeat.LINKED: _linked,
}

_missing = set(Repeat) - set(ENUMERATORS)
if _missing:
    raise RuntimeError(f"No enumerator for repeat kinds: {sorted(k.value for k in _missing)}")


# ---------------------------------------------------------
# Entry points
# ---------------------------------------------------------
def occurrences_in_range(
    spec: RecurrenceSpec, range_start: CalDate, range_end: CalDate, max_count: int, ctx: EvalContext
) -> List[CalDate]:
    """Ascending occurrence start dates within ``[range_start, range_end]``, at most ``max_count``."""
    if max_count <= 0 or t.compare_days(range_start, range_end) > 0:
        return []
    return ENUMERATORS[effective_kind(spec)](spec, range_start, range_end, max_count, ctx)


def count_occurrences_up_to(spec: RecurrenceSpec, d: CalDate, ctx: EvalContext) -> int:
    """Occurrences from the start date through ``d`` inclusive, ignoring the cap."""
    if t.compare_days(d, spec.start_date) < 0:
        return 0
    uncapped = spec.tweak(max_occurrences=0)
    return len(occurrences_in_range(uncapped, spec.start_date, d, SCAN_LIMIT, ctx))
