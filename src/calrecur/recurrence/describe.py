"""
calrecur.recurrence.describe
----------------------------
Short English summaries of a recurrence, e.g. ``"Every 2 weeks, 5 times"``
or ``"Spring equinox → first Sunday after"``.

Names (weekdays, seasons, moons, linked events) come from the calendar and
the event map when available; otherwise positional placeholders are used.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from ..core.types import ComputedConfig, MoonCondition, RangeBit, RangePattern, RecurrenceSpec, Repeat
from .context import EvalContext
from .matchers import phase_window

_ANCHOR_LABELS = {
    "springEquinox": "Spring equinox",
    "summerSolstice": "Summer solstice",
    "autumnEquinox": "Autumn equinox",
    "winterSolstice": "Winter solstice",
}

_MODIFIER_LABELS = {"rising": " (Rising)", "true": " (True)", "fading": " (Fading)"}

_UNITS = {
    Repeat.DAILY: "day",
    Repeat.WEEKLY: "week",
    Repeat.MONTHLY: "month",
    Repeat.YEARLY: "year",
}

_ORDINALS = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", 5: "5th", -1: "last", -2: "2nd-to-last"}


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _fmt_date(d) -> str:
    return f"{d.month + 1}/{d.day}/{d.year}"


def _weekday_name(index: Optional[int], ctx: EvalContext) -> str:
    cal = ctx.calendar
    if index is None:
        return "weekday"
    if cal is not None and 0 <= index < len(cal.weekdays) and cal.weekdays[index].name:
        return cal.weekdays[index].name
    return f"Day {index + 1}"


# ---------------------------------------------------------
# Per-kind phrases
# ---------------------------------------------------------
def describe_range_bit(bit: RangeBit, unit: str) -> Optional[str]:
    if bit is None:
        return None
    if isinstance(bit, tuple):
        lo, hi = bit
        if lo is None and hi is None:
            return f"any {unit}"
        if hi is None:
            return f"{unit}>={lo}"
        if lo is None:
            return f"{unit}<={hi}"
        return f"{unit}={lo}-{hi}"
    return f"{unit}={bit}"


def describe_range_pattern(pattern: Optional[RangePattern]) -> str:
    if pattern is None:
        return "Custom range pattern"
    parts = [
        p for p in (
            describe_range_bit(pattern.year, "year"),
            describe_range_bit(pattern.month, "month"),
            describe_range_bit(pattern.day, "day"),
        ) if p
    ]
    return "Range: " + ", ".join(parts) if parts else "Custom range pattern"


def _overlaps(window, cond: MoonCondition) -> bool:
    start, end = window
    if cond.phase_start <= cond.phase_end:
        return start < cond.phase_end and end > cond.phase_start
    return end > cond.phase_start or start < cond.phase_end


def describe_moon_conditions(conds: Sequence[MoonCondition], ctx: EvalContext) -> str:
    if not conds:
        return "Moon phase event"
    moons = ctx.calendar.moons if ctx.calendar is not None else ()
    parts: List[str] = []
    for cond in conds:
        moon = moons[cond.moon_index] if 0 <= cond.moon_index < len(moons) else None
        name = moon.name if moon is not None and moon.name else f"Moon {cond.moon_index + 1}"
        suffix = _MODIFIER_LABELS.get(cond.modifier, "")
        phases = []
        if moon is not None:
            phases = [p.name for i, p in enumerate(moon.phases) if _overlaps(phase_window(moon, i), cond)]
        label = ", ".join(phases) if phases else "custom phase"
        parts.append(f"{name}: {label}{suffix}")
    return "; ".join(parts)


def describe_computed(config: Optional[ComputedConfig], ctx: EvalContext) -> str:
    if config is None or not config.chain:
        return "Computed event"
    steps: List[str] = []
    for step in config.chain:
        params = step.params or {}
        if step.type == "anchor":
            value = step.value or ""
            if value in _ANCHOR_LABELS:
                steps.append(_ANCHOR_LABELS[value])
            elif value.startswith("event:"):
                steps.append(f"after event {value.split(':', 1)[1]}")
            elif value:
                steps.append(value)
        elif step.type == "firstAfter":
            if step.condition == "moonPhase":
                steps.append(f"first {params.get('phase') or 'full'} moon after")
            elif step.condition == "weekday":
                steps.append(f"first {_weekday_name(params.get('weekday'), ctx)} after")
        elif step.type == "daysAfter":
            steps.append(f"+{params.get('days') or 0} days")
        elif step.type == "weekdayOnOrAfter":
            steps.append(f"{_weekday_name(params.get('weekday'), ctx)} on or after")
    return " → ".join(steps) or "Computed event"


def _describe_week_of_month(spec: RecurrenceSpec, ctx: EvalContext) -> str:
    n = spec.week_number if spec.week_number is not None else 1
    ordinal = _ORDINALS.get(n, "last" if n < 0 else f"{n}th")
    weekday = _weekday_name(spec.weekday if spec.weekday is not None else 0, ctx)
    if spec.interval == 1:
        return f"{ordinal} {weekday} of every month"
    return f"{ordinal} {weekday} every {spec.interval} months"


def _describe_seasonal(spec: RecurrenceSpec, ctx: EvalContext) -> str:
    config = spec.seasonal_config
    index = config.season_index if config is not None else 0
    seasons = ctx.calendar.seasons if ctx.calendar is not None else ()
    name = seasons[index].name if 0 <= index < len(seasons) else f"Season {index + 1}"
    trigger = config.trigger if config is not None else "entire"
    if trigger == "firstDay":
        return f"First day of {name}"
    if trigger == "lastDay":
        return f"Last day of {name}"
    return f"Every day during {name}"


def _describe_linked(spec: RecurrenceSpec, ctx: EvalContext) -> str:
    link = spec.linked_event
    source = ctx.lookup(link.note_id)
    name = source.name if source is not None and source.name else "unknown event"
    if link.offset == 0:
        return f"Same day as {name}"
    days = _plural(abs(link.offset), "day")
    return f"{days} after {name}" if link.offset > 0 else f"{days} before {name}"


# ---------------------------------------------------------
# Entry point
# ---------------------------------------------------------
def describe_recurrence(spec: RecurrenceSpec, ctx: EvalContext) -> str:
    link = spec.linked_event
    kind = spec.repeat
    if link is not None and link.note_id:
        text = _describe_linked(spec, ctx)
    elif kind is Repeat.NEVER or kind is Repeat.LINKED:
        return "Does not repeat"
    elif kind is Repeat.COMPUTED:
        text = describe_computed(spec.computed_config, ctx)
    elif kind is Repeat.MOON:
        text = describe_moon_conditions(spec.moon_conditions, ctx)
    elif kind is Repeat.RANDOM:
        config = spec.random_config
        probability = config.probability if config is not None else 10
        interval = config.check_interval if config is not None else "daily"
        unit = {"weekly": "week", "monthly": "month"}.get(interval, "day")
        text = f"{probability:g}% chance each {unit}"
    elif kind is Repeat.RANGE:
        text = describe_range_pattern(spec.range_pattern)
    elif kind is Repeat.WEEK_OF_MONTH:
        text = _describe_week_of_month(spec, ctx)
    elif kind is Repeat.SEASONAL:
        text = _describe_seasonal(spec, ctx)
    else:
        unit = _UNITS[kind]
        text = f"Every {unit}" if spec.interval == 1 else f"Every {spec.interval} {unit}s"
        if spec.moon_conditions:
            text += f" ({describe_moon_conditions(spec.moon_conditions, ctx)})"

    cap = spec.max_occurrences
    if cap > 0:
        text += ", once" if cap == 1 else f", {cap} times"
    if spec.repeat_end_date is not None:
        text += f" until {_fmt_date(spec.repeat_end_date)}"
    return text
