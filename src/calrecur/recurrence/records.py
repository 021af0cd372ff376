"""
calrecur.recurrence.records
---------------------------
Builds immutable RecurrenceSpec objects from host-written note records.

Records use the camelCase layout the host persists (``startDate``,
``repeatInterval``, ``rangePattern`` and so on). Range bits arrive as JSON
lists and become tuples; ``yearOverrides`` keys arrive as strings and become
ints.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from ..core import time as t
from ..core.engine import CalendarModel
from ..core.errors import RecordFormatError
from ..core.records import as_int, as_number, date_from_dict, opt_date, opt_int, require
from ..core.types import (
    ComputedConfig,
    ComputedStep,
    Condition,
    LinkedEvent,
    MoonCondition,
    RandomConfig,
    RangeBit,
    RangePattern,
    RecurrenceSpec,
    Repeat,
    SeasonalConfig,
)

OPERATORS = ("==", "!=", ">=", "<=", ">", "<", "%")
MOON_MODIFIERS = ("any", "rising", "true", "fading")
CHECK_INTERVALS = ("daily", "weekly", "monthly")
SEASON_TRIGGERS = ("entire", "firstDay", "lastDay")


def _choice(value: Any, allowed: Tuple[str, ...], where: str) -> str:
    if value not in allowed:
        raise RecordFormatError(f"{where}: expected one of {', '.join(allowed)}, got {value!r}")
    return value


def _repeat(value: Any) -> Repeat:
    try:
        return Repeat(value or "never")
    except ValueError:
        raise RecordFormatError(f"repeat: unknown kind {value!r}") from None


def _moon_condition(data: Mapping[str, Any], where: str) -> MoonCondition:
    return MoonCondition(
        moon_index=opt_int(data, "moonIndex", where, 0),
        phase_start=as_number(require(data, "phaseStart", where), f"{where}.phaseStart"),
        phase_end=as_number(require(data, "phaseEnd", where), f"{where}.phaseEnd"),
        modifier=_choice(data.get("modifier") or "any", MOON_MODIFIERS, f"{where}.modifier"),
    )


def _random_config(data: Optional[Mapping[str, Any]]) -> Optional[RandomConfig]:
    if data is None:
        return None
    return RandomConfig(
        seed=opt_int(data, "seed", "randomConfig", 0),
        probability=as_number(data.get("probability", 10), "randomConfig.probability"),
        check_interval=_choice(data.get("checkInterval") or "daily", CHECK_INTERVALS, "randomConfig.checkInterval"),
    )


def _seasonal_config(data: Optional[Mapping[str, Any]]) -> Optional[SeasonalConfig]:
    if data is None:
        return None
    return SeasonalConfig(
        season_index=opt_int(data, "seasonIndex", "seasonalConfig", 0),
        trigger=_choice(data.get("trigger") or "entire", SEASON_TRIGGERS, "seasonalConfig.trigger"),
    )


def _range_bit(value: Any, where: str) -> RangeBit:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise RecordFormatError(f"{where}: a range needs exactly [min, max], got {value!r}")
        lo, hi = value
        return (
            None if lo is None else as_int(lo, f"{where}[0]"),
            None if hi is None else as_int(hi, f"{where}[1]"),
        )
    return as_int(value, where)


def _range_pattern(data: Optional[Mapping[str, Any]]) -> Optional[RangePattern]:
    if data is None:
        return None
    return RangePattern(
        year=_range_bit(data.get("year"), "rangePattern.year"),
        month=_range_bit(data.get("month"), "rangePattern.month"),
        day=_range_bit(data.get("day"), "rangePattern.day"),
    )


def _computed_config(data: Optional[Mapping[str, Any]]) -> Optional[ComputedConfig]:
    if data is None:
        return None
    chain = []
    for i, step in enumerate(data.get("chain") or ()):
        where = f"computedConfig.chain[{i}]"
        chain.append(ComputedStep(
            type=str(require(step, "type", where)),
            value=step.get("value"),
            condition=step.get("condition"),
            params=dict(step.get("params") or {}),
        ))
    overrides = {}
    for year, date in (data.get("yearOverrides") or {}).items():
        where = f"computedConfig.yearOverrides[{year}]"
        try:
            key = int(year)
        except ValueError:
            raise RecordFormatError(f"{where}: year key must be an integer") from None
        overrides[key] = (
            as_int(require(date, "month", where), f"{where}.month"),
            as_int(require(date, "day", where), f"{where}.day"),
        )
    return ComputedConfig(chain=tuple(chain), year_overrides=overrides)


def _linked_event(data: Optional[Mapping[str, Any]]) -> Optional[LinkedEvent]:
    if data is None or not data.get("noteId"):
        return None
    return LinkedEvent(note_id=str(data["noteId"]), offset=opt_int(data, "offset", "linkedEvent", 0))


def _condition(data: Mapping[str, Any], where: str) -> Condition:
    value = require(data, "value", where)
    if not isinstance(value, bool):
        value = as_number(value, f"{where}.value")
    return Condition(
        field=str(require(data, "field", where)),
        op=_choice(require(data, "op", where), OPERATORS, f"{where}.op"),
        value=value,
        value2=opt_int(data, "value2", where),
        offset=opt_int(data, "offset", where),
    )


def spec_from_dict(record: Mapping[str, Any], calendar: Optional[CalendarModel] = None) -> RecurrenceSpec:
    """Build a RecurrenceSpec from a persisted note record.

    Raises RecordFormatError when a field is missing or has the wrong shape,
    or, when ``calendar`` is given, when a date does not exist on it.
    Unknown keys are ignored.
    """
    if not isinstance(record, Mapping):
        raise RecordFormatError(f"note: expected an object, got {type(record).__name__}")
    try:
        spec = RecurrenceSpec(
            start_date=date_from_dict(require(record, "startDate", "note"), "startDate"),
            repeat=_repeat(record.get("repeat")),
            end_date=opt_date(record, "endDate", "note"),
            repeat_end_date=opt_date(record, "repeatEndDate", "note"),
            repeat_interval=opt_int(record, "repeatInterval", "note", 1),
            max_occurrences=opt_int(record, "maxOccurrences", "note", 0),
            moon_conditions=tuple(
                _moon_condition(c, f"moonConditions[{i}]") for i, c in enumerate(record.get("moonConditions") or ())
            ),
            random_config=_random_config(record.get("randomConfig")),
            seasonal_config=_seasonal_config(record.get("seasonalConfig")),
            weekday=opt_int(record, "weekday", "note"),
            week_number=opt_int(record, "weekNumber", "note"),
            range_pattern=_range_pattern(record.get("rangePattern")),
            computed_config=_computed_config(record.get("computedConfig")),
            linked_event=_linked_event(record.get("linkedEvent")),
            conditions=tuple(_condition(c, f"conditions[{i}]") for i, c in enumerate(record.get("conditions") or ())),
            cached_random_occurrences=tuple(
                date_from_dict(d, f"cachedRandomOccurrences[{i}]")
                for i, d in enumerate(record.get("cachedRandomOccurrences") or ())
            ),
            name=str(record.get("name") or ""),
        )
    except RecordFormatError:
        raise
    except (TypeError, AttributeError) as exc:
        raise RecordFormatError(f"note '{record.get('name', '')}': {exc}") from exc
    if calendar is not None:
        _check_dates(spec, calendar)
    return spec


def _check_dates(spec: RecurrenceSpec, calendar: CalendarModel) -> None:
    for key, d in (("startDate", spec.start_date), ("endDate", spec.end_date), ("repeatEndDate", spec.repeat_end_date)):
        if d is not None and not t.is_valid_date(d, calendar):
            raise RecordFormatError(f"{key}: {d} does not exist on this calendar")
