from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from .core.engine import CalendarModel, CalendarRegistry
from .core.records import date_from_dict
from .core.types import CalDate, ComputedConfig, RecurrenceSpec
from .calendars.factory import calendar_from_dict
from .calendars.factory import make_calendar as _make_calendar
from .calendars.model import CalendarSpec
from .recurrence import computed as _computed
from .recurrence import describe as _describe
from .recurrence import matchers as _matchers
from .recurrence import occurrences as _occurrences
from .recurrence import rng as _rng
from .recurrence.context import EvalContext
from .recurrence import records as _records

CalendarArg = Union[CalendarModel, str, None]
EventsArg = Optional[Mapping[str, Union[RecurrenceSpec, Mapping[str, Any]]]]

_registry: Optional[CalendarRegistry] = None

def set_registry(reg: CalendarRegistry) -> None:
    global _registry
    _registry = reg

def _reg() -> CalendarRegistry:
    if _registry is None:
        raise RuntimeError("Calendar registry not initialized")
    return _registry

def _calendar(calendar: CalendarArg) -> Optional[CalendarModel]:
    return _reg().get(calendar) if isinstance(calendar, str) else calendar

def _ctx(calendar: CalendarArg, events: EventsArg) -> EvalContext:
    """Resolve a calendar name and normalise the event map (records are parsed)."""
    cal = _calendar(calendar)
    resolved: Dict[str, RecurrenceSpec] = {}
    for note_id, ev in (events or {}).items():
        resolved[note_id] = ev if isinstance(ev, RecurrenceSpec) else _records.spec_from_dict(ev, cal)
    return EvalContext(calendar=cal, events=resolved)

# ============================================================
# Recurrence queries
# ============================================================

def is_occurring(spec: RecurrenceSpec, date: CalDate, *, calendar: CalendarArg = None, events: EventsArg = None) -> bool:
    return _matchers.is_occurring(spec, date, _ctx(calendar, events))

def occurrences_in_range(
    spec: RecurrenceSpec,
    start: CalDate,
    end: CalDate,
    max_count: int = 100,
    *,
    calendar: CalendarArg = None,
    events: EventsArg = None,
) -> List[CalDate]:
    return _occurrences.occurrences_in_range(spec, start, end, max_count, _ctx(calendar, events))

def resolve_computed_date(
    config: ComputedConfig, year: int, *, calendar: CalendarArg = None, events: EventsArg = None
) -> Optional[CalDate]:
    return _computed.resolve_computed_date(config, year, _ctx(calendar, events))

def describe_recurrence(spec: RecurrenceSpec, *, calendar: CalendarArg = None, events: EventsArg = None) -> str:
    return _describe.describe_recurrence(spec, _ctx(calendar, events))

def generate_random_occurrences(spec: RecurrenceSpec, target_year: int, *, calendar: CalendarArg = None) -> List[CalDate]:
    """Seeded hits a note store can keep as ``cached_random_occurrences``."""
    return _rng.generate_random_occurrences(spec, target_year, _ctx(calendar, None))

# ============================================================
# Calendars
# ============================================================

def list_calendars() -> List[str]:
    return _reg().list()

def get_calendar(name: str) -> CalendarModel:
    return _reg().get(name)

def calendar_info(name: str) -> Dict[str, Any]:
    return _reg().get(name).info()

def make_calendar(spec: CalendarSpec) -> CalendarModel:
    return _make_calendar(spec)

def register_calendar(name: str, calendar: CalendarModel, *, overwrite: bool = False) -> None:
    _reg().register(name, calendar, overwrite=overwrite)

# ============================================================
# Records
# ============================================================

def spec_from_dict(record: Mapping[str, Any], *, calendar: CalendarArg = None) -> RecurrenceSpec:
    """Parse a note record; with a calendar, its dates must exist on it."""
    return _records.spec_from_dict(record, _calendar(calendar))

__all__ = [
    "is_occurring",
    "occurrences_in_range",
    "resolve_computed_date",
    "describe_recurrence",
    "generate_random_occurrences",
    "list_calendars",
    "get_calendar",
    "calendar_info",
    "make_calendar",
    "register_calendar",
    "calendar_from_dict",
    "spec_from_dict",
    "date_from_dict",
]
