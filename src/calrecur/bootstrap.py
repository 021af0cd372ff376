from __future__ import annotations
from calrecur.core.engine import CalendarRegistry
from calrecur.calendars.specs import ALL_SPECS
from calrecur.calendars.factory import make_calendar

def build_registry() -> CalendarRegistry:
    calendars = {}
    for name, spec in ALL_SPECS.items():
        calendars[name] = make_calendar(spec)
    return CalendarRegistry(calendars)
