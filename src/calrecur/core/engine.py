from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .errors import UnknownCalendarError
from .types import MoonPhaseInfo


class CalendarModel(Protocol):
    """Calendar topology consumed by the recurrence engine.

    Years passed to the methods below are *internal* years
    (display year minus ``year_zero``).
    """
    months: Sequence[Any]
    weekdays: Sequence[Any]
    seasons: Sequence[Any]
    moons: Sequence[Any]
    eras: Sequence[Any]
    cycles: Sequence[Any]
    daylight: Mapping[str, int]

    @property
    def days_in_week(self) -> int: ...
    @property
    def year_zero(self) -> int: ...
    @property
    def is_monthless(self) -> bool: ...
    @property
    def seconds_per_day(self) -> int: ...
    @property
    def hours_per_day(self) -> int: ...

    def info(self) -> Dict[str, Any]: ...
    def get_days_in_month(self, month: int, year: int) -> int: ...
    def get_days_in_year(self, year: int) -> int: ...
    def day_of_week(self, year: int, month: int, day_of_month: int) -> int: ...
    def get_moon_phase(self, moon_index: int, year: int, month: int, day_of_month: int, hour: int = 12) -> Optional[MoonPhaseInfo]: ...
    def components_to_time(self, year: int, month: int, day_of_month: int, hour: int = 0, minute: int = 0, second: int = 0) -> int: ...
    def time_to_components(self, time: int) -> Dict[str, int]: ...


@dataclass
class CalendarRegistry:
    _calendars: Dict[str, CalendarModel]

    def get(self, name: str) -> CalendarModel:
        if name not in self._calendars:
            raise UnknownCalendarError(f"Unknown calendar '{name}'. Available: {sorted(self._calendars)}")
        return self._calendars[name]

    def list(self) -> List[str]:
        return sorted(self._calendars.keys())

    def register(self, name: str, calendar: CalendarModel, *, overwrite: bool = False) -> None:
        if (not overwrite) and (name in self._calendars):
            raise KeyError(f"Calendar '{name}' already exists. Use overwrite=True to replace.")
        self._calendars[name] = calendar
