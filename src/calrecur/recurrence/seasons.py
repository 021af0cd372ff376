"""
Season lookups on 1-based days of the year.

Season ranges are inclusive; a range whose start lies after its end wraps
over the year boundary.
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

_NAME_PATTERNS = {
    "spring": re.compile(r"spring", re.I),
    "summer": re.compile(r"summer", re.I),
    "autumn": re.compile(r"autumn|fall", re.I),
    "winter": re.compile(r"winter", re.I),
}
# positions in a standard four-season calendar
_FALLBACK_INDEX = {"spring": 0, "summer": 1, "autumn": 2, "winter": 3}


def in_season_range(doy: int, start: int, end: int) -> bool:
    if start <= end:
        return start <= doy <= end
    return doy >= start or doy <= end


def season_index(doy: int, seasons: Sequence) -> int:
    """Index of the season containing ``doy``; 0 when none does."""
    for i, s in enumerate(seasons):
        if in_season_range(doy, s.day_start, s.day_end):
            return i
    return 0


def season_length(season, year_days: int) -> int:
    if season.day_start <= season.day_end:
        return season.day_end - season.day_start + 1
    return year_days - season.day_start + season.day_end + 1


def day_in_season(doy: int, season, year_days: int) -> int:
    """0-based offset of ``doy`` from the season start, wrap-aware."""
    if doy >= season.day_start:
        return doy - season.day_start
    return year_days - season.day_start + doy


def season_percent(doy: int, seasons: Sequence, year_days: int) -> int:
    season = seasons[season_index(doy, seasons)]
    # round half up, not Python's banker's rounding
    return int(day_in_season(doy, season, year_days) / season_length(season, year_days) * 100 + 0.5)


def season_day(doy: int, seasons: Sequence, year_days: int) -> int:
    return day_in_season(doy, seasons[season_index(doy, seasons)], year_days) + 1


def midpoint(start: int, end: int, year_days: int) -> int:
    if start <= end:
        return (start + end) // 2
    length = year_days - start + end + 1
    return (start - 1 + length // 2) % year_days + 1


def named_season(seasons: Sequence, kind: str) -> Optional[int]:
    """Index of the spring/summer/autumn/winter season, by name then by position."""
    pattern = _NAME_PATTERNS[kind]
    for i, s in enumerate(seasons):
        if pattern.search(s.name or ""):
            return i
    if len(seasons) >= 4:
        return _FALLBACK_INDEX[kind]
    return None


def is_solstice_or_equinox(doy: int, seasons: Sequence, year_days: int, kind: str) -> bool:
    """``kind`` is ``longest``, ``shortest``, ``spring`` or ``autumn``."""
    if kind in ("longest", "shortest"):
        idx = named_season(seasons, "summer" if kind == "longest" else "winter")
        if idx is None:
            return False
        s = seasons[idx]
        return doy == midpoint(s.day_start, s.day_end, year_days)
    if kind in ("spring", "autumn"):
        idx = named_season(seasons, kind)
        if idx is None:
            return False
        return doy == seasons[idx].day_start
    return False
