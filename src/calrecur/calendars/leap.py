"""
calrecur.calendars.leap
-----------------------
Leap-year rules expressed as voting interval patterns.

A pattern such as ``"400,!100,4"`` is a list of intervals; each interval
that divides ``year - offset`` votes *allow* (or *deny* when prefixed with
``!``). A year is a leap year when the vote total is positive. A ``+``
prefix makes the interval ignore the rule's start offset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Tuple

GREGORIAN_PATTERN = "400,!100,4"


@dataclass(frozen=True)
class Interval:
    interval: int
    subtracts: bool
    offset: int


def parse_interval(text: str, offset: int = 0) -> Interval:
    s = str(text).strip()
    subtracts = "!" in s
    ignores_offset = "+" in s
    digits = s.replace("!", "").replace("+", "")
    try:
        interval = max(1, int(digits))
    except ValueError:
        interval = 1
    if interval == 1 or ignores_offset:
        norm = 0
    else:
        norm = (interval + offset) % interval
    return Interval(interval, subtracts, norm)


def parse_pattern(pattern: str, offset: int = 0) -> List[Interval]:
    if not pattern:
        return []
    return [parse_interval(s, offset) for s in pattern.split(",") if s.strip()]


def vote(iv: Interval, year: int, year_zero_exists: bool = True) -> int:
    mod = year - iv.offset
    if not year_zero_exists and year < 0:
        mod += 1
    if mod % iv.interval == 0:
        return -1 if iv.subtracts else 1
    return 0


def intersects_year(intervals: List[Interval], year: int, year_zero_exists: bool = True) -> bool:
    if not intervals:
        return False
    return sum(vote(iv, year, year_zero_exists) for iv in intervals) > 0


@dataclass(frozen=True)
class LeapYearRule:
    """
    rule:
      - "none":      never leap
      - "simple":    every ``interval`` years counted from ``start``
      - "gregorian": 400,!100,4 counted from ``start``
      - "custom":    arbitrary ``pattern``
    """
    rule: Literal["none", "simple", "gregorian", "custom"] = "none"
    interval: int = 0
    start: int = 0
    pattern: str = ""

    def __post_init__(self) -> None:
        if self.rule not in ("none", "simple", "gregorian", "custom"):
            raise ValueError(f"Unknown leap-year rule '{self.rule}'")

    @property
    def intervals(self) -> Tuple[Interval, ...]:
        if self.rule == "simple":
            if self.interval <= 0:
                return ()
            return (parse_interval(str(self.interval), self.start),)
        if self.rule == "gregorian":
            return tuple(parse_pattern(GREGORIAN_PATTERN, self.start))
        if self.rule == "custom":
            return tuple(parse_pattern(self.pattern, self.start))
        return ()

    def is_leap(self, display_year: int, year_zero_exists: bool = True) -> bool:
        return intersects_year(list(self.intervals), display_year, year_zero_exists)

    def describe(self) -> str:
        if self.rule == "simple" and self.interval > 0:
            return f"every {self.interval} years from {self.start}"
        if self.rule == "gregorian":
            return "Gregorian (400, !100, 4)"
        if self.rule == "custom" and self.pattern:
            return f"custom pattern {self.pattern}"
        return "no leap years"
