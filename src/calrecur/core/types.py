from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Literal, Optional, Tuple, Union


@dataclass(frozen=True, order=True)
class CalDate:
    """A day on an in-world calendar.

    ``year`` is the display year, ``month`` is 0-based and ``day`` is 1-based.
    Hour and minute ride along but never take part in comparisons.
    """
    year: int
    month: int
    day: int
    hour: Optional[int] = field(default=None, compare=False)
    minute: Optional[int] = field(default=None, compare=False)

    def replace(self, **changes) -> "CalDate":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, int]:
        out = {"year": self.year, "month": self.month, "day": self.day}
        if self.hour is not None:
            out["hour"] = self.hour
        if self.minute is not None:
            out["minute"] = self.minute
        return out

    def __str__(self) -> str:
        return f"{self.year}-{self.month + 1:02d}-{self.day:02d}"


class Repeat(str, Enum):
    NEVER = "never"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    WEEK_OF_MONTH = "weekOfMonth"
    SEASONAL = "seasonal"
    RANGE = "range"
    MOON = "moon"
    RANDOM = "random"
    COMPUTED = "computed"
    LINKED = "linked"


Operator = Literal["==", "!=", ">=", "<=", ">", "<", "%"]
MoonModifier = Literal["any", "rising", "true", "fading"]
CheckInterval = Literal["daily", "weekly", "monthly"]
SeasonTrigger = Literal["entire", "firstDay", "lastDay"]

FieldValue = Union[int, float, bool, None]


@dataclass(frozen=True)
class Condition:
    field: str
    op: Operator
    value: Union[int, float, bool]
    value2: Optional[int] = None
    offset: Optional[int] = None


@dataclass(frozen=True)
class MoonCondition:
    moon_index: int
    phase_start: float
    phase_end: float
    modifier: MoonModifier = "any"


@dataclass(frozen=True)
class RandomConfig:
    seed: int = 0
    probability: float = 10.0
    check_interval: CheckInterval = "daily"


@dataclass(frozen=True)
class SeasonalConfig:
    season_index: int = 0
    trigger: SeasonTrigger = "entire"


# Each component is None (any value), an int (exact) or a (min, max) pair
# where either bound may be None.
RangeBit = Union[None, int, Tuple[Optional[int], Optional[int]]]


@dataclass(frozen=True)
class RangePattern:
    year: RangeBit = None
    month: RangeBit = None
    day: RangeBit = None


@dataclass(frozen=True)
class ComputedStep:
    """One link of a computed chain.

    ``type`` is ``anchor`` (uses ``value``), ``firstAfter`` (uses
    ``condition`` and ``params``), ``daysAfter`` or ``weekdayOnOrAfter``.
    """
    type: str
    value: Optional[str] = None
    condition: Optional[str] = None
    params: Dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ComputedConfig:
    chain: Tuple[ComputedStep, ...] = ()
    year_overrides: Dict[int, Tuple[int, int]] = field(default_factory=dict)  # year -> (month, day)


@dataclass(frozen=True)
class LinkedEvent:
    note_id: str
    offset: int = 0


@dataclass(frozen=True)
class RecurrenceSpec:
    """The full schedule of one event; immutable input to every query."""
    start_date: CalDate
    repeat: Repeat = Repeat.NEVER
    end_date: Optional[CalDate] = None
    repeat_end_date: Optional[CalDate] = None
    repeat_interval: int = 1
    max_occurrences: int = 0

    moon_conditions: Tuple[MoonCondition, ...] = ()
    random_config: Optional[RandomConfig] = None
    seasonal_config: Optional[SeasonalConfig] = None
    weekday: Optional[int] = None
    week_number: Optional[int] = None
    range_pattern: Optional[RangePattern] = None
    computed_config: Optional[ComputedConfig] = None
    linked_event: Optional[LinkedEvent] = None
    conditions: Tuple[Condition, ...] = ()

    # Owned by the note store; the engine only reads it.
    cached_random_occurrences: Tuple[CalDate, ...] = ()

    name: str = ""

    @property
    def interval(self) -> int:
        return self.repeat_interval if self.repeat_interval and self.repeat_interval > 0 else 1

    def tweak(self, **changes) -> "RecurrenceSpec":
        return replace(self, **changes)


@dataclass(frozen=True)
class MoonPhaseInfo:
    """Phase lookup result for one moon on one day."""
    name: str
    phase_index: int
    position: float
    day_in_cycle: int
    day_within_phase: int
    phase_duration: int
