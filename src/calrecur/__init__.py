"""calrecur public API.

Recurring events on configurable fantasy calendars. Most users only need the
functions re-exported here.
"""
from loguru import logger

# Initialize registry on import
from . import api_init as _api_init  # noqa: F401

from .api import (
    is_occurring,
    occurrences_in_range,
    resolve_computed_date,
    describe_recurrence,
    generate_random_occurrences,
    list_calendars,
    get_calendar,
    calendar_info,
    make_calendar,
    register_calendar,
    calendar_from_dict,
    spec_from_dict,
    date_from_dict,
)
from .core.errors import CalrecurError, RecordFormatError, UnknownCalendarError
from .core.types import (
    CalDate,
    ComputedConfig,
    ComputedStep,
    Condition,
    LinkedEvent,
    MoonCondition,
    RandomConfig,
    RangePattern,
    RecurrenceSpec,
    Repeat,
    SeasonalConfig,
)

logger.disable("calrecur")

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
    "CalrecurError",
    "RecordFormatError",
    "UnknownCalendarError",
    "CalDate",
    "ComputedConfig",
    "ComputedStep",
    "Condition",
    "LinkedEvent",
    "MoonCondition",
    "RandomConfig",
    "RangePattern",
    "RecurrenceSpec",
    "Repeat",
    "SeasonalConfig",
]
