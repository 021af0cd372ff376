# tests/test_records.py

import pytest

from calrecur.core.errors import RecordFormatError
from calrecur.core.types import CalDate, Condition, LinkedEvent, Repeat
from calrecur.recurrence.records import spec_from_dict


def note(**kw):
    data = {"name": "Test", "startDate": {"year": 2024, "month": 2, "day": 15}}
    data.update(kw)
    return data


def test_minimal_record_defaults():
    s = spec_from_dict(note())
    assert s.start_date == CalDate(2024, 2, 15)
    assert s.repeat is Repeat.NEVER
    assert s.repeat_interval == 1
    assert s.max_occurrences == 0
    assert s.linked_event is None
    assert s.name == "Test"


def test_full_record():
    s = spec_from_dict(note(
        repeat="weekOfMonth",
        weekday=2,
        weekNumber=-1,
        repeatInterval=2,
        maxOccurrences=6,
        endDate={"year": 2024, "month": 2, "day": 17},
        repeatEndDate={"year": 2030, "month": 0, "day": 1},
        conditions=[
            {"field": "weekday", "op": "==", "value": 3},
            {"field": "isIntercalary", "op": "==", "value": False},
            {"field": "year", "op": "%", "value": 4, "offset": 1},
        ],
    ))
    assert s.repeat is Repeat.WEEK_OF_MONTH
    assert (s.weekday, s.week_number, s.repeat_interval, s.max_occurrences) == (2, -1, 2, 6)
    assert s.end_date == CalDate(2024, 2, 17)
    assert s.repeat_end_date == CalDate(2030, 0, 1)
    assert s.conditions[0] == Condition("weekday", "==", 3)
    assert s.conditions[1].value is False
    assert s.conditions[2].offset == 1


def test_range_bits_become_tuples():
    s = spec_from_dict(note(repeat="range", rangePattern={"year": [2020, None], "month": 3, "day": None}))
    assert s.range_pattern.year == (2020, None)
    assert s.range_pattern.month == 3
    assert s.range_pattern.day is None


def test_computed_record():
    s = spec_from_dict(note(
        repeat="computed",
        computedConfig={
            "chain": [
                {"type": "anchor", "value": "springEquinox"},
                {"type": "firstAfter", "condition": "weekday", "params": {"weekday": 0}},
            ],
            "yearOverrides": {"1492": {"month": 3, "day": 9}},
        },
    ))
    config = s.computed_config
    assert [step.type for step in config.chain] == ["anchor", "firstAfter"]
    assert config.chain[1].params == {"weekday": 0}
    assert config.year_overrides == {1492: (3, 9)}


def test_payloads():
    s = spec_from_dict(note(
        repeat="random",
        randomConfig={"seed": 42, "probability": 12.5, "checkInterval": "monthly"},
        moonConditions=[{"moonIndex": 0, "phaseStart": 0.25, "phaseEnd": 0.5, "modifier": "fading"}],
        seasonalConfig={"seasonIndex": 3},
        cachedRandomOccurrences=[{"year": 2024, "month": 5, "day": 1}],
        linkedEvent={"noteId": "abc", "offset": -2},
    ))
    assert (s.random_config.seed, s.random_config.probability, s.random_config.check_interval) == (42, 12.5, "monthly")
    assert s.moon_conditions[0].modifier == "fading"
    assert s.seasonal_config.trigger == "entire"
    assert s.cached_random_occurrences == (CalDate(2024, 5, 1),)
    assert s.linked_event == LinkedEvent("abc", -2)


def test_linked_event_without_note_id_is_dropped():
    assert spec_from_dict(note(linkedEvent={"noteId": None, "offset": 3})).linked_event is None


@pytest.mark.parametrize(
    "record",
    [
        note(repeat="fortnightly"),
        note(conditions=[{"field": "day", "op": "=~", "value": 1}]),
        note(conditions=[{"field": "day", "op": "=="}]),
        note(randomConfig={"checkInterval": "hourly"}),
        note(seasonalConfig={"trigger": "midDay"}),
        note(moonConditions=[{"phaseStart": 0.1, "phaseEnd": 0.2, "modifier": "waxing"}]),
        note(rangePattern={"day": [1, 2, 3]}),
        note(computedConfig={"yearOverrides": {"soon": {"month": 1, "day": 1}}}),
        note(maxOccurrences=1.5),
        note(startDate={"year": 2024, "month": 2}),
        {"name": "no start"},
        ["not", "a", "mapping"],
    ],
)
def test_malformed_records(record):
    with pytest.raises(RecordFormatError):
        spec_from_dict(record)


def test_wrong_shapes_are_wrapped():
    with pytest.raises(RecordFormatError):
        spec_from_dict(note(computedConfig={"chain": ["anchor"]}))


def test_dates_checked_against_calendar(greg):
    leap_day = note(startDate={"year": 2024, "month": 1, "day": 29})
    assert spec_from_dict(leap_day, greg).start_date == CalDate(2024, 1, 29)
    with pytest.raises(RecordFormatError, match="startDate"):
        spec_from_dict(note(startDate={"year": 2023, "month": 1, "day": 29}), greg)
    with pytest.raises(RecordFormatError, match="repeatEndDate"):
        spec_from_dict(note(repeatEndDate={"year": 2030, "month": 12, "day": 1}), greg)
    # without a calendar only the shape is checked
    assert spec_from_dict(note(startDate={"year": 2023, "month": 1, "day": 29})).start_date.day == 29
