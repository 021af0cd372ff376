# tests/test_linked.py

from calrecur.core.types import CalDate, ComputedConfig, ComputedStep, Condition, LinkedEvent, RecurrenceSpec, Repeat
from calrecur.recurrence.computed import resolve_computed_date
from calrecur.recurrence.context import EvalContext
from calrecur.recurrence.limits import MAX_LINK_DEPTH
from calrecur.recurrence.matchers import is_occurring
from calrecur.recurrence.occurrences import occurrences_in_range

MARKET = RecurrenceSpec(start_date=CalDate(0, 0, 1), repeat=Repeat.WEEKLY, name="Market day")


def _linked(note_id, offset, **kw):
    return RecurrenceSpec(
        start_date=kw.pop("start_date", CalDate(0, 0, 1)),
        repeat=Repeat.LINKED,
        linked_event=LinkedEvent(note_id, offset),
        **kw,
    )


def test_linked_follows_offset(tidy):
    ctx = EvalContext(calendar=tidy, events={"market": MARKET})
    cleanup = _linked("market", 2)
    assert is_occurring(cleanup, CalDate(0, 0, 3), ctx)
    assert is_occurring(cleanup, CalDate(0, 0, 10), ctx)
    assert not is_occurring(cleanup, CalDate(0, 0, 1), ctx)


def test_negative_offset_respects_own_start(tidy):
    ctx = EvalContext(calendar=tidy, events={"market": MARKET})
    setup = _linked("market", -1)
    # the day before the first market falls before the event's own start
    assert not is_occurring(setup, CalDate(-1, 11, 30), ctx)
    assert is_occurring(setup, CalDate(0, 0, 7), ctx)


def test_linked_enumeration(tidy):
    ctx = EvalContext(calendar=tidy, events={"market": MARKET})
    cleanup = _linked("market", 2)
    found = occurrences_in_range(cleanup, CalDate(0, 0, 1), CalDate(0, 0, 30), 10, ctx)
    assert found == [CalDate(0, 0, 3), CalDate(0, 0, 10), CalDate(0, 0, 17), CalDate(0, 0, 24)]


def test_linked_respects_repeat_end(tidy):
    ctx = EvalContext(calendar=tidy, events={"market": MARKET})
    cleanup = _linked("market", 2, repeat_end_date=CalDate(0, 0, 12))
    found = occurrences_in_range(cleanup, CalDate(0, 0, 1), CalDate(0, 0, 30), 10, ctx)
    assert found == [CalDate(0, 0, 3), CalDate(0, 0, 10)]
    assert not is_occurring(cleanup, CalDate(0, 0, 17), ctx)


def test_linked_conditions_filter_matches_and_enumeration(tidy):
    daily = RecurrenceSpec(start_date=CalDate(0, 0, 1), repeat=Repeat.DAILY)
    ctx = EvalContext(calendar=tidy, events={"daily": daily})
    fifth = _linked("daily", 0, conditions=(Condition("day", "==", 5),))
    hits = [CalDate(0, 0, d) for d in range(1, 11) if is_occurring(fifth, CalDate(0, 0, d), ctx)]
    assert hits == [CalDate(0, 0, 5)]
    assert occurrences_in_range(fifth, CalDate(0, 0, 1), CalDate(0, 0, 10), 10, ctx) == [CalDate(0, 0, 5)]


def test_linked_max_occurrences(tidy):
    ctx = EvalContext(calendar=tidy, events={"market": MARKET})
    cleanup = _linked("market", 2, max_occurrences=2)
    assert is_occurring(cleanup, CalDate(0, 0, 10), ctx)
    assert not is_occurring(cleanup, CalDate(0, 0, 17), ctx)
    assert occurrences_in_range(cleanup, CalDate(0, 0, 1), CalDate(0, 0, 30), 10, ctx) == [
        CalDate(0, 0, 3), CalDate(0, 0, 10),
    ]
    assert occurrences_in_range(cleanup, CalDate(0, 0, 11), CalDate(0, 0, 30), 10, ctx) == []


def test_missing_target_never_occurs(tidy):
    ctx = EvalContext(calendar=tidy)
    orphan = _linked("gone", 0)
    assert not is_occurring(orphan, CalDate(0, 0, 1), ctx)
    assert occurrences_in_range(orphan, CalDate(0, 0, 1), CalDate(0, 0, 30), 10, ctx) == []


def test_delegation_is_one_hop(tidy):
    # the target's own link is dropped; its own weekly repeat is what counts
    cleanup = RecurrenceSpec(
        start_date=CalDate(0, 0, 1), repeat=Repeat.WEEKLY, linked_event=LinkedEvent("market", 3),
    )
    ctx = EvalContext(calendar=tidy, events={"market": MARKET, "cleanup": cleanup})
    inspection = _linked("cleanup", 1)
    assert is_occurring(inspection, CalDate(0, 0, 2), ctx)
    assert not is_occurring(inspection, CalDate(0, 0, 5), ctx)


def _anchored(note_id):
    return RecurrenceSpec(
        start_date=CalDate(0, 0, 1),
        repeat=Repeat.COMPUTED,
        computed_config=ComputedConfig((ComputedStep("anchor", value=f"event:{note_id}"),)),
    )


def test_cycles_are_refused(tidy):
    events = {"a": _linked("c", 0), "c": _anchored("a")}
    ctx = EvalContext(calendar=tidy, events=events)
    assert not is_occurring(events["a"], CalDate(1, 0, 1), ctx)
    assert occurrences_in_range(events["a"], CalDate(1, 0, 1), CalDate(2, 11, 30), 10, ctx) == []


def test_depth_ceiling(tidy):
    spring = RecurrenceSpec(
        start_date=CalDate(0, 0, 1),
        repeat=Repeat.COMPUTED,
        computed_config=ComputedConfig((ComputedStep("anchor", value="springEquinox"),)),
    )
    events = {"e0": spring}
    for i in range(1, MAX_LINK_DEPTH + 2):
        events[f"e{i}"] = _anchored(f"e{i - 1}")
    ctx = EvalContext(calendar=tidy, events=events)
    deepest_allowed = events[f"e{MAX_LINK_DEPTH}"].computed_config
    too_deep = events[f"e{MAX_LINK_DEPTH + 1}"].computed_config
    assert resolve_computed_date(deepest_allowed, 1, ctx) == CalDate(1, 0, 1)
    assert resolve_computed_date(too_deep, 1, ctx) is None


def test_context_chain_helpers():
    ctx = EvalContext()
    inner = ctx.following("a").following("b")
    assert inner.chain == ("a", "b")
    assert not inner.can_follow("a")
    assert inner.can_follow("c")
    assert ctx.chain == ()
