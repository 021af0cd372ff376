from __future__ import annotations
from typing import Optional, Sequence

from ..core.types import CalDate, Condition, FieldValue
from .context import EvalContext
from .fields import resolve_field


def _same(a: FieldValue, b: FieldValue) -> bool:
    # True must not equal 1
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    return a == b


def evaluate_condition(
    cond: Condition, date: CalDate, ctx: EvalContext, start: Optional[CalDate] = None
) -> bool:
    """Apply one field/operator/value predicate.

    For ``%`` the field value is shifted by ``cond.offset`` when given,
    otherwise by the same field's value on ``start`` (0 without a start).
    """
    value = resolve_field(cond.field, date, cond.value2, ctx)
    if value is None:
        return False
    op, target = cond.op, cond.value
    if op == "==":
        return _same(value, target)
    if op == "!=":
        return not _same(value, target)
    try:
        if op == ">=":
            return value >= target
        if op == "<=":
            return value <= target
        if op == ">":
            return value > target
        if op == "<":
            return value < target
        if op == "%":
            if not target:
                return False
            if cond.offset is not None:
                offset = cond.offset
            elif start is not None:
                offset = resolve_field(cond.field, start, cond.value2, ctx) or 0
            else:
                offset = 0
            return (value - offset) % target == 0
    except TypeError:
        return False
    return False


def evaluate_conditions(
    conds: Sequence[Condition], date: CalDate, ctx: EvalContext, start: Optional[CalDate] = None
) -> bool:
    return all(evaluate_condition(c, date, ctx, start) for c in conds)
