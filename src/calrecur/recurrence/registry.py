from __future__ import annotations
from typing import Callable, Dict, List, Optional

from ..core.types import CalDate, FieldValue
from .context import EvalContext

FieldFunc = Callable[[CalDate, Optional[int], EvalContext], FieldValue]
_REGISTRY: Dict[str, FieldFunc] = {}


def register_field(name: str, fn: FieldFunc) -> None:
    _REGISTRY[name] = fn


def list_fields() -> List[str]:
    return sorted(_REGISTRY)


def resolve_field(name: str, date: CalDate, value2: Optional[int], ctx: EvalContext) -> FieldValue:
    """Value of ``name`` on ``date``; ``None`` for unknown fields or bad indices."""
    fn = _REGISTRY.get(name)
    if fn is None:
        return None
    return fn(date, value2, ctx)
