from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple

from ..core.engine import CalendarModel
from ..core.types import RecurrenceSpec
from .limits import MAX_LINK_DEPTH


@dataclass(frozen=True)
class EvalContext:
    """Everything one query needs besides the spec and the date.

    ``events`` maps note ids to their specs (for linked events and
    ``event:`` anchors). ``chain`` holds the note ids already being
    resolved, outermost first.
    """
    calendar: Optional[CalendarModel] = None
    events: Mapping[str, RecurrenceSpec] = field(default_factory=dict)
    chain: Tuple[str, ...] = ()

    def lookup(self, note_id: str) -> Optional[RecurrenceSpec]:
        return self.events.get(note_id)

    def can_follow(self, note_id: str) -> bool:
        return note_id not in self.chain and len(self.chain) < MAX_LINK_DEPTH

    def following(self, note_id: str) -> "EvalContext":
        return replace(self, chain=self.chain + (note_id,))
