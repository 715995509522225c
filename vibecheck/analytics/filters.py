"""
Client-side check-in filters.

A fixed sequence of independent predicates. Stage order only affects the
per-stage discard counts, never the surviving set.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from vibecheck.data.schemas import CheckInEvent, ensure_utc

Predicate = Callable[[CheckInEvent], bool]


@dataclass(frozen=True)
class FilterSelection:
    """
    What the viewer selected. Empty band/intent sets mean "no filter".
    """
    window_minutes: Optional[int] = None
    single_only: bool = False
    age_bands: FrozenSet[str] = frozenset()
    intents: FrozenSet[str] = frozenset()


@dataclass
class FilterOutcome:
    events: List[CheckInEvent]
    discarded: Dict[str, int] = field(default_factory=dict)  # stage name -> events removed


class ClientFilterPipeline:
    """
    Applies the selected filters in order: time window, single only,
    age bands, intents. Null age bands / intents are dropped once the
    corresponding filter is active.
    """

    def __init__(self, selection: FilterSelection, now: datetime):
        self.selection = selection
        self.now = ensure_utc(now)

    def stages(self) -> List[Tuple[str, Predicate]]:
        """Active stages, in application order."""
        selection = self.selection
        stages: List[Tuple[str, Predicate]] = []

        if selection.window_minutes is not None:
            cutoff = self.now - timedelta(minutes=selection.window_minutes)
            stages.append(("time_window", lambda e: ensure_utc(e.created_at) >= cutoff))

        if selection.single_only:
            stages.append(("single_only", lambda e: e.relationship_status == "single"))

        if selection.age_bands:
            bands = frozenset(selection.age_bands)
            stages.append(("age_bands", lambda e: e.age_band is not None and e.age_band in bands))

        if selection.intents:
            intents = frozenset(selection.intents)
            stages.append(("intents", lambda e: e.intent is not None and e.intent in intents))

        return stages

    def apply(self, events: Iterable[CheckInEvent]) -> FilterOutcome:
        remaining = list(events)
        discarded: Dict[str, int] = {}

        for name, predicate in self.stages():
            kept = [e for e in remaining if predicate(e)]
            discarded[name] = len(remaining) - len(kept)
            remaining = kept

        return FilterOutcome(events=remaining, discarded=discarded)
