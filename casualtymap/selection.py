"""
Selection / highlight state
===========================

Tracks which vessel the user picked from the search results.

Two independent pieces of state, because they clear at different times:
- `active_group` + `focus_pulse`: one-shot request for the map to fly to the
  vessel. The map calls `consume_focus()` once the animation has started, so
  picking the same vessel again re-triggers it.
- `search_scope`: the vessel stays "in scope" (others dimmed, markers forced)
  until the user clears the search.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple
from .models import CasualtyIncident


@dataclass
class SelectionState:
    active_group: Tuple[CasualtyIncident, ...] = field(default_factory=tuple)
    search_scope: Tuple[CasualtyIncident, ...] = field(default_factory=tuple)
    focus_pulse: bool = False

    def select(self, group: Iterable[CasualtyIncident]) -> None:
        g = tuple(group)
        self.active_group = g
        self.search_scope = g
        self.focus_pulse = True

    def consume_focus(self) -> None:
        """Clear the one-shot focus request; the search scope stays."""
        self.active_group = ()
        self.focus_pulse = False

    def clear(self) -> None:
        self.active_group = ()
        self.search_scope = ()
        self.focus_pulse = False

    @property
    def is_scoped(self) -> bool:
        return bool(self.search_scope)

    @property
    def forces_markers(self) -> bool:
        """Heatmap is meaningless for one vessel, so a scoped search shows markers only."""
        return self.is_scoped

    def dimmed(self, filtered: List[CasualtyIncident]) -> List[CasualtyIncident]:
        """Filtered incidents not belonging to the scoped vessel (empty when unscoped)."""
        if not self.search_scope:
            return []
        scoped_ids = {i.incident_id for i in self.search_scope}
        return [i for i in filtered if i.incident_id not in scoped_ids]
