"""
Dashboard session (casualtymap)
===============================

One `Dashboard` is one user session of the casualty map:

1) Authenticate against the shared secret
2) Load the dataset once -> list of CasualtyIncident records (immutable)
3) Build indices -> filter domains, date bounds, per-vessel groups
4) Keep the current FilterSpec, search query and vessel selection
5) Recompute the visible set / search results / render payload on demand

Nothing derived is cached between calls: every view is recomputed from the
snapshot and the current inputs.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional
import asyncio
import hmac
import logging

from .config import Settings, configure_logging, get_settings
from .models import CasualtyIncident, FilterSpec, SearchResult
from .indices import Indices, build_indices
from .filters import evaluate, default_filter_spec
from .search import search_vessels
from .selection import SelectionState
from .render import RenderState, build_render_state
from .loader import LoadFailure, parse_csv_text
from .storage import fetch_csv_text

logger = logging.getLogger(__name__)

IDLE, LOADING, READY, ERROR = "idle", "loading", "ready", "error"

# filter fields a user can toggle values of
_SET_FIELDS = ("casualty_types", "flags", "ship_types")

Loader = Callable[[], List[CasualtyIncident]]


@dataclass
class Dashboard:
    """Session state of the casualty map.

    The engine stores:
    - incidents: the loaded snapshot (read-only after load)
    - idx: indices over the snapshot
    - filters: current FilterSpec (replaced on each filter action)
    - query / selection: vessel search input and the picked vessel
    """
    settings: Settings = field(default_factory=get_settings)
    loader: Optional[Loader] = None
    incidents: List[CasualtyIncident] = field(default_factory=list)
    idx: Optional[Indices] = None
    filters: Optional[FilterSpec] = None
    query: str = ""
    selection: SelectionState = field(default_factory=SelectionState)
    status: str = IDLE
    error: Optional[str] = None
    authenticated: bool = False

    def __post_init__(self) -> None:
        configure_logging(self.settings.log_level)

    # ---------------- Access gate ----------------
    def authenticate(self, password: str) -> bool:
        ok = hmac.compare_digest(password.encode("utf-8"), self.settings.app_password.encode("utf-8"))
        if ok:
            self.authenticated = True
        else:
            logger.info("Rejected login attempt")
        return ok

    @property
    def screen(self) -> str:
        """Which top-level view to show: login, loading, error or map."""
        if not self.authenticated:
            return "login"
        if self.status == ERROR:
            return "error"
        if self.status != READY:
            return "loading"
        return "map"

    # ---------------- Loading ----------------
    @property
    def can_load(self) -> bool:
        return self.status != LOADING

    def _default_loader(self) -> List[CasualtyIncident]:
        return parse_csv_text(fetch_csv_text(self.settings))

    async def load(self, now: Optional[datetime] = None) -> bool:
        """Fetch and normalize the dataset, then reset filters to the full domain.

        Returns True on success. On failure the message is kept in `error`
        and the session stays in the error state (no retry).
        """
        if not self.can_load:
            raise RuntimeError("A load is already in progress")
        self.status, self.error = LOADING, None
        loader = self.loader or self._default_loader
        try:
            incidents = await asyncio.to_thread(loader)
        except LoadFailure as e:
            logger.error("Load failed: %s", e)
            self.status, self.error = ERROR, str(e)
            return False
        except Exception as e:
            self.status, self.error = ERROR, str(e)
            raise

        self.incidents = incidents
        self.idx = build_indices(incidents, now=now)
        self.filters = default_filter_spec(self.idx)
        self.query = ""
        self.selection.clear()
        self.status = READY
        logger.info("Loaded %d incidents (%d vessels)", len(incidents), len(self.idx.by_vessel))
        return True

    def _require_ready(self) -> None:
        if self.status != READY or self.filters is None or self.idx is None:
            raise RuntimeError("Dataset not loaded")

    # ---------------- Filters ----------------
    def set_date_range(self, start: datetime, end: datetime) -> None:
        self._require_ready()
        self.filters = replace(self.filters, start=start, end=end)

    def toggle_value(self, field_name: str, value: str) -> None:
        """Add or remove one value of casualty_types / flags / ship_types."""
        self._require_ready()
        current = self._selected(field_name)
        updated = current - {value} if value in current else current | {value}
        self.filters = replace(self.filters, **{field_name: frozenset(updated)})

    def select_all(self, field_name: str) -> None:
        self._require_ready()
        self._selected(field_name)
        domain = getattr(self.idx, field_name)
        self.filters = replace(self.filters, **{field_name: frozenset(domain)})

    def select_none(self, field_name: str) -> None:
        self._require_ready()
        self._selected(field_name)
        self.filters = replace(self.filters, **{field_name: frozenset()})

    def _selected(self, field_name: str) -> frozenset:
        if field_name not in _SET_FIELDS:
            raise ValueError(f"field must be one of: {', '.join(_SET_FIELDS)}")
        return getattr(self.filters, field_name)

    def set_view_mode(self, mode: str) -> None:
        """Switch between the heatmap and individual markers."""
        self._require_ready()
        if mode not in ("heatmap", "markers"):
            raise ValueError("mode must be 'heatmap' or 'markers'")
        self.filters = replace(self.filters, show_heatmap=(mode == "heatmap"), show_markers=(mode == "markers"))

    def visible(self) -> List[CasualtyIncident]:
        """Incidents passing the current filters."""
        self._require_ready()
        return evaluate(self.incidents, self.filters)

    # ---------------- Vessel search ----------------
    def set_query(self, query: str) -> List[SearchResult]:
        self.query = query
        return self.results()

    def results(self) -> List[SearchResult]:
        if self.idx is None:
            return []
        return search_vessels(self.incidents, self.idx.by_vessel, self.query)

    def select_result(self, result: SearchResult) -> None:
        self.selection.select(result.group)
        self.query = ""

    def consume_focus(self) -> None:
        self.selection.consume_focus()

    def clear_search(self) -> None:
        self.selection.clear()

    # ---------------- Output ----------------
    def render_state(self) -> RenderState:
        self._require_ready()
        return build_render_state(self.visible(), self.filters, self.selection, self.idx.casualty_types)

    def stats(self) -> Dict[str, int]:
        total = len(self.incidents)
        shown = len(self.visible()) if self.status == READY else 0
        return {"total": total, "filtered": shown}
