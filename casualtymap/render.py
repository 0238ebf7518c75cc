"""
Render payload (incidents -> GeoJSON for the map layer)
-------------------------------------------------------
The map itself is drawn elsewhere. This module turns the current view into the
data the map layer consumes:

- `active` / `inactive` point collections (inactive = dimmed while a vessel
  search is scoped),
- a `highlight` collection and camera `bounds` for the selected vessel,
- the heatmap/markers flags, where a scoped search always forces markers.

Each point sits at the incident midpoint and carries a color for its casualty
type.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import CasualtyIncident, FilterSpec
from .selection import SelectionState


# -----------------------------
# Palette / styling
# -----------------------------

DEFAULT_COLOR = "#94a3b8"

CASUALTY_TYPE_COLORS: Dict[str, str] = {
    "Other": "#94a3b8",
    "Mechanical Fault": "#f59e0b",
    "Engine Fault": "#ef4444",
    "Collision": "#dc2626",
    "Beached/Grounded": "#d97706",
    "Fire": "#ea580c",
    "Medical Emergency": "#06b6d4",
    "Sank": "#7c3aed",
    "Detained/Arrested": "#4b5563",
    "War Damage": "#991b1b",
    "Piracy": "#be123c",
    "Cargo Loss": "#0891b2",
    "Capsize": "#6366f1",
    "Electrical Fault": "#eab308",
    "Man Overboard": "#0ea5e9",
}

MARKER_OPACITY = 0.7
DIMMED_OPACITY = 0.2

Bounds = Tuple[float, float, float, float]


def color_for(casualty_type: str) -> str:
    return CASUALTY_TYPE_COLORS.get(casualty_type, DEFAULT_COLOR)


# -----------------------------
# GeoJSON builders
# -----------------------------

def incident_feature(incident: CasualtyIncident, *, opacity: float = MARKER_OPACITY) -> Dict[str, Any]:
    """One GeoJSON Point feature at the incident midpoint."""
    props: Dict[str, Any] = dict(incident.to_row())
    props.update(
        incident_id=incident.incident_id,
        casualty_at=incident.casualty_at.isoformat() if incident.casualty_at else None,
        distance_km=round(incident.distance_km, 1),
        color=color_for(incident.casualty_type),
        opacity=opacity,
    )
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [incident.midpoint_lon, incident.midpoint_lat],
        },
        "properties": props,
    }


def feature_collection(incidents: Sequence[CasualtyIncident], *, opacity: float = MARKER_OPACITY) -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [incident_feature(i, opacity=opacity) for i in incidents],
    }


def group_bounds(incidents: Sequence[CasualtyIncident]) -> Optional[Bounds]:
    """(min_lon, min_lat, max_lon, max_lat) of the midpoints, for camera fitting."""
    if not incidents:
        return None
    lons = [i.midpoint_lon for i in incidents]
    lats = [i.midpoint_lat for i in incidents]
    return min(lons), min(lats), max(lons), max(lats)


# -----------------------------
# Assembled view
# -----------------------------

@dataclass
class RenderState:
    """Everything the map layer needs for one redraw."""
    active: Dict[str, Any]
    inactive: Dict[str, Any]
    highlight: Dict[str, Any]
    show_heatmap: bool
    show_markers: bool
    focus: bool = False
    bounds: Optional[Bounds] = None
    legend: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "inactive": self.inactive,
            "highlight": self.highlight,
            "show_heatmap": self.show_heatmap,
            "show_markers": self.show_markers,
            "focus": self.focus,
            "bounds": list(self.bounds) if self.bounds else None,
            "legend": dict(self.legend),
        }


def view_flags(spec: FilterSpec, selection: SelectionState) -> Tuple[bool, bool]:
    """(show_heatmap, show_markers) after applying the scoped-search override."""
    if selection.forces_markers:
        return False, True
    return spec.show_heatmap, spec.show_markers


def build_render_state(filtered: List[CasualtyIncident],
                       spec: FilterSpec,
                       selection: SelectionState,
                       casualty_types: Sequence[str] = ()) -> RenderState:
    """Split the filtered view into active/dimmed layers and attach the highlight."""
    show_heatmap, show_markers = view_flags(spec, selection)

    if selection.is_scoped:
        active: List[CasualtyIncident] = list(selection.search_scope)
        inactive = selection.dimmed(filtered)
    else:
        active, inactive = filtered, []

    highlight = selection.active_group
    return RenderState(
        active=feature_collection(active),
        inactive=feature_collection(inactive, opacity=DIMMED_OPACITY),
        highlight=feature_collection(highlight),
        show_heatmap=show_heatmap,
        show_markers=show_markers,
        focus=selection.focus_pulse,
        bounds=group_bounds(highlight),
        legend={t: color_for(t) for t in casualty_types},
    )
