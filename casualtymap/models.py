"""
Data model (CasualtyIncident, FilterSpec, SearchResult)
=======================================================

Each row of the casualty CSV is converted into a `CasualtyIncident` object.
Records are immutable (`frozen=True`) so that:
- incidents cannot be modified after loading, and
- filters, searches and selections only ever pick subsets of the snapshot.

Derived geometry (midpoint, distance) is computed once by the loader and
stored on the record.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

# Match-field tags, in the priority order the search engine tests them
MATCH_NAME = "name"
MATCH_IMO = "imo"
MATCH_MMSI = "mmsi"
MATCH_CALLSIGN = "callsign"

VesselKey = Tuple[str, str]


@dataclass(frozen=True)
class CasualtyIncident:
    """One recorded maritime casualty event."""
    incident_id: int
    casualty_type: str
    casualty_date: str
    casualty_at: Optional[datetime]
    details: str = ""

    vessel_name: Optional[str] = None
    imo: Optional[str] = None
    mmsi: Optional[str] = None
    call_sign: Optional[str] = None
    flag: Optional[str] = None
    ship_type: Optional[str] = None
    build_year: Optional[int] = None

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: Optional[str] = None
    latitude_2: Optional[float] = None
    longitude_2: Optional[float] = None
    timestamp_2: Optional[str] = None

    modified: Optional[str] = None
    ingest_time: Optional[str] = None

    # derived at normalization time
    midpoint_lat: float = 0.0
    midpoint_lon: float = 0.0
    distance_km: float = 0.0

    def vessel_key(self) -> VesselKey:
        """Return the (IMO, vessel name) pair used to group a vessel's incidents.

        Missing values collapse to "", so IMO-less vessels share one bucket
        per distinct name.
        """
        return (self.imo or "", self.vessel_name or "")

    def to_row(self) -> Dict[str, Any]:
        """Return the source-shaped mapping (no id, no derived geometry)."""
        return {
            "imo": self.imo,
            "vessel_name": self.vessel_name,
            "casualty_type": self.casualty_type,
            "details": self.details,
            "casualty_date": self.casualty_date,
            "modified": self.modified,
            "ingest_time": self.ingest_time,
            "ship_type": self.ship_type,
            "mmsi": self.mmsi,
            "flag": self.flag,
            "call_sign": self.call_sign,
            "build_year": self.build_year,
            "timestamp": self.timestamp,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp_2": self.timestamp_2,
            "latitude_2": self.latitude_2,
            "longitude_2": self.longitude_2,
        }


@dataclass(frozen=True)
class FilterSpec:
    """User-chosen filter parameters. Replaced, never edited, on each action."""
    start: datetime
    end: datetime
    casualty_types: FrozenSet[str] = field(default_factory=frozenset)
    flags: FrozenSet[str] = field(default_factory=frozenset)
    ship_types: FrozenSet[str] = field(default_factory=frozenset)
    show_heatmap: bool = True
    show_markers: bool = False


@dataclass(frozen=True)
class SearchResult:
    """One vessel hit: representative incident plus every incident of that vessel."""
    incident: CasualtyIncident
    group: Tuple[CasualtyIncident, ...]
    match_field: str

    @property
    def record_count(self) -> int:
        return len(self.group)
