"""
Indices (precomputed lookup tables)
===================================

Built once per loaded snapshot:
- the date span of all parseable casualty dates (filter defaults, slider bounds),
- the distinct casualty types, flags and ship types (filter option domains),
- `by_vessel`: Vessel Identity Key -> all incidents of that vessel.

Everything here is a pure function of the incident list and is safe to
rebuild at any time.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from .models import CasualtyIncident, VesselKey


@dataclass
class Indices:
    """Container of derived lookup structures over one snapshot."""
    date_min: datetime
    date_max: datetime
    casualty_types: List[str]
    flags: List[str]
    ship_types: List[str]
    by_vessel: Dict[VesselKey, List[CasualtyIncident]]


def date_range(incidents: List[CasualtyIncident],
               fallback: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Return (min, max) of all parseable casualty dates.

    Incidents whose date did not parse are ignored. Callers should not ask
    for the range of an empty collection; if no date is available the result
    is `(fallback, fallback)`, with `fallback` defaulting to the current UTC time.
    """
    dates = [i.casualty_at for i in incidents if i.casualty_at is not None]
    if not dates:
        now = fallback or datetime.now(timezone.utc).replace(tzinfo=None)
        return now, now
    return min(dates), max(dates)


def distinct_values(incidents: List[CasualtyIncident], attr: str) -> List[str]:
    """Sorted distinct non-empty values of one categorical attribute."""
    return sorted({v for v in (getattr(i, attr) for i in incidents) if v})


def casualty_types(incidents: List[CasualtyIncident]) -> List[str]:
    return distinct_values(incidents, "casualty_type")


def flags(incidents: List[CasualtyIncident]) -> List[str]:
    return distinct_values(incidents, "flag")


def ship_types(incidents: List[CasualtyIncident]) -> List[str]:
    return distinct_values(incidents, "ship_type")


def build_vessel_index(incidents: List[CasualtyIncident]) -> Dict[VesselKey, List[CasualtyIncident]]:
    """Group incidents by (IMO, vessel name) in a single pass, keeping input order."""
    by_vessel: Dict[VesselKey, List[CasualtyIncident]] = {}
    for i in incidents:
        by_vessel.setdefault(i.vessel_key(), []).append(i)
    return by_vessel


def build_indices(incidents: List[CasualtyIncident], now: Optional[datetime] = None) -> Indices:
    """Build all indices for a freshly loaded snapshot."""
    lo, hi = date_range(incidents, fallback=now)
    return Indices(
        date_min=lo,
        date_max=hi,
        casualty_types=casualty_types(incidents),
        flags=flags(incidents),
        ship_types=ship_types(incidents),
        by_vessel=build_vessel_index(incidents),
    )
