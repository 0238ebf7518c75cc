"""
Vessel search
=============

Free-text lookup of vessels by name, IMO, MMSI or call sign.

The search always runs over the full snapshot (not the filtered view) and
returns one result per vessel (Vessel Identity Key). Matching is a plain
case-insensitive substring test; results where any identity field *starts*
with the query are ranked first, then results are ordered by vessel name.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Set, Tuple
from .models import (
    CasualtyIncident, SearchResult, VesselKey,
    MATCH_NAME, MATCH_IMO, MATCH_MMSI, MATCH_CALLSIGN,
)

MIN_QUERY_LENGTH = 3
MAX_RESULTS = 10


def _identity_fields(incident: CasualtyIncident) -> List[Tuple[str, str]]:
    # priority order: name, IMO, MMSI, call sign
    return [
        (MATCH_NAME, (incident.vessel_name or "").lower()),
        (MATCH_IMO, (incident.imo or "").lower()),
        (MATCH_MMSI, (incident.mmsi or "").lower()),
        (MATCH_CALLSIGN, (incident.call_sign or "").lower()),
    ]


def match_field(incident: CasualtyIncident, lower_query: str) -> Optional[str]:
    """Return the tag of the first identity field containing the query, or None."""
    for tag, value in _identity_fields(incident):
        if lower_query in value:
            return tag
    return None


def _starts_with_any(incident: CasualtyIncident, lower_query: str) -> bool:
    return any(value.startswith(lower_query) for _, value in _identity_fields(incident))


def search_vessels(incidents: List[CasualtyIncident],
                   by_vessel: Dict[VesselKey, List[CasualtyIncident]],
                   query: str,
                   limit: int = MAX_RESULTS) -> List[SearchResult]:
    """Search vessels and return at most `limit` ranked results.

    Queries shorter than MIN_QUERY_LENGTH return no results. The first
    matching incident of a vessel becomes its representative; the result
    carries the vessel's whole group from `by_vessel`.
    """
    if len(query) < MIN_QUERY_LENGTH:
        return []

    q = query.lower()
    results: List[SearchResult] = []
    seen: Set[VesselKey] = set()

    for incident in incidents:
        key = incident.vessel_key()
        if key in seen:
            continue
        tag = match_field(incident, q)
        if tag is None:
            continue
        seen.add(key)
        group = tuple(by_vessel.get(key) or (incident,))
        results.append(SearchResult(incident=incident, group=group, match_field=tag))

    # sorted() is stable, so equal keys keep encounter order
    results = sorted(
        results,
        key=lambda r: (
            0 if _starts_with_any(r.incident, q) else 1,
            (r.incident.vessel_name or "").lower(),
        ),
    )
    return results[:limit]


def highlight_span(text: Optional[str], query: str) -> Optional[Tuple[int, int]]:
    """(start, end) of the first case-insensitive occurrence of `query` in `text`."""
    if not text or not query:
        return None
    start = text.lower().find(query.lower())
    if start == -1:
        return None
    return start, start + len(query)
