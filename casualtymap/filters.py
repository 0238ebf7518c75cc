"""
Filter evaluation
=================

`evaluate(incidents, spec)` keeps the incidents that satisfy every predicate
of a `FilterSpec`, in their original order. It holds no state; the dashboard
re-runs it whenever the spec or the snapshot changes.

Casualty type is always present, so an empty type selection hides everything.
Flag and ship type are often missing in the source data, so those two use
`passes_optional_set`: a missing value never excludes an incident.
"""

from __future__ import annotations
from typing import AbstractSet, List, Optional
from .models import CasualtyIncident, FilterSpec
from .indices import Indices


def in_date_range(incident: CasualtyIncident, spec: FilterSpec) -> bool:
    """True if the casualty date parsed and lies within [start, end]."""
    at = incident.casualty_at
    return at is not None and spec.start <= at <= spec.end


def has_casualty_type(incident: CasualtyIncident, spec: FilterSpec) -> bool:
    return incident.casualty_type in spec.casualty_types


def passes_optional_set(value: Optional[str], selected: AbstractSet[str]) -> bool:
    """Membership test where absence always passes.

    Passes when nothing is selected, when the incident has no value, or when
    its value is selected. Only an explicit value outside the selection fails.
    """
    if not selected or not value:
        return True
    return value in selected


def matches(incident: CasualtyIncident, spec: FilterSpec) -> bool:
    return (
        in_date_range(incident, spec)
        and has_casualty_type(incident, spec)
        and passes_optional_set(incident.flag, spec.flags)
        and passes_optional_set(incident.ship_type, spec.ship_types)
    )


def evaluate(incidents: List[CasualtyIncident], spec: FilterSpec) -> List[CasualtyIncident]:
    """Return the incidents visible under `spec`, order preserved."""
    return [i for i in incidents if matches(i, spec)]


def default_filter_spec(idx: Indices) -> FilterSpec:
    """Spec right after load: every domain value selected, full date span, heatmap view."""
    return FilterSpec(
        start=idx.date_min,
        end=idx.date_max,
        casualty_types=frozenset(idx.casualty_types),
        flags=frozenset(idx.flags),
        ship_types=frozenset(idx.ship_types),
        show_heatmap=True,
        show_markers=False,
    )
