"""
Shared fixtures for casualtymap tests
"""
import itertools
from datetime import datetime

import pytest

from casualtymap.config import Settings
from casualtymap.models import CasualtyIncident


@pytest.fixture
def make_incident():
    """Factory for incidents with sensible defaults and unique ids."""
    ids = itertools.count()

    def _make(**kw):
        date = kw.pop("casualty_date", "2023-06-01")
        if "casualty_at" in kw:
            at = kw.pop("casualty_at")
        else:
            at = datetime.fromisoformat(date)
        defaults = dict(
            incident_id=next(ids),
            casualty_type="Fire",
            casualty_date=date,
            casualty_at=at,
            latitude=10.0,
            longitude=20.0,
            midpoint_lat=10.0,
            midpoint_lon=20.0,
        )
        defaults.update(kw)
        return CasualtyIncident(**defaults)

    return _make


@pytest.fixture
def settings():
    return Settings(
        app_password="letmein",
        supabase_url="http://localhost:54321",
        supabase_anon_key="anon-key",
    )
