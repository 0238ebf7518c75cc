"""
Tests for the filter evaluator
"""
from datetime import datetime

import pytest

from casualtymap.filters import default_filter_spec, evaluate, passes_optional_set
from casualtymap.indices import build_indices
from casualtymap.models import FilterSpec


@pytest.fixture
def incidents(make_incident):
    return [
        make_incident(casualty_type="Fire", casualty_date="2023-01-01", flag="Panama", ship_type="Tanker"),
        make_incident(casualty_type="Sank", casualty_date="2023-02-01", flag=None, ship_type="Tug"),
        make_incident(casualty_type="Fire", casualty_date="2023-03-01", flag="Malta", ship_type=None),
        make_incident(casualty_type="Collision", casualty_date="bad", casualty_at=None, flag="Malta"),
    ]


def _spec(**kw):
    base = dict(
        start=datetime(2000, 1, 1),
        end=datetime(2100, 1, 1),
        casualty_types=frozenset({"Fire", "Sank", "Collision"}),
        flags=frozenset({"Panama", "Malta"}),
        ship_types=frozenset({"Tanker", "Tug"}),
    )
    base.update(kw)
    return FilterSpec(**base)


def test_optional_set_empty_selection_passes():
    assert passes_optional_set("Panama", frozenset())


def test_optional_set_missing_value_passes():
    assert passes_optional_set(None, frozenset({"Malta"}))
    assert passes_optional_set("", frozenset({"Malta"}))


def test_optional_set_unselected_value_fails():
    assert not passes_optional_set("Panama", frozenset({"Malta"}))
    assert passes_optional_set("Malta", frozenset({"Malta"}))


def test_accept_everything_keeps_all_dated_incidents(incidents):
    out = evaluate(incidents, _spec())

    # only the unparseable date is excluded
    assert out == incidents[:3]


def test_default_spec_reproduces_collection(incidents):
    dated = incidents[:3]
    spec = default_filter_spec(build_indices(dated))

    assert evaluate(dated, spec) == dated
    assert spec.show_heatmap and not spec.show_markers


def test_empty_type_set_yields_nothing(incidents):
    assert evaluate(incidents, _spec(casualty_types=frozenset())) == []


def test_flag_filter_keeps_flagless_incidents(incidents):
    out = evaluate(incidents, _spec(flags=frozenset({"Panama"})))

    assert out == [incidents[0], incidents[1]]


def test_ship_type_filter_keeps_untyped_incidents(incidents):
    out = evaluate(incidents, _spec(ship_types=frozenset({"Tug"})))

    assert out == [incidents[1], incidents[2]]


def test_date_bounds_are_inclusive(incidents):
    out = evaluate(incidents, _spec(start=datetime(2023, 2, 1), end=datetime(2023, 3, 1)))

    assert out == [incidents[1], incidents[2]]


def test_evaluate_is_pure(incidents):
    spec = _spec(casualty_types=frozenset({"Fire"}))

    first = evaluate(incidents, spec)
    second = evaluate(incidents, spec)

    assert first == second == [incidents[0], incidents[2]]
    assert len(incidents) == 4
