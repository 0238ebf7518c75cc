"""
Tests for CSV loading and record normalization
"""
import math
from datetime import datetime

import pandas as pd
import pytest

from casualtymap.loader import (
    LoadFailure,
    MalformedRow,
    haversine_km,
    load_incidents_file,
    normalize_rows,
    parse_csv_text,
    parse_timestamp,
)


CSV_TEXT = """imo,vessel_name,casualty_type,casualty_date,flag,mmsi,latitude,longitude,latitude_2,longitude_2
9234567,Example,Fire,2023-01-05,Panama,351000001,10.0,20.0,,
,Nowhere,Sank,2023-02-01,,,,,,
9000001,Alpha Star,Collision,2023-03-01,,,,,1.5,2.5
1,2,3,4,5,6,7,8,9,10,11,12
"""


def test_haversine_one_degree_of_longitude_at_equator():
    assert haversine_km(0, 0, 0, 1) == pytest.approx(111.19, abs=0.01)


def test_haversine_antipodal_points_give_half_circumference():
    assert haversine_km(-12, 0, 12, 180) == pytest.approx(math.pi * 6371.0, rel=1e-9)


def test_antipodal_pair_still_normalizes():
    out = normalize_rows([{
        "casualty_type": "Fire", "casualty_date": "2023-01-01",
        "latitude": -12, "longitude": 0, "latitude_2": 12, "longitude_2": 180,
    }])

    assert len(out) == 1
    assert out[0].distance_km == pytest.approx(20015.09, abs=0.01)


def test_haversine_same_point_is_zero():
    assert haversine_km(51.5, -0.1, 51.5, -0.1) == 0


def test_both_pairs_give_midpoint_and_distance():
    rows = [{"casualty_type": "Fire", "casualty_date": "2023-01-01",
             "latitude": 10, "longitude": 30, "latitude_2": 20, "longitude_2": 40}]

    [inc] = normalize_rows(rows)

    assert inc.midpoint_lat == 15
    assert inc.midpoint_lon == 35
    assert inc.distance_km == pytest.approx(haversine_km(10, 30, 20, 40))


def test_single_pair_is_its_own_midpoint():
    rows = [
        {"casualty_type": "Fire", "casualty_date": "2023-01-01", "latitude": 1, "longitude": 2},
        {"casualty_type": "Fire", "casualty_date": "2023-01-01", "latitude_2": -3, "longitude_2": 4},
    ]

    first, second = normalize_rows(rows)

    assert (first.midpoint_lat, first.midpoint_lon, first.distance_km) == (1, 2, 0)
    assert (second.midpoint_lat, second.midpoint_lon, second.distance_km) == (-3, 4, 0)


def test_rows_without_full_pair_are_dropped():
    rows = [
        {"casualty_type": "Fire", "casualty_date": "2023-01-01"},
        {"casualty_type": "Fire", "casualty_date": "2023-01-01", "latitude": 5, "longitude": None},
        {"casualty_type": "Fire", "casualty_date": "2023-01-01", "latitude": 5, "longitude_2": 6},
        {"casualty_type": "Sank", "casualty_date": "2023-01-01", "latitude": "5.5", "longitude": "6.5"},
    ]

    out = normalize_rows(rows)

    assert [i.casualty_type for i in out] == ["Sank"]
    assert out[0].incident_id == 3
    assert out[0].midpoint_lat == 5.5


def test_renormalizing_output_changes_nothing():
    rows = [
        {"casualty_type": "Fire", "casualty_date": "2023-01-01", "vessel_name": "A",
         "latitude": 10, "longitude": 30, "latitude_2": 20, "longitude_2": 40},
        {"casualty_type": "Fire", "casualty_date": "2023-01-01"},
        {"casualty_type": "Sank", "casualty_date": "bad", "imo": 1234567.0,
         "latitude_2": 1, "longitude_2": 2},
    ]
    once = normalize_rows(rows)

    twice = normalize_rows([i.to_row() for i in once])

    assert [i.to_row() for i in twice] == [i.to_row() for i in once]
    assert [(i.midpoint_lat, i.midpoint_lon, i.distance_km) for i in twice] == \
        [(i.midpoint_lat, i.midpoint_lon, i.distance_km) for i in once]


def test_non_mapping_row_fails_the_load():
    with pytest.raises(MalformedRow):
        normalize_rows([["Fire", "2023-01-01", 1, 2]])


def test_missing_optional_fields_are_absent_not_errors():
    [inc] = normalize_rows([{"casualty_type": "Fire", "casualty_date": "2023-01-01",
                             "latitude": 1, "longitude": 2, "flag": float("nan"), "mmsi": ""}])

    assert inc.flag is None
    assert inc.mmsi is None
    assert inc.vessel_name is None
    assert inc.vessel_key() == ("", "")


def test_identity_numbers_read_as_floats_stay_integral():
    [inc] = normalize_rows([{"casualty_type": "Fire", "casualty_date": "2023-01-01",
                             "latitude": 1, "longitude": 2, "imo": 9234567.0,
                             "mmsi": 351000001, "build_year": "1998.0"}])

    assert inc.imo == "9234567"
    assert inc.mmsi == "351000001"
    assert inc.build_year == 1998


def test_headers_are_matched_loosely():
    [inc] = normalize_rows([{"Casualty Type": "Fire", "Casualty Date": "2023-01-01",
                             "Vessel Name": "Example", "LAT": 1, "lng": 2}])

    assert inc.vessel_name == "Example"
    assert inc.casualty_type == "Fire"
    assert (inc.midpoint_lat, inc.midpoint_lon) == (1, 2)


def test_parse_timestamp():
    assert parse_timestamp("2023-01-05") == datetime(2023, 1, 5)
    assert parse_timestamp("2023-01-05T12:00:00+02:00") == datetime(2023, 1, 5, 10, 0)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_unparseable_date_is_kept():
    [inc] = normalize_rows([{"casualty_type": "Fire", "casualty_date": "unknown",
                             "latitude": 1, "longitude": 2}])

    assert inc.casualty_date == "unknown"
    assert inc.casualty_at is None


def test_parse_csv_text():
    out = parse_csv_text(CSV_TEXT)

    assert [i.vessel_name for i in out] == ["Example", "Alpha Star"]
    example, alpha = out
    assert example.imo == "9234567"
    assert example.mmsi == "351000001"
    assert example.flag == "Panama"
    assert example.casualty_at == datetime(2023, 1, 5)
    assert alpha.flag is None
    assert (alpha.midpoint_lat, alpha.midpoint_lon) == (1.5, 2.5)


def test_empty_csv_is_a_load_failure():
    with pytest.raises(LoadFailure):
        parse_csv_text("   \n")


def test_csv_without_required_columns_is_a_load_failure():
    with pytest.raises(LoadFailure):
        parse_csv_text("vessel_name,latitude,longitude\nExample,1,2\n")


def test_csv_without_coordinate_columns_is_a_load_failure():
    with pytest.raises(LoadFailure):
        parse_csv_text("casualty_type,casualty_date,latitude\nFire,2023-01-01,1\n")


def test_load_incidents_file_csv(tmp_path):
    path = tmp_path / "merged.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    out = load_incidents_file(str(path))

    assert len(out) == 2


def test_load_incidents_file_rejects_unknown_suffix(tmp_path):
    path = tmp_path / "merged.txt"
    path.write_text(CSV_TEXT, encoding="utf-8")

    with pytest.raises(LoadFailure):
        load_incidents_file(str(path))


def test_load_incidents_file_missing_file(tmp_path):
    with pytest.raises(LoadFailure):
        load_incidents_file(str(tmp_path / "absent.csv"))


def test_namibian_flag_is_not_read_as_missing():
    text = "casualty_type,casualty_date,flag,latitude,longitude\nGrounding,2023-05-02,NA,-22.9,14.5\n"

    out = parse_csv_text(text)

    assert out[0].flag == "NA"


def test_load_incidents_file_xlsx(tmp_path):
    path = tmp_path / "merged.xlsx"
    pd.DataFrame([
        {"IMO": 9234567, "Vessel Name": "Example", "casualty_type": "Fire", "casualty_date": "2023-01-05",
         "flag": "NA", "latitude": 10.0, "longitude": 20.0},
        {"IMO": None, "Vessel Name": "Nowhere", "casualty_type": "Sank", "casualty_date": "2023-02-01",
         "flag": None, "latitude": None, "longitude": None},
    ]).to_excel(path, index=False)

    out = load_incidents_file(str(path))

    assert len(out) == 1
    assert out[0].imo == "9234567"
    assert out[0].vessel_name == "Example"
    assert out[0].flag == "NA"
    assert out[0].midpoint_lat == 10.0
