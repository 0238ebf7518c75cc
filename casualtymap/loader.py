"""
Dataset loader (CSV -> CasualtyIncident list)
=============================================

This module reads the casualty CSV export and converts each row into a
`CasualtyIncident` object.

Key ideas:
- Column names are matched loosely (`Vessel Name` == `vessel_name`) because
  exports vary.
- Conversion helpers (_to_float/_to_int/_to_str/_to_ident) treat blanks and
  NaN as absence, never as errors.
- A row is kept only if at least one coordinate pair is complete; the
  midpoint and haversine distance are computed here, once.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from datetime import datetime
from io import StringIO
from pathlib import Path
import logging
import math
import re

import pandas as pd

from .models import CasualtyIncident

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

# canonical field -> accepted header spellings
COLUMN_ALIASES: Dict[str, tuple] = {
    "imo": ("imo", "imo_number", "imo no"),
    "vessel_name": ("vessel_name", "vessel"),
    "casualty_type": ("casualty_type", "type"),
    "details": ("details", "description"),
    "casualty_date": ("casualty_date", "date"),
    "modified": ("modified",),
    "ingest_time": ("ingest_time",),
    "ship_type": ("ship_type", "vessel_type"),
    "mmsi": ("mmsi",),
    "flag": ("flag", "flag_state"),
    "call_sign": ("call_sign", "callsign"),
    "build_year": ("build_year", "year_built"),
    "timestamp": ("timestamp", "timestamp_1"),
    "latitude": ("latitude", "latitude_1", "lat"),
    "longitude": ("longitude", "longitude_1", "lon", "lng"),
    "timestamp_2": ("timestamp_2",),
    "latitude_2": ("latitude_2", "lat_2"),
    "longitude_2": ("longitude_2", "lon_2", "lng_2"),
}

REQUIRED_COLUMNS = ("casualty_type", "casualty_date")
COORDINATE_PAIRS = (("latitude", "longitude"), ("latitude_2", "longitude_2"))

# only blank cells are missing; "NA" is Namibia, not absence
_NA_VALUES = [""]


class LoadFailure(RuntimeError):
    """The dataset could not be fetched or parsed."""


class MalformedRow(LoadFailure):
    """A row whose structure cannot be read at all."""


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


_ALIAS_LOOKUP: Dict[str, str] = {
    _norm(alias): canonical
    for canonical, aliases in COLUMN_ALIASES.items()
    for alias in aliases
}


def _missing(x: Any) -> bool:
    if x is None:
        return True
    if isinstance(x, str):
        return not x.strip()
    return bool(pd.api.types.is_scalar(x) and pd.isna(x))


def _to_float(x) -> Optional[float]:
    """Convert a cell to float, returning None if missing/invalid."""
    if _missing(x): return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def _to_int(x) -> Optional[int]:
    v = _to_float(x)
    return int(v) if v is not None else None


def _to_str(x) -> Optional[str]:
    if _missing(x): return None
    return str(x).strip()


def _to_ident(x) -> Optional[str]:
    """Identity numbers (IMO, MMSI) may arrive as floats; keep them integral."""
    if _missing(x): return None
    if isinstance(x, float) and x.is_integer():
        return str(int(x))
    return str(x).strip()


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a date/time cell into a naive UTC datetime, or None."""
    if _missing(value):
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce", utc=True)
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.tz_convert(None).to_pydatetime()


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers between two (lat, lon) points in degrees."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlon / 2) ** 2
    # rounding can push a just past 1 for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _canonical_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in row.items():
        canonical = _ALIAS_LOOKUP.get(_norm(k))
        # first spelling wins when an export carries two aliases of one field
        if canonical and canonical not in out:
            out[canonical] = v
    return out


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> List[CasualtyIncident]:
    """Turn raw rows into incidents, dropping rows without a usable position.

    Raises:
        MalformedRow: if a row is not a column->value mapping.
    """
    incidents: List[CasualtyIncident] = []
    dropped = 0
    for i, raw in enumerate(rows):
        if not isinstance(raw, Mapping):
            raise MalformedRow(f"Row {i} is not a mapping: {type(raw).__name__}")
        row = _canonical_row(raw)

        lat1, lon1 = _to_float(row.get("latitude")), _to_float(row.get("longitude"))
        lat2, lon2 = _to_float(row.get("latitude_2")), _to_float(row.get("longitude_2"))
        has_first = lat1 is not None and lon1 is not None
        has_second = lat2 is not None and lon2 is not None

        if has_first and has_second:
            mid_lat = (lat1 + lat2) / 2
            mid_lon = (lon1 + lon2) / 2
            distance = haversine_km(lat1, lon1, lat2, lon2)
        elif has_first:
            mid_lat, mid_lon, distance = lat1, lon1, 0.0
        elif has_second:
            mid_lat, mid_lon, distance = lat2, lon2, 0.0
        else:
            dropped += 1
            continue

        casualty_date = _to_str(row.get("casualty_date")) or ""
        incidents.append(CasualtyIncident(
            incident_id=i,
            casualty_type=_to_str(row.get("casualty_type")) or "",
            casualty_date=casualty_date,
            casualty_at=parse_timestamp(casualty_date),
            details=_to_str(row.get("details")) or "",
            vessel_name=_to_str(row.get("vessel_name")),
            imo=_to_ident(row.get("imo")),
            mmsi=_to_ident(row.get("mmsi")),
            call_sign=_to_ident(row.get("call_sign")),
            flag=_to_str(row.get("flag")),
            ship_type=_to_str(row.get("ship_type")),
            build_year=_to_int(row.get("build_year")),
            latitude=lat1,
            longitude=lon1,
            timestamp=_to_str(row.get("timestamp")),
            latitude_2=lat2,
            longitude_2=lon2,
            timestamp_2=_to_str(row.get("timestamp_2")),
            modified=_to_str(row.get("modified")),
            ingest_time=_to_str(row.get("ingest_time")),
            midpoint_lat=mid_lat,
            midpoint_lon=mid_lon,
            distance_km=distance,
        ))

    if dropped:
        logger.info("Dropped %d rows without a usable coordinate pair", dropped)
    return incidents


def _check_columns(columns: Iterable[str]) -> None:
    present = {_ALIAS_LOOKUP.get(_norm(c)) for c in columns}
    missing = [c for c in REQUIRED_COLUMNS if c not in present]
    if missing:
        raise LoadFailure(f"Missing required column(s): {missing}. Available={list(columns)}")
    if not any(a in present and b in present for a, b in COORDINATE_PAIRS):
        raise LoadFailure(f"No complete coordinate column pair. Available={list(columns)}")


def _skip_bad_line(fields: List[str]) -> None:
    logger.warning("Skipping malformed CSV line with %d fields: %r", len(fields), fields[:3])
    return None


def _frame_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    _check_columns(df.columns)
    return df.to_dict(orient="records")


def read_csv_rows(text: str) -> List[Dict[str, Any]]:
    """Parse CSV text (header row + rows) into loosely typed row mappings.

    Lines with too many fields are skipped with a warning instead of failing
    the whole load.
    """
    if not text or not text.strip():
        raise LoadFailure("No data received: CSV text is empty")
    try:
        df = pd.read_csv(
            StringIO(text),
            skip_blank_lines=True,
            keep_default_na=False,
            na_values=_NA_VALUES,
            engine="python",
            on_bad_lines=_skip_bad_line,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise LoadFailure(f"Failed to parse CSV: {e}") from e
    return _frame_rows(df)


def parse_csv_text(text: str) -> List[CasualtyIncident]:
    incidents = normalize_rows(read_csv_rows(text))
    logger.info("Parsed %d incidents from CSV", len(incidents))
    return incidents


_FILE_READERS: Dict[str, Callable[[Path], pd.DataFrame]] = {
    ".csv": lambda p: pd.read_csv(p, skip_blank_lines=True, keep_default_na=False, na_values=_NA_VALUES,
                                  engine="python", on_bad_lines=_skip_bad_line),
    ".xlsx": lambda p: pd.read_excel(p, engine="openpyxl", keep_default_na=False, na_values=_NA_VALUES),
}


def load_incidents_file(path: str) -> List[CasualtyIncident]:
    """Load a local CSV or Excel snapshot of the casualty export."""
    p = Path(path)
    reader = _FILE_READERS.get(p.suffix.lower())
    if reader is None:
        raise LoadFailure(f"Unsupported file type: {p.suffix!r} (expected .csv or .xlsx)")
    try:
        df = reader(p)
    except (OSError, ValueError) as e:
        raise LoadFailure(f"Failed to read {p}: {e}") from e
    incidents = normalize_rows(_frame_rows(df))
    logger.info("Loaded %d incidents from %s", len(incidents), p)
    return incidents
