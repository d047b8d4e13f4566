# quake_dashboard/records.py
from __future__ import annotations
import io
import logging
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

# numeric fields a chart axis can be bound to, in menu order
NUMERIC_FIELDS: Tuple[str, ...] = (
    "latitude",
    "longitude",
    "depth",
    "mag",
    "nst",
    "gap",
    "dmin",
    "rms",
    "horizontal_error",
    "depth_error",
    "mag_error",
    "mag_nst",
)

@dataclass(frozen=True)
class Quake:
    id: str
    time: str
    updated: str
    latitude: float
    longitude: float
    depth: float
    mag: float
    mag_type: Optional[str] = None
    nst: Optional[float] = None
    gap: Optional[float] = None
    dmin: Optional[float] = None
    rms: Optional[float] = None
    net: Optional[str] = None
    place: Optional[str] = None
    event_type: Optional[str] = None
    horizontal_error: Optional[float] = None
    depth_error: Optional[float] = None
    mag_error: Optional[float] = None
    mag_nst: Optional[float] = None
    status: Optional[str] = None
    location_source: Optional[str] = None
    mag_source: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

def parse_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None

def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    s = str(value).strip()
    return s or None

def _timestamp(value: Any) -> str:
    # GeoJSON carries epoch millis, CSV carries ISO-8601 text
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return ""
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return ""
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return _text(value) or ""

def _pick(raw: Mapping[str, Any], props: Mapping[str, Any], key: str) -> Any:
    value = raw.get(key)
    if value is None:
        value = props.get(key)
    return value

def normalize_row(raw: Mapping[str, Any]) -> Quake:
    """
    Build a Quake from a flat CSV row, a GeoJSON feature or a bare
    properties mapping. Flat keys win over properties, properties win
    over geometry coordinates.
    """
    props = raw.get("properties")
    if not isinstance(props, Mapping):
        props = {}
    geom = raw.get("geometry")
    coords = geom.get("coordinates") if isinstance(geom, Mapping) else None
    if not isinstance(coords, (list, tuple)):
        coords = []

    def coord(i: int) -> Any:
        return coords[i] if len(coords) > i else None

    def number(key: str, fallback: Any = None) -> Optional[float]:
        n = parse_number(_pick(raw, props, key))
        return n if n is not None else parse_number(fallback)

    rid = raw.get("id")
    if rid is None:
        rid = props.get("id")
    if rid is None:
        rid = props.get("eventId")

    # a GeoJSON feature carries its own "type": "Feature"
    kind = raw.get("type")
    if kind is None or kind == "Feature":
        kind = props.get("type")

    return Quake(
        id=_text(rid) or "",
        time=_timestamp(_pick(raw, props, "time")),
        updated=_timestamp(_pick(raw, props, "updated")),
        latitude=number("latitude", coord(1)) or 0.0,
        longitude=number("longitude", coord(0)) or 0.0,
        depth=number("depth", coord(2)) or 0.0,
        mag=number("mag") or 0.0,
        mag_type=_text(_pick(raw, props, "magType")),
        nst=number("nst"),
        gap=number("gap"),
        dmin=number("dmin"),
        rms=number("rms"),
        net=_text(_pick(raw, props, "net")),
        place=_text(_pick(raw, props, "place")),
        event_type=_text(kind),
        horizontal_error=number("horizontalError"),
        depth_error=number("depthError"),
        mag_error=number("magError"),
        mag_nst=number("magNst"),
        status=_text(_pick(raw, props, "status")),
        location_source=_text(_pick(raw, props, "locationSource")),
        mag_source=_text(_pick(raw, props, "magSource")),
    )

def parse_geojson(payload: Any) -> List[Quake]:
    if not payload:
        return []
    if isinstance(payload, Mapping) and payload.get("type") == "FeatureCollection":
        feats = payload.get("features") or []
        return [normalize_row(f) for f in feats if isinstance(f, Mapping)]
    if isinstance(payload, list):
        return [normalize_row(item) for item in payload if isinstance(item, Mapping)]
    if isinstance(payload, Mapping):
        return [normalize_row(payload)]
    return []

def parse_csv(text: str) -> List[Quake]:
    if not text or not text.strip():
        return []

    skipped: List[List[str]] = []

    def on_bad_line(fields: List[str]) -> None:
        skipped.append(fields)
        return None

    try:
        frame = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=on_bad_line,
        )
    except pd.errors.EmptyDataError:
        return []

    if skipped:
        logger.warning("CSV parse: skipped %d malformed row(s)", len(skipped))

    # an odd quote count means the last quoted field never closed and
    # the reader swallowed the rest of the file into it
    if text.count('"') % 2:
        logger.warning("CSV parse: unterminated quoted field, trailing row(s) dropped")

    # short rows come back NaN-padded
    frame = frame.fillna("")
    frame.columns = [str(c).strip() for c in frame.columns]
    return [normalize_row(row) for row in frame.to_dict(orient="records")]
