# quake_dashboard/details.py
from __future__ import annotations
from datetime import datetime, tzinfo
from typing import Any, List, Optional, Tuple

from quake_dashboard.records import Quake

MISSING = "-"

def format_time(value: Any, tz: Optional[tzinfo] = None) -> str:
    """
    ISO-8601 text -> "Nov 15, 2025 09:03:25" in `tz` (server local time
    when None). Text without an offset is taken as local time. Text that
    does not parse is returned unchanged.
    """
    if value is None or value == "":
        return ""
    s = str(value).strip()
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return s
    if dt.tzinfo is None:
        # text without an offset is wall-clock time in the server's zone
        dt = dt.astimezone()
    dt = dt.astimezone(tz)
    return f"{dt:%b} {dt.day}, {dt.year} {dt:%H:%M:%S}"

def format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

def _or_missing(value: Any) -> str:
    return MISSING if value is None else str(value)

def detail_title(quake: Quake) -> str:
    return quake.place or "Event details"

def detail_fields(quake: Quake, tz: Optional[tzinfo] = None) -> List[Tuple[str, str]]:
    """Label/value pairs shown in the detail modal, in display order."""
    return [
        ("ID", quake.id),
        ("Time", format_time(quake.time, tz)),
        ("Updated", format_time(quake.updated, tz)),
        ("Magnitude", f"{quake.mag:.2f}"),
        ("Type", _or_missing(quake.event_type)),
        ("Depth (km)", format_number(quake.depth)),
        ("Coordinates", f"{format_number(quake.latitude)}, {format_number(quake.longitude)}"),
        ("Status", _or_missing(quake.status)),
        ("Network", _or_missing(quake.net)),
        ("Mag source", _or_missing(quake.mag_source)),
    ]
