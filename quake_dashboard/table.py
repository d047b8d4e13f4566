# quake_dashboard/table.py
from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Dict, Iterable, List, Optional

from quake_dashboard.details import format_number, format_time
from quake_dashboard.records import Quake

TABLE_COLUMNS: Dict[str, str] = {
    "time": "Time",
    "longitude": "Longitude",
    "latitude": "Latitude",
    "depth": "Depth (km)",
    "mag": "Magnitude",
    "place": "Place",
}

PAGE_SIZES = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 50

@dataclass(frozen=True)
class TableRow:
    quake: Quake
    cells: List[str]
    selected: bool = False

def _sort_value(quake: Quake, key: str) -> Any:
    value = getattr(quake, key)
    if isinstance(value, str):
        return value.casefold() or None
    return value

class TableView:
    """
    Client-side pagination and column sorting over the loaded records.
    `page` is what the user asked for; `effective_page` is that page
    clamped into range, which is what gets rendered.
    """

    def __init__(self, records: Iterable[Quake] = (), page_size: int = DEFAULT_PAGE_SIZE,
                 tz: Optional[tzinfo] = None):
        if page_size not in PAGE_SIZES:
            raise ValueError(f"page size must be one of {PAGE_SIZES}")
        self.page_size = page_size
        self.page = 0
        self.sort_key: Optional[str] = None
        self.descending = False
        self.tz = tz
        self._records: List[Quake] = list(records)
        self._ordered: Optional[List[Quake]] = None

    def set_records(self, records: Iterable[Quake]) -> None:
        self._records = list(records)
        self._ordered = None
        self.page = 0

    @property
    def records(self) -> List[Quake]:
        """Records in display order."""
        if self._ordered is None:
            self._ordered = self._sorted()
        return self._ordered

    def _sorted(self) -> List[Quake]:
        if self.sort_key is None:
            return list(self._records)
        key = self.sort_key
        present = [q for q in self._records if _sort_value(q, key) is not None]
        missing = [q for q in self._records if _sort_value(q, key) is None]
        present.sort(key=lambda q: _sort_value(q, key), reverse=self.descending)
        return present + missing

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self._records) / self.page_size))

    @property
    def effective_page(self) -> int:
        return max(0, min(self.page, self.total_pages - 1))

    def next_page(self) -> None:
        self.page = min(self.total_pages - 1, self.effective_page + 1)

    def prev_page(self) -> None:
        self.page = max(0, self.effective_page - 1)

    def go_to(self, page: int) -> None:
        self.page = max(0, min(int(page), self.total_pages - 1))

    def set_page_size(self, size: int) -> None:
        if size not in PAGE_SIZES:
            raise ValueError(f"page size must be one of {PAGE_SIZES}")
        self.page_size = size
        self.page = 0

    def sort_by(self, key: Optional[str]) -> None:
        """Header click: new column sorts ascending, same column flips."""
        if key is None:
            self.sort_key = None
            self.descending = False
        elif key not in TABLE_COLUMNS:
            raise ValueError(f"cannot sort by {key!r}")
        elif key == self.sort_key:
            self.descending = not self.descending
        else:
            self.sort_key = key
            self.descending = False
        self._ordered = None
        self.page = 0

    def index_of(self, record_id: str) -> Optional[int]:
        for i, q in enumerate(self.records):
            if q.id == record_id:
                return i
        return None

    def _position(self, quake: Quake) -> Optional[int]:
        if quake.id:
            return self.index_of(quake.id)
        for i, q in enumerate(self.records):
            if q is quake or q == quake:
                return i
        return None

    def follow_selection(self, quake: Optional[Quake]) -> None:
        # bring the selected record onto the visible page
        if quake is None:
            return
        idx = self._position(quake)
        if idx is None:
            return
        self.page = idx // self.page_size

    def cell(self, quake: Quake, key: str) -> str:
        if key == "time":
            return format_time(quake.time, self.tz)
        value = getattr(quake, key)
        if isinstance(value, float):
            return format_number(value)
        return "" if value is None else str(value)

    def rows(self, selected_id: Optional[str] = None, selected: Optional[Quake] = None) -> List[TableRow]:
        def is_selected(q: Quake) -> bool:
            if selected is not None:
                return q.id == selected.id if selected.id else q == selected
            return selected_id is not None and q.id == selected_id

        start = self.effective_page * self.page_size
        return [
            TableRow(
                quake=q,
                cells=[self.cell(q, key) for key in TABLE_COLUMNS],
                selected=is_selected(q),
            )
            for q in self.records[start:start + self.page_size]
        ]
