# quake_dashboard/selection.py
from __future__ import annotations
from threading import Lock
from typing import Callable, List, Optional

from quake_dashboard.records import Quake

Listener = Callable[[Optional[Quake]], None]

class SelectionStore:
    """
    The one "currently selected record" shared by the chart, the table
    and the detail modal. Views subscribe and are told about every change.
    """

    def __init__(self) -> None:
        self._selected: Optional[Quake] = None
        self._listeners: List[Listener] = []
        self._lock = Lock()

    @property
    def selected(self) -> Optional[Quake]:
        with self._lock:
            return self._selected

    def select(self, quake: Optional[Quake]) -> bool:
        """Returns True if the selection changed."""
        with self._lock:
            prev = self._selected
            if _same(prev, quake):
                return False
            self._selected = quake
            listeners = list(self._listeners)
        # listeners may read the store, so call them unlocked
        for fn in listeners:
            fn(quake)
        return True

    def clear(self) -> bool:
        return self.select(None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

def _same(a: Optional[Quake], b: Optional[Quake]) -> bool:
    if a is None or b is None:
        return a is b
    if a.id or b.id:
        return a.id == b.id
    # records without an id are told apart by content
    return a == b
