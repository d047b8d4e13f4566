# quake_dashboard/events.py
from __future__ import annotations
from collections import deque
from itertools import count
from threading import Lock
from time import time
from typing import List, Optional

class EventBus:
    """
    Bounded in-memory log of dashboard events (FeedLoaded, FeedFailed,
    SelectionChanged). Events are tagged with the browser session that
    caused them so the page can tail only its own.
    """

    def __init__(self, maxlen: int = 1000):
        self._q = deque(maxlen=maxlen)
        self._lock = Lock()
        self._seq = count(1)

    def publish(self, ev: dict, session: Optional[str] = None) -> dict:
        ev.setdefault("ts_ms", int(time() * 1000))
        if session is not None:
            ev["session"] = session
        with self._lock:
            ev["seq"] = next(self._seq)
            self._q.append(ev)
        return ev

    def tail(self, n: int = 50, session: Optional[str] = None, after: int = 0) -> List[dict]:
        with self._lock:
            events = list(self._q)
        if session is not None:
            events = [e for e in events if e.get("session") == session]
        if after:
            events = [e for e in events if e["seq"] > after]
        return events[-n:] if n > 0 else []

bus = EventBus()
