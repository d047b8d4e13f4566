# quake_dashboard/session.py
from __future__ import annotations
import logging
import uuid
from collections import OrderedDict
from threading import Lock, RLock
from typing import List, Optional, Tuple

import httpx

from quake_dashboard.chart import ChartView
from quake_dashboard.config import Settings
from quake_dashboard.events import EventBus, bus as default_bus
from quake_dashboard.records import Quake
from quake_dashboard.selection import SelectionStore
from quake_dashboard.table import TableView
from quake_dashboard.usgs import FeedError, fetch_quakes

logger = logging.getLogger(__name__)

# gate -> loading -> ready | error
GATE, LOADING, READY, ERROR = "gate", "loading", "ready", "error"

class DashboardSession:
    """
    Everything one browser session sees: chosen period, loaded records,
    and the chart/table/modal state hanging off one SelectionStore.
    """

    def __init__(self, session_id: str, settings: Settings, events: Optional[EventBus] = None):
        self.id = session_id
        self.settings = settings
        self.events = events or default_bus
        self.lock = RLock()

        self.period: Optional[str] = None
        self.status = GATE
        self.error: Optional[str] = None
        self.records: List[Quake] = []
        self._generation = 0

        self.selection = SelectionStore()
        self.chart = ChartView()
        self.table = TableView(page_size=settings.page_size, tz=settings.tzinfo())
        self.selection.subscribe(self.table.follow_selection)
        self.selection.subscribe(self._announce_selection)

    @property
    def feed_url(self) -> Optional[str]:
        if self.period is None:
            return None
        return self.settings.period_urls()[self.period]

    @property
    def selected(self) -> Optional[Quake]:
        return self.selection.selected

    def choose_period(self, period: str) -> None:
        if period not in self.settings.period_urls():
            raise ValueError(f"unknown period {period!r}")
        self._generation += 1
        self.period = period
        self.status = LOADING
        self.error = None
        self._replace_records([])

    def reset(self) -> None:
        self._generation += 1
        self.period = None
        self.status = GATE
        self.error = None
        self._replace_records([])

    def load(self, client: Optional[httpx.Client] = None) -> List[Quake]:
        """
        Fetch the chosen period's feed. The network call runs without the
        session lock; the result is applied only if the period was not
        changed or reset meanwhile. Raises FeedError after recording it.
        """
        with self.lock:
            url = self.feed_url
            if url is None:
                raise ValueError("no period chosen")
            self.status = LOADING
            self._generation += 1
            generation = self._generation
            period = self.period

        try:
            quakes = fetch_quakes(url, timeout=self.settings.fetch_timeout, client=client)
        except FeedError as exc:
            with self.lock:
                if generation == self._generation:
                    self.status = ERROR
                    self.error = str(exc)
                    self._replace_records([])
            self.events.publish({"type": "FeedFailed", "period": period, "error": str(exc)}, session=self.id)
            raise

        with self.lock:
            if generation != self._generation:
                logger.info("discarding stale %s feed for session %s", period, self.id)
                return quakes
            self._replace_records(quakes)
            self.status = READY
        self.events.publish({"type": "FeedLoaded", "period": period, "count": len(quakes)}, session=self.id)
        return quakes

    def find(self, record_id: str) -> Optional[Quake]:
        for q in self.records:
            if q.id == record_id:
                return q
        return None

    def select(self, record_id: str) -> Quake:
        quake = self.find(record_id)
        if quake is None:
            raise KeyError(record_id)
        self.selection.select(quake)
        return quake

    def _replace_records(self, quakes: List[Quake]) -> None:
        self.records = list(quakes)
        self.table.set_records(self.records)
        self.selection.clear()

    def _announce_selection(self, quake: Optional[Quake]) -> None:
        self.events.publish(
            {"type": "SelectionChanged", "id": quake.id if quake else None},
            session=self.id,
        )

class SessionRegistry:
    """In-memory session id -> DashboardSession, least recently used dropped first."""

    def __init__(self, settings: Settings, max_sessions: int = 1000, events: Optional[EventBus] = None):
        self.settings = settings
        self.max_sessions = max_sessions
        self.events = events
        self._sessions: "OrderedDict[str, DashboardSession]" = OrderedDict()
        self._lock = Lock()

    def get_or_create(self, session_id: Optional[str]) -> Tuple[DashboardSession, bool]:
        with self._lock:
            if session_id and session_id in self._sessions:
                self._sessions.move_to_end(session_id)
                return self._sessions[session_id], False
            sid = uuid.uuid4().hex
            session = DashboardSession(sid, self.settings, events=self.events)
            self._sessions[sid] = session
            while len(self._sessions) > self.max_sessions:
                dropped, _ = self._sessions.popitem(last=False)
                logger.info("dropped idle session %s", dropped)
            return session, True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
