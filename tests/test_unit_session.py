import threading

import pytest
import respx
from httpx import Response

from quake_dashboard.config import Settings
from quake_dashboard.events import EventBus
from quake_dashboard.session import DashboardSession, SessionRegistry
from quake_dashboard.usgs import FeedError, PERIOD_FEEDS

from conftest import USGS_CSV, csv_feed

def new_session():
    return DashboardSession("s1", Settings(), events=EventBus())

def test_gate_until_period_chosen():
    s = new_session()
    assert s.status == "gate"
    assert s.feed_url is None
    with pytest.raises(ValueError):
        s.load()
    with pytest.raises(ValueError):
        s.choose_period("year")
    s.choose_period("month")
    assert s.status == "loading"
    assert s.feed_url == PERIOD_FEEDS["month"]

@respx.mock
def test_load_then_select_syncs_table_and_events():
    respx.get(PERIOD_FEEDS["day"]).mock(return_value=Response(200, text=csv_feed(60)))
    s = new_session()
    s.choose_period("day")
    quakes = s.load()
    assert len(quakes) == 60
    assert s.status == "ready"

    s.select("q55")
    assert s.selected.id == "q55"
    assert s.table.effective_page == 1

    with pytest.raises(KeyError):
        s.select("nope")
    assert s.selected.id == "q55"

    kinds = [e["type"] for e in s.events.tail(10, session="s1")]
    assert kinds == ["FeedLoaded", "SelectionChanged"]

@respx.mock
def test_failed_load_records_error_and_clears_data():
    respx.get(PERIOD_FEEDS["day"]).mock(side_effect=[
        Response(200, text=USGS_CSV),
        Response(500),
    ])
    s = new_session()
    s.choose_period("day")
    s.load()
    s.select("ak0251")

    with pytest.raises(FeedError):
        s.load()
    assert s.status == "error"
    assert s.error == "Failed to fetch earthquakes: 500 Internal Server Error"
    assert s.records == []
    assert s.selected is None

@respx.mock
def test_undecodable_feed_moves_loading_to_error():
    url = "http://feeds.test/day.geojson"
    respx.get(url).mock(
        return_value=Response(200, text="{not json", headers={"content-type": "application/json"})
    )
    s = DashboardSession("s1", Settings(feed_day_url=url), events=EventBus())
    s.choose_period("day")
    assert s.status == "loading"
    with pytest.raises(FeedError):
        s.load()
    assert s.status == "error"
    assert s.error.startswith("Failed to decode earthquake feed")
    assert [e["type"] for e in s.events.tail(5, session="s1")] == ["FeedFailed"]

@respx.mock
def test_fetch_runs_without_the_session_lock():
    s = new_session()
    lock_free = []

    def try_lock():
        got = s.lock.acquire(timeout=1)
        if got:
            s.lock.release()
        lock_free.append(got)

    def respond(request):
        # another thread must be able to take the lock mid-fetch
        t = threading.Thread(target=try_lock)
        t.start()
        t.join()
        return Response(200, text=USGS_CSV)

    respx.get(PERIOD_FEEDS["day"]).mock(side_effect=respond)
    s.choose_period("day")
    s.load()
    assert lock_free == [True]
    assert s.status == "ready"

@respx.mock
def test_result_of_superseded_load_is_discarded():
    s = new_session()

    def respond(request):
        s.reset()
        return Response(200, text=USGS_CSV)

    respx.get(PERIOD_FEEDS["day"]).mock(side_effect=respond)
    s.choose_period("day")
    quakes = s.load()
    assert len(quakes) == 2
    assert (s.status, s.period, s.records) == ("gate", None, [])
    assert s.events.tail(5, session="s1") == []

def test_reset_goes_back_to_gate():
    s = new_session()
    s.choose_period("day")
    s.reset()
    assert (s.status, s.period) == ("gate", None)

def test_registry_reuses_and_evicts():
    reg = SessionRegistry(Settings(), max_sessions=2, events=EventBus())
    a, created = reg.get_or_create(None)
    assert created
    again, created = reg.get_or_create(a.id)
    assert again is a and not created
    reg.get_or_create(None)
    reg.get_or_create(None)
    assert len(reg) == 2
    _, created = reg.get_or_create(a.id)
    assert created
