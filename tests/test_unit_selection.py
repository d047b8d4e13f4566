from quake_dashboard.selection import SelectionStore

from conftest import make_quake

def test_listeners_hear_each_change_once():
    store = SelectionStore()
    seen = []
    store.subscribe(lambda q: seen.append(q.id if q else None))

    a = make_quake("a")
    assert store.select(a)
    assert not store.select(make_quake("a"))
    assert store.select(make_quake("b"))
    assert store.clear()
    assert not store.clear()
    assert seen == ["a", "b", None]
    assert store.selected is None

def test_listeners_called_in_order_and_may_read_store():
    store = SelectionStore()
    order = []
    store.subscribe(lambda q: order.append(("first", store.selected.id)))
    store.subscribe(lambda q: order.append(("second", store.selected.id)))
    store.select(make_quake("z"))
    assert order == [("first", "z"), ("second", "z")]

def test_unsubscribe():
    store = SelectionStore()
    seen = []
    off = store.subscribe(seen.append)
    store.select(make_quake("a"))
    off()
    off()
    store.select(make_quake("b"))
    assert len(seen) == 1
    assert store.selected.id == "b"

def test_records_without_id_are_told_apart_by_content():
    store = SelectionStore()
    seen = []
    store.subscribe(lambda q: seen.append(q.place if q else None))

    assert store.select(make_quake("", place="North"))
    assert not store.select(make_quake("", place="North"))
    assert store.select(make_quake("", place="South"))
    assert store.select(make_quake("x1", place="South"))
    assert seen == ["North", "South", "South"]
