import threading

import pytest

from flowgrid.sample import generate_sample_snapshot
from flowgrid.store import LayoutStore


def test_store_returns_copies():
    store = LayoutStore([generate_sample_snapshot()])
    snapshot = store.get("sample")
    snapshot.zones.clear()
    assert len(store.get("sample").zones) == 6


def test_create_assigns_new_id():
    store = LayoutStore()
    stored = store.create(generate_sample_snapshot())
    assert stored.id != "sample"
    assert stored.id in store
    assert len(store) == 1


def test_missing_layout_raises_key_error():
    store = LayoutStore()
    with pytest.raises(KeyError):
        store.get("nope")
    with pytest.raises(KeyError):
        store.dismiss_flag("nope", "flag")


def test_dismiss_and_restore_flags():
    store = LayoutStore([generate_sample_snapshot()])
    assert store.dismiss_flag("sample", "path-no-forklift-x") == ["path-no-forklift-x"]
    assert store.dismiss_flag("sample", "path-no-forklift-x") == ["path-no-forklift-x"]
    assert store.get("sample").dismissed_flags == ["path-no-forklift-x"]
    assert store.restore_flag("sample", "path-no-forklift-x") == []
    assert store.restore_flag("sample", "path-no-forklift-x") == []


def test_put_and_delete():
    store = LayoutStore()
    renamed = generate_sample_snapshot({"name": "Second shift"})
    store.put("shift-2", renamed)
    assert store.get("shift-2").name == "Second shift"
    assert [s.id for s in store.list()] == ["shift-2"]
    store.delete("shift-2")
    assert "shift-2" not in store


def test_membership_checks_wait_for_the_lock():
    store = LayoutStore([generate_sample_snapshot()])
    results = []
    with store._lock:
        worker = threading.Thread(target=lambda: results.append(("sample" in store, len(store))))
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
    worker.join(timeout=5)
    assert results == [(True, 1)]
