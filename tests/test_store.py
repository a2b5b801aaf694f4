import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest

from core.domain import Product
from core.frp import ENTITY_ADDED, ENTITY_REMOVED, ENTITY_REPLACED_ALL, ENTITY_UPDATED
from core.store import EntityStore


def make_product(pid, **overrides):
    fields = dict(name=f"Product {pid}", category="Misc", price=10.0, stock=5, status="active")
    fields.update(overrides)
    return Product(id=pid, **fields)


@pytest.fixture
def events():
    return []


@pytest.fixture
def store(events):
    return EntityStore(
        "Product",
        (make_product("1"), make_product("2")),
        on_change=events.append,
    )


def test_append_keeps_order(store):
    store.append(make_product("3"))
    assert store.ids() == ("1", "2", "3")


def test_append_duplicate_id_rejected(store):
    with pytest.raises(ValueError):
        store.append(make_product("1"))
    assert len(store) == 2


def test_replace_all_rejects_duplicates(store):
    with pytest.raises(ValueError):
        store.replace_all((make_product("9"), make_product("9")))
    assert store.ids() == ("1", "2")


def test_merge_updates_fields(store):
    result = store.merge("2", {"stock": 0, "name": "Renamed"})
    assert result.is_some()
    assert store.get("2").value.stock == 0
    assert store.get("2").value.name == "Renamed"
    assert store.get("2").value.status == "active"


def test_merge_unknown_id_is_nothing(store, events):
    assert store.merge("missing", {"stock": 1}).is_none()
    assert events == []


def test_merge_cannot_change_id(store):
    with pytest.raises(ValueError):
        store.merge("1", {"id": "2"})


def test_merge_invalid_value_leaves_store_untouched(store):
    with pytest.raises(ValueError):
        store.merge("1", {"status": "sold"})
    assert store.get("1").value.status == "active"


def test_remove(store):
    removed = store.remove("1")
    assert removed.value.id == "1"
    assert "1" not in store
    assert store.remove("1").is_none()


def test_items_is_a_snapshot(store):
    before = store.items
    store.append(make_product("3"))
    assert len(before) == 2
    assert len(store.items) == 3


def test_events_published(store, events):
    store.append(make_product("3"))
    store.merge("3", {"stock": 1})
    store.remove("3")
    store.replace_all(())

    assert [e.name for e in events] == [
        ENTITY_ADDED,
        ENTITY_UPDATED,
        ENTITY_REMOVED,
        ENTITY_REPLACED_ALL,
    ]
    assert events[0].payload == {"kind": "Product", "id": "3"}
    assert events[-1].payload == {"kind": "Product", "count": 0}
