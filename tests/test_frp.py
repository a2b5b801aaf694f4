import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from core.domain import Product
from core.frp import (
    ACTIVITY_LIMIT,
    ENTITY_ADDED,
    ActivityFeed,
    EventBus,
    apply_events,
    create_dashboard_event_bus,
    create_event,
    initial_state,
)
from core.store import EntityStore


def make_product(pid):
    return Product(pid, f"P{pid}", "Misc", 1.0, 1, "active")


def test_eventbus_immutability():
    """EventBus должен быть иммутабельным"""
    bus1 = EventBus()
    bus2 = bus1.subscribe("TEST", lambda e, s: s)

    assert bus1.subscribers == ()
    assert len(bus2.subscribers) == 1
    assert bus1 is not bus2


def test_added_event_goes_to_activity():
    bus = create_dashboard_event_bus()
    event = create_event(ENTITY_ADDED, {"kind": "Product", "id": "1"})

    state = bus.publish(event, initial_state())

    assert state["activity"][0]["action"] == "added"
    assert state["activity"][0]["entity_id"] == "1"
    assert state["revision"] == 1
    assert state["last_event"] == ENTITY_ADDED


def test_unknown_event_leaves_state():
    state = initial_state()
    assert create_dashboard_event_bus().publish(create_event("OTHER", {}), state) == state


def test_apply_events_fold():
    events = tuple(
        create_event(ENTITY_ADDED, {"kind": "Order", "id": str(i)}) for i in range(3)
    )
    state = apply_events(create_dashboard_event_bus(), events, initial_state())
    assert [e["entity_id"] for e in state["activity"]] == ["2", "1", "0"]


def test_feed_follows_store_changes():
    feed = ActivityFeed()
    store = EntityStore("Product", on_change=feed)

    store.replace_all((make_product("1"), make_product("2")))
    store.append(make_product("3"))
    store.remove("1")

    assert [(e["action"], e["entity_id"]) for e in feed.activity] == [
        ("removed", "1"),
        ("added", "3"),
    ]
    assert feed.state["counts"] == {"Product": 2}
    assert feed.revision == 3


def test_activity_is_capped():
    feed = ActivityFeed()
    store = EntityStore("Product", on_change=feed)
    for i in range(ACTIVITY_LIMIT + 5):
        store.append(make_product(str(i)))

    assert len(feed.activity) == ACTIVITY_LIMIT
    assert feed.activity[0]["entity_id"] == str(ACTIVITY_LIMIT + 4)
