from dataclasses import dataclass
from datetime import datetime
from functools import reduce
from typing import Callable, Tuple
import uuid

from .domain import Event

ENTITY_ADDED = "ENTITY_ADDED"
ENTITY_UPDATED = "ENTITY_UPDATED"
ENTITY_REMOVED = "ENTITY_REMOVED"
ENTITY_REPLACED_ALL = "ENTITY_REPLACED_ALL"

ACTIVITY_LIMIT = 20


@dataclass(frozen=True)
class EventBus:
    """
    Иммутабельная шина событий стора.
    Подписчики - чистые функции: (Event, State) -> State
    """

    subscribers: Tuple[Tuple[str, Callable], ...] = ()

    def subscribe(
        self, event_name: str, handler: Callable[[Event, dict], dict]
    ) -> "EventBus":
        """Возвращает новую шину с добавленным подписчиком"""
        return EventBus(subscribers=self.subscribers + ((event_name, handler),))

    def publish(self, event: Event, state: dict) -> dict:
        """Применяет всех подписчиков события по очереди (fold), возвращает новое состояние"""
        handlers = tuple(h for name, h in self.subscribers if name == event.name)
        return reduce(lambda current, handler: handler(event, current), handlers, state)


def create_event(name: str, payload: dict) -> Event:
    """Создаёт событие с меткой времени"""
    return Event(
        id=str(uuid.uuid4()),
        ts=datetime.now().isoformat(),
        name=name,
        payload=payload,
    )


# ============ Обработчики событий стора ============


def _push_activity(state: dict, event: Event, action: str) -> dict:
    entry = {
        "kind": event.payload.get("kind"),
        "action": action,
        "entity_id": event.payload.get("id"),
        "ts": event.ts,
    }
    activity = ((entry,) + tuple(state.get("activity", ())))[:ACTIVITY_LIMIT]
    return {
        **state,
        "activity": activity,
        "revision": state.get("revision", 0) + 1,
        "last_event": event.name,
    }


def handle_entity_added(event: Event, state: dict) -> dict:
    return _push_activity(state, event, "added")


def handle_entity_updated(event: Event, state: dict) -> dict:
    return _push_activity(state, event, "updated")


def handle_entity_removed(event: Event, state: dict) -> dict:
    return _push_activity(state, event, "removed")


def handle_replaced_all(event: Event, state: dict) -> dict:
    """Полная перезагрузка списка не попадает в ленту, но двигает ревизию"""
    counts = {**state.get("counts", {}), event.payload.get("kind"): event.payload.get("count", 0)}
    return {
        **state,
        "counts": counts,
        "revision": state.get("revision", 0) + 1,
        "last_event": event.name,
    }


def create_dashboard_event_bus() -> EventBus:
    bus = EventBus()
    bus = bus.subscribe(ENTITY_ADDED, handle_entity_added)
    bus = bus.subscribe(ENTITY_UPDATED, handle_entity_updated)
    bus = bus.subscribe(ENTITY_REMOVED, handle_entity_removed)
    bus = bus.subscribe(ENTITY_REPLACED_ALL, handle_replaced_all)
    return bus


def initial_state() -> dict:
    return {
        "activity": (),
        "counts": {},
        "revision": 0,
        "last_event": None,
    }


def apply_events(bus: EventBus, events: Tuple[Event, ...], state: dict) -> dict:
    """(events, initial_state) -> final_state"""
    return reduce(lambda s, e: bus.publish(e, s), events, state)


class ActivityFeed:
    """
    Изменяемая оболочка над шиной: стор отдаёт сюда события,
    UI читает state (аналог перерисовки по изменению стора).
    """

    def __init__(self, bus: EventBus = None):
        self.bus = bus or create_dashboard_event_bus()
        self.state = initial_state()

    def __call__(self, event: Event) -> None:
        self.state = self.bus.publish(event, self.state)

    @property
    def activity(self) -> tuple:
        return self.state["activity"]

    @property
    def revision(self) -> int:
        return self.state["revision"]
