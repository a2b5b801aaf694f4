from dataclasses import replace
from typing import Callable, Generic, Optional, Tuple, TypeVar, Dict, Any
import logging

from .domain import Event
from .frp import (
    create_event,
    ENTITY_ADDED,
    ENTITY_UPDATED,
    ENTITY_REMOVED,
    ENTITY_REPLACED_ALL,
)
from .ftypes import Maybe

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityStore(Generic[T]):
    """
    Авторитетный список сущностей одного типа.
    Хранит иммутабельный кортеж; каждое изменение заменяет его целиком
    и публикует Event в on_change.
    Инвариант: id уникален внутри стора.
    """

    def __init__(
        self,
        kind: str,
        items: Tuple[T, ...] = (),
        on_change: Optional[Callable[[Event], None]] = None,
    ):
        self.kind = kind
        self.on_change = on_change
        self._items: Tuple[T, ...] = ()
        if items:
            self._check_unique(items)
            self._items = tuple(items)

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __contains__(self, entity_id: str) -> bool:
        return any(e.id == entity_id for e in self._items)

    def ids(self) -> Tuple[str, ...]:
        return tuple(e.id for e in self._items)

    def get(self, entity_id: str) -> Maybe[T]:
        found = next((e for e in self._items if e.id == entity_id), None)
        return Maybe.some(found) if found is not None else Maybe.nothing()

    # ============ Мутации ============

    def replace_all(self, items: Tuple[T, ...]) -> None:
        """Полная перезапись, без слияния"""
        items = tuple(items)
        self._check_unique(items)
        self._items = items
        self._emit(ENTITY_REPLACED_ALL, {"count": len(items)})

    def append(self, entity: T) -> T:
        if entity.id in self:
            raise ValueError(f"{self.kind} with id '{entity.id}' already exists")
        self._items = self._items + (entity,)
        self._emit(ENTITY_ADDED, {"id": entity.id})
        return entity

    def replace(self, entity_id: str, entity: T) -> Maybe[T]:
        """Заменяет сущность целиком (например, объектом от сервера)"""
        if entity_id not in self:
            return Maybe.nothing()
        if entity.id != entity_id and entity.id in self:
            raise ValueError(f"{self.kind} with id '{entity.id}' already exists")
        self._items = tuple(entity if e.id == entity_id else e for e in self._items)
        self._emit(ENTITY_UPDATED, {"id": entity.id})
        return Maybe.some(entity)

    def merge(self, entity_id: str, fields: Dict[str, Any]) -> Maybe[T]:
        """Поверхностное слияние полей в существующую сущность"""
        if "id" in fields and fields["id"] != entity_id:
            raise ValueError("id cannot be changed by a merge")
        return self.get(entity_id).bind(
            lambda current: self.replace(entity_id, replace(current, **fields))
        )

    def remove(self, entity_id: str) -> Maybe[T]:
        removed = self.get(entity_id)
        if removed.is_some():
            self._items = tuple(e for e in self._items if e.id != entity_id)
            self._emit(ENTITY_REMOVED, {"id": entity_id})
        return removed

    # ============ Внутреннее ============

    def _check_unique(self, items: Tuple[T, ...]) -> None:
        ids = [e.id for e in items]
        if len(ids) != len(set(ids)):
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            raise ValueError(f"Duplicate {self.kind} ids: {dupes}")

    def _emit(self, name: str, payload: dict) -> None:
        logger.debug("%s %s %s", self.kind, name, payload)
        if self.on_change is not None:
            self.on_change(create_event(name, {"kind": self.kind, **payload}))
