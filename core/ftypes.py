# core/ftypes.py
# Small functional result types: Maybe, Either and Sourced.
# Hooks return Either[str, Sourced[T]] so callers can see which source resolved a call.

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
L = TypeVar("L")
R = TypeVar("R")

REMOTE = "remote"
LOCAL = "local"


@dataclass(frozen=True)
class Maybe(Generic[T]):
    """
    Необязательное значение: Maybe.some(x) или Maybe.nothing().
    Используется стором для поиска сущности по id.
    """

    value: Optional[T]

    @staticmethod
    def some(value: T) -> "Maybe[T]":
        return Maybe(value)

    @staticmethod
    def nothing() -> "Maybe[None]":
        return Maybe(None)

    def is_some(self) -> bool:
        return self.value is not None

    def is_none(self) -> bool:
        return self.value is None

    def map(self, fn: Callable[[T], U]) -> "Maybe[U]":
        return Maybe.some(fn(self.value)) if self.is_some() else Maybe.nothing()

    def bind(self, fn: Callable[[T], "Maybe[U]"]) -> "Maybe[U]":
        return fn(self.value) if self.is_some() else Maybe.nothing()

    def get_or_else(self, default: U) -> T | U:
        return self.value if self.is_some() else default

    def __repr__(self) -> str:
        return f"Some({self.value})" if self.is_some() else "Nothing"


@dataclass(frozen=True)
class Either(Generic[L, R]):
    """
    Left - ошибка (сообщение для пользователя), Right - успешное значение.
    """

    is_left: bool
    value: Union[L, R]

    @staticmethod
    def left(value: L) -> "Either[L, R]":
        return Either(True, value)

    @staticmethod
    def right(value: R) -> "Either[L, R]":
        return Either(False, value)

    @property
    def is_right(self) -> bool:
        return not self.is_left

    def map(self, fn: Callable[[R], U]) -> "Either[L, U]":
        return Either.right(fn(self.value)) if self.is_right else self  # type: ignore[return-value]

    def bind(self, fn: Callable[[R], "Either[L, U]"]) -> "Either[L, U]":
        return fn(self.value) if self.is_right else self  # type: ignore[return-value]

    def fold(self, on_left: Callable[[L], U], on_right: Callable[[R], U]) -> U:
        return on_left(self.value) if self.is_left else on_right(self.value)  # type: ignore[arg-type]

    def get_or_else(self, default: U) -> R | U:
        return self.value if self.is_right else default  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Left({self.value})" if self.is_left else f"Right({self.value})"


@dataclass(frozen=True)
class Sourced(Generic[T]):
    """
    Значение с меткой источника: "remote" (ответ API) или "local" (фолбэк).
    """

    source: str
    value: T

    @staticmethod
    def remote(value: T) -> "Sourced[T]":
        return Sourced(REMOTE, value)

    @staticmethod
    def local(value: T) -> "Sourced[T]":
        return Sourced(LOCAL, value)

    @property
    def is_remote(self) -> bool:
        return self.source == REMOTE

    @property
    def is_local(self) -> bool:
        return self.source == LOCAL

    def __repr__(self) -> str:
        return f"{self.source.capitalize()}({self.value})"
