"""
Эфемерное состояние UI: метка "только что добавлено" и прогресс загрузки.
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

RECENTLY_ADDED_TTL = 2.0
PROGRESS_INTERVAL = 0.15
PROGRESS_MAX_STEP = 20.0
PROGRESS_MIN_STEP = 1.0
SETTLE_DELAY = 0.5


class DeferredScope:
    """
    Отложенные вызовы, привязанные к времени жизни владельца.
    При закрытии скоупа все невыполненные вызовы отменяются.
    """

    def __init__(self):
        self._handles: List[asyncio.TimerHandle] = []
        self.closed = False

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        if self.closed:
            raise RuntimeError("DeferredScope is closed")
        handle = asyncio.get_running_loop().call_later(delay, callback)
        self._handles = [h for h in self._handles if not h.cancelled()] + [handle]
        return handle

    def cancel_all(self) -> None:
        live = [h for h in self._handles if not h.cancelled()]
        for handle in live:
            handle.cancel()
        if live:
            logger.debug("Cancelled %d deferred call(s)", len(live))
        self._handles = []

    def close(self) -> None:
        self.cancel_all()
        self.closed = True

    async def __aenter__(self) -> "DeferredScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class RecentlyAddedMarker:
    """
    Хранит id последней созданной сущности ttl секунд.

    Истечение проверяется при чтении, так что метка работает и между
    перезапусками страницы Streamlit, где живого event loop нет.
    Если передан scope и loop запущен, дополнительно планируется
    активная очистка с вызовом on_expire (для перерисовки).
    Повторный mark перезапускает окно, старый таймер отменяется.
    """

    def __init__(
        self,
        ttl: float = RECENTLY_ADDED_TTL,
        clock: Callable[[], float] = time.monotonic,
        scope: Optional[DeferredScope] = None,
        on_expire: Optional[Callable[[], None]] = None,
    ):
        self.ttl = ttl
        self.clock = clock
        self.scope = scope
        self.on_expire = on_expire
        self._value: Optional[str] = None
        self._deadline: Optional[float] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    def mark(self, entity_id: str) -> None:
        self._value = entity_id
        self._deadline = self.clock() + self.ttl
        self._schedule()

    @property
    def value(self) -> Optional[str]:
        if self._deadline is not None and self.clock() >= self._deadline:
            self.clear()
        return self._value

    @property
    def remaining(self) -> float:
        if self.value is None:
            return 0.0
        return max(0.0, self._deadline - self.clock())

    def clear(self) -> None:
        self._value = None
        self._deadline = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def close(self) -> None:
        self.clear()

    def _schedule(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self.scope is None or self.scope.closed:
            return
        try:
            self._handle = self.scope.call_later(self.ttl, self._expire)
        except RuntimeError:
            # нет запущенного loop: остаётся ленивое истечение по часам
            self._handle = None

    def _expire(self) -> None:
        self._handle = None
        self._value = None
        self._deadline = None
        if self.on_expire is not None:
            self.on_expire()


class UploadProgress:
    """Процент 0..100 (только растёт) и флаг is_uploading"""

    def __init__(self):
        self.percent: float = 0.0
        self.is_uploading = False

    def start(self) -> None:
        self.percent = 0.0
        self.is_uploading = True

    def advance(self, step: float) -> float:
        if step > 0:
            self.percent = min(100.0, self.percent + step)
        return self.percent

    @property
    def done(self) -> bool:
        return self.percent >= 100.0

    def reset(self) -> None:
        self.percent = 0.0
        self.is_uploading = False


async def simulate_upload(
    progress: UploadProgress,
    interval: float = PROGRESS_INTERVAL,
    max_step: float = PROGRESS_MAX_STEP,
    settle: float = SETTLE_DELAY,
    rng: Callable[[], float] = random.random,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_progress: Optional[Callable[[float], None]] = None,
) -> float:
    """
    Имитация прогресса загрузки: каждые interval секунд +rng()*max_step
    (не меньше PROGRESS_MIN_STEP), пока не дойдёт до 100, затем пауза settle.
    К реальным байтам не привязано.
    """
    progress.start()
    while not progress.done:
        await sleep(interval)
        progress.advance(max(rng() * max_step, PROGRESS_MIN_STEP))
        if on_progress is not None:
            on_progress(progress.percent)
    await sleep(settle)
    return progress.percent
