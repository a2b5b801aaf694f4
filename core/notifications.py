import logging
from collections import deque
from typing import Callable, Optional, Tuple

from .domain import Notification

logger = logging.getLogger(__name__)

DESTRUCTIVE = "destructive"
HISTORY_LIMIT = 50


class NotificationCenter:
    """
    Принимает уведомления {title, description, variant} от хуков.
    Хранит последние limit штук, доставку (st.toast и т.п.) делает sink.
    """

    def __init__(
        self,
        sink: Optional[Callable[[Notification], None]] = None,
        limit: int = HISTORY_LIMIT,
    ):
        self.sink = sink
        self._history = deque(maxlen=limit)

    def __call__(self, notification: Notification) -> None:
        self._history.append(notification)
        logger.info("[%s] %s: %s", notification.variant or "default",
                    notification.title, notification.description)
        if self.sink is not None:
            self.sink(notification)

    @property
    def history(self) -> Tuple[Notification, ...]:
        return tuple(self._history)

    @property
    def last(self) -> Optional[Notification]:
        return self._history[-1] if self._history else None

    def drain(self) -> Tuple[Notification, ...]:
        """Отдаёт накопленные уведомления и очищает очередь"""
        pending = tuple(self._history)
        self._history.clear()
        return pending
