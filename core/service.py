from typing import Callable, Optional

from core.api import ApiService
from core.async_ops import load_dashboard_async
from core.domain import Notification
from core.frp import ActivityFeed
from core.hooks import FinanceHook, OrdersHook, ProductsHook, VideoContentHook
from core.notifications import NotificationCenter
from core.transforms import FallbackDataset
from core.transient import DeferredScope, RecentlyAddedMarker
from Analytics_Service.report import dashboard_report


class SellerDashboard:
    """
    Фасад дашборда продавца: один шлюз API, общий фолбэк-датасет,
    центр уведомлений и лента активности на все хуки.
    Время жизни объекта = время жизни смонтированного UI.
    """

    def __init__(
        self,
        api: Optional[ApiService] = None,
        fallback: Optional[FallbackDataset] = None,
        notification_sink: Optional[Callable[[Notification], None]] = None,
        scope: Optional[DeferredScope] = None,
    ):
        self.api = api or ApiService()
        self.fallback = fallback or FallbackDataset()
        self.notifications = NotificationCenter(notification_sink)
        self.feed = ActivityFeed()
        self.scope = scope or DeferredScope()

        common = dict(
            api=self.api,
            notify=self.notifications,
            fallback=self.fallback,
            on_change=self.feed,
        )
        self.products = ProductsHook(
            **common, marker=RecentlyAddedMarker(scope=self.scope)
        )
        self.videos = VideoContentHook(
            **common, marker=RecentlyAddedMarker(scope=self.scope)
        )
        self.orders = OrdersHook(**common)
        self.finance = FinanceHook(self.api, self.notifications, self.fallback)

    async def load(self) -> dict:
        """Начальная загрузка всех источников"""
        return await load_dashboard_async(
            self.products, self.videos, self.orders, self.finance
        )

    def report(self) -> dict:
        """Производные сводки по текущим снимкам сторов"""
        return dashboard_report(
            self.products.items,
            self.videos.items,
            self.orders.items,
            self.finance.money,
            self.finance.social_metrics,
        )

    def close(self) -> None:
        """Отмена отложенных задач и сброс эфемерных меток"""
        self.scope.close()
        self.products.close()
        self.videos.close()

    async def aclose(self) -> None:
        """close() плюс закрытие HTTP-клиента шлюза"""
        self.close()
        await self.api.aclose()
