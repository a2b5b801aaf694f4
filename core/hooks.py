"""
Хуки синхронизации: сначала удалённый API, при ApiError - локальный фолбэк.

Каждая операция возвращает Either[str, Sourced[...]]:
Right(Sourced("remote" | "local", value)) или Left(сообщение об ошибке).
Left появляется только когда падает сам фолбэк (или что-то кроме ApiError).
"""

import logging
import time
from dataclasses import fields as dataclass_fields
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

from .api import ApiError, ApiResponse, ApiService
from .domain import (
    SERVER_FIELDS,
    MoneyData,
    Notification,
    Order,
    Product,
    Event,
    SocialMetrics,
    VideoContent,
    to_wire,
)
from .ftypes import Either, Sourced, LOCAL, REMOTE
from .notifications import DESTRUCTIVE
from .store import EntityStore
from .transforms import FallbackDataset
from .transient import RecentlyAddedMarker
from Analytics_Service.report import videos_by_product

logger = logging.getLogger(__name__)

T = TypeVar("T")

Notify = Callable[[Notification], None]

PAGE_SIZE = 20
LOCAL_HINT = "Connect to backend to persist."


def utc_now_iso() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class LocalIdFactory:
    """
    Локальные id из времени в миллисекундах.
    Если часы не сдвинулись с прошлого вызова, id увеличивается на единицу.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._last = 0

    def next(self, taken: Callable[[str], bool] = lambda _id: False) -> str:
        candidate = max(int(self.clock() * 1000), self._last + 1)
        while taken(str(candidate)):
            candidate += 1
        self._last = candidate
        return str(candidate)


async def collect_pages(
    fetch_page: Callable[[int], Awaitable[ApiResponse]],
) -> list:
    """Собирает все страницы пагинированного ответа"""
    items, page = [], 1
    while True:
        response = await fetch_page(page)
        items.extend(response.unwrap())
        if response.pagination is None or page >= response.pagination.total_pages:
            return items
        page += 1


class _ListHook(Generic[T]):
    """Общая часть: стор, загрузка списка, уведомления, обработка ошибок"""

    kind = "Entity"
    plural = "entities"

    def __init__(
        self,
        api: ApiService,
        notify: Optional[Notify] = None,
        fallback: Optional[FallbackDataset] = None,
        on_change: Optional[Callable[[Event], None]] = None,
    ):
        self.api = api
        self.notify = notify or (lambda _n: None)
        self.fallback = fallback or FallbackDataset()
        self.store: EntityStore[T] = EntityStore(self.kind, on_change=on_change)
        self.loading = False
        self.error: Optional[str] = None

    @property
    def items(self) -> Tuple[T, ...]:
        return self.store.items

    async def _remote_list(self) -> Tuple[T, ...]:
        raise NotImplementedError

    def _fallback_list(self) -> Tuple[T, ...]:
        raise NotImplementedError

    async def fetch(self) -> Either[str, Sourced[Tuple[T, ...]]]:
        """Полная перезапись стора списком с сервера или из фолбэка"""
        self.loading = True
        self.error = None
        try:
            try:
                items = await self._remote_list()
                source = REMOTE
            except ApiError as exc:
                logger.warning("API not available, using fallback %s: %s", self.plural, exc)
                items = self._fallback_list()
                source = LOCAL
            self.store.replace_all(items)
            return Either.right(Sourced(source, self.store.items))
        except Exception as exc:
            message = self._fail(exc, f"Failed to fetch {self.plural}")
            self.error = message
            return Either.left(message)
        finally:
            self.loading = False

    async def refresh(self) -> Either[str, Sourced[Tuple[T, ...]]]:
        return await self.fetch()

    def _entity_from(self, response: ApiResponse, entity_cls: type) -> T:
        """Сущность из ответа сервера; без id ответ считается неуспешным"""
        entity = entity_cls.from_dict(response.unwrap())
        if not entity.id:
            raise ApiError("Response contained no id")
        return entity

    def _fail(self, exc: Exception, default: str) -> str:
        message = exc.message if isinstance(exc, ApiError) else default
        logger.exception("%s: %s", default, exc)
        self.notify(Notification("Error", message, DESTRUCTIVE))
        return message

    def _not_found(self, entity_id: str) -> Either[str, Any]:
        message = f"{self.kind} '{entity_id}' not found"
        logger.error(message)
        self.notify(Notification("Error", message, DESTRUCTIVE))
        return Either.left(message)

    def _report(
        self,
        source: str,
        title: str,
        remote_text: str,
        local_text: str,
        variant: Optional[str] = None,
    ) -> None:
        if source == REMOTE:
            self.notify(Notification(title, remote_text, variant))
        else:
            self.notify(Notification(f"{title} (Local)", local_text, variant))


class ResourceHook(_ListHook[T]):
    """
    fetch / create / update / delete для одного типа сущностей.
    Подклассы задают entity_cls, подписи и удалённые вызовы.
    """

    entity_cls: type = None
    title_attr = "name"
    delete_title = None

    def __init__(
        self,
        api: ApiService,
        notify: Optional[Notify] = None,
        fallback: Optional[FallbackDataset] = None,
        on_change: Optional[Callable[[Event], None]] = None,
        marker: Optional[RecentlyAddedMarker] = None,
        ids: Optional[LocalIdFactory] = None,
    ):
        super().__init__(api, notify, fallback, on_change)
        self.recently_added = marker or RecentlyAddedMarker()
        self.ids = ids or LocalIdFactory()

    async def _remote_create(self, draft: Dict[str, Any]) -> ApiResponse:
        raise NotImplementedError

    async def _remote_update(self, entity_id: str, changes: Dict[str, Any]) -> ApiResponse:
        raise NotImplementedError

    async def _remote_delete(self, entity_id: str) -> ApiResponse:
        raise NotImplementedError

    def _label(self, entity_or_draft: Any, fallback: str) -> str:
        if isinstance(entity_or_draft, dict):
            return str(entity_or_draft.get(self.title_attr) or fallback)
        return str(getattr(entity_or_draft, self.title_attr, None) or fallback)

    def _build_local(self, draft: Dict[str, Any]) -> T:
        """Сущность с локальным id и createdAt, когда API недоступен"""
        known = {f.name for f in dataclass_fields(self.entity_cls)}
        values = {k: v for k, v in draft.items() if k not in SERVER_FIELDS}
        values["id"] = self.ids.next(taken=lambda i: i in self.store)
        if "created_at" in known:
            values["created_at"] = utc_now_iso()
        return self.entity_cls(**values)

    async def create(self, draft: Dict[str, Any]) -> Either[str, Sourced[T]]:
        label = self._label(draft, self.kind)
        try:
            try:
                response = await self._remote_create(
                    to_wire({k: v for k, v in draft.items() if k not in SERVER_FIELDS})
                )
                entity = self.store.append(self._entity_from(response, self.entity_cls))
                source = REMOTE
            except ApiError as exc:
                logger.warning("Create %s fell back to local state: %s", self.kind, exc)
                entity = self.store.append(self._build_local(draft))
                source = LOCAL
            self.recently_added.mark(entity.id)
            self._report(
                source,
                f"{self.kind} Added",
                self._added_text(label),
                f"{label} has been added locally. {LOCAL_HINT}",
            )
            return Either.right(Sourced(source, entity))
        except Exception as exc:
            return Either.left(self._fail(exc, f"Failed to add {self.kind.lower()}"))

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> Either[str, Sourced[T]]:
        """Удалённо - замена объектом сервера; локально - поверхностное слияние, без отката"""
        try:
            try:
                response = await self._remote_update(entity_id, to_wire(changes))
                result = self.store.replace(
                    entity_id, self._entity_from(response, self.entity_cls)
                )
                source = REMOTE
            except ApiError as exc:
                logger.warning("Update %s %s fell back to local state: %s", self.kind, entity_id, exc)
                result = self.store.merge(entity_id, changes)
                source = LOCAL
            if result.is_none():
                return self._not_found(entity_id)
            self._report(
                source,
                f"{self.kind} Updated",
                f"{self.kind} has been successfully updated.",
                f"{self.kind} updated locally. {LOCAL_HINT}",
            )
            return Either.right(Sourced(source, result.value))
        except Exception as exc:
            return Either.left(self._fail(exc, f"Failed to update {self.kind.lower()}"))

    async def delete(self, entity_id: str) -> Either[str, Sourced[Optional[T]]]:
        """Локальное удаление выполняется всегда, независимо от ответа API"""
        label = self._label(self.store.get(entity_id).get_or_else(None), entity_id)
        try:
            try:
                (await self._remote_delete(entity_id)).raise_for_failure()
                source = REMOTE
            except ApiError as exc:
                logger.warning("Delete %s %s fell back to local state: %s", self.kind, entity_id, exc)
                source = LOCAL
            removed = self.store.remove(entity_id)
            self._report(
                source,
                self.delete_title or f"{self.kind} Deleted",
                self._removed_text(label),
                f"{label} removed locally. {LOCAL_HINT}",
                DESTRUCTIVE,
            )
            return Either.right(Sourced(source, removed.value))
        except Exception as exc:
            return Either.left(self._fail(exc, f"Failed to delete {self.kind.lower()}"))

    def _added_text(self, label: str) -> str:
        return f"{label} has been added."

    def _removed_text(self, label: str) -> str:
        return f"{label} has been removed."

    def close(self) -> None:
        self.recently_added.close()


class ProductsHook(ResourceHook[Product]):
    kind = "Product"
    plural = "products"
    entity_cls = Product
    title_attr = "name"

    async def _remote_list(self) -> Tuple[Product, ...]:
        raw = await collect_pages(
            lambda page: self.api.get_products(page=page, limit=PAGE_SIZE)
        )
        return tuple(map(Product.from_dict, raw))

    def _fallback_list(self) -> Tuple[Product, ...]:
        return self.fallback.products()

    async def _remote_create(self, draft):
        return await self.api.create_product(draft)

    async def _remote_update(self, entity_id, changes):
        return await self.api.update_product(entity_id, changes)

    async def _remote_delete(self, entity_id):
        return await self.api.delete_product(entity_id)

    def _added_text(self, label: str) -> str:
        return f"{label} has been added to your catalog."

    def _removed_text(self, label: str) -> str:
        return f"{label} has been removed from your catalog."


class VideoContentHook(ResourceHook[VideoContent]):
    kind = "Video Content"
    plural = "video content"
    entity_cls = VideoContent
    title_attr = "title"
    delete_title = "Content Deleted"

    async def _remote_list(self) -> Tuple[VideoContent, ...]:
        response = await self.api.get_video_content()
        return tuple(map(VideoContent.from_dict, response.unwrap()))

    def _fallback_list(self) -> Tuple[VideoContent, ...]:
        return self.fallback.video_content()

    async def _remote_create(self, draft):
        return await self.api.create_video_content(draft)

    async def _remote_update(self, entity_id, changes):
        return await self.api.update_video_content(entity_id, changes)

    async def _remote_delete(self, entity_id):
        return await self.api.delete_video_content(entity_id)

    def videos_by_product(self, product_id: str) -> Tuple[VideoContent, ...]:
        return videos_by_product(self.store.items, product_id)


class OrdersHook(_ListHook[Order]):
    """Заказы: загрузка списка и смена статуса"""

    kind = "Order"
    plural = "orders"

    async def _remote_list(self) -> Tuple[Order, ...]:
        raw = await collect_pages(
            lambda page: self.api.get_orders(page=page, limit=PAGE_SIZE)
        )
        return tuple(map(Order.from_dict, raw))

    def _fallback_list(self) -> Tuple[Order, ...]:
        return self.fallback.orders()

    async def update_status(self, order_id: str, status: str) -> Either[str, Sourced[Order]]:
        try:
            try:
                response = await self.api.update_order_status(order_id, status)
                result = self.store.replace(order_id, self._entity_from(response, Order))
                source = REMOTE
            except ApiError as exc:
                logger.warning("Order %s status change fell back to local state: %s", order_id, exc)
                result = self.store.merge(order_id, {"status": status})
                source = LOCAL
            if result.is_none():
                return self._not_found(order_id)
            self._report(
                source,
                "Order Status Updated",
                f"Order {order_id} status changed to {status}.",
                f"Order {order_id} status changed to {status} locally. {LOCAL_HINT}",
            )
            return Either.right(Sourced(source, result.value))
        except Exception as exc:
            return Either.left(self._fail(exc, "Failed to update order status"))

    async def cancel(self, order_id: str) -> Either[str, Sourced[Order]]:
        return await self.update_status(order_id, "cancelled")


class FinanceHook:
    """Сводки: деньги, соцметрики и аналитика. Без стора - только последнее значение"""

    def __init__(
        self,
        api: ApiService,
        notify: Optional[Notify] = None,
        fallback: Optional[FallbackDataset] = None,
    ):
        self.api = api
        self.notify = notify or (lambda _n: None)
        self.fallback = fallback or FallbackDataset()
        self.money: Optional[MoneyData] = None
        self.social_metrics: Optional[SocialMetrics] = None
        self.analytics: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None

    async def _resolve(
        self,
        what: str,
        remote: Callable[[], Awaitable[Any]],
        local: Callable[[], Any],
    ) -> Either[str, Sourced[Any]]:
        try:
            try:
                value = await remote()
                source = REMOTE
            except ApiError as exc:
                logger.warning("API not available, using fallback %s: %s", what, exc)
                value = local()
                source = LOCAL
            return Either.right(Sourced(source, value))
        except Exception as exc:
            message = exc.message if isinstance(exc, ApiError) else f"Failed to fetch {what}"
            logger.exception("%s: %s", message, exc)
            self.error = message
            self.notify(Notification("Error", message, DESTRUCTIVE))
            return Either.left(message)

    async def fetch_money(self) -> Either[str, Sourced[MoneyData]]:
        async def remote():
            return MoneyData.from_dict((await self.api.get_money_data()).unwrap())

        result = await self._resolve("money data", remote, self.fallback.money)
        self.money = result.map(lambda s: s.value).get_or_else(self.money)
        return result

    async def fetch_social_metrics(self) -> Either[str, Sourced[SocialMetrics]]:
        async def remote():
            return SocialMetrics.from_dict((await self.api.get_social_metrics()).unwrap())

        result = await self._resolve("social metrics", remote, self.fallback.social_metrics)
        self.social_metrics = result.map(lambda s: s.value).get_or_else(self.social_metrics)
        return result

    async def fetch_analytics(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> Either[str, Sourced[Dict[str, Any]]]:
        async def remote():
            return (await self.api.get_analytics(start_date, end_date)).unwrap()

        result = await self._resolve("analytics", remote, self.fallback.analytics)
        self.analytics = result.map(lambda s: s.value).get_or_else(self.analytics)
        return result
