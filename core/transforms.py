import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .domain import MoneyData, Order, Product, SocialMetrics, VideoContent

logger = logging.getLogger(__name__)


# ============ Фолбэк-датасет ============


@dataclass(frozen=True)
class SeedData:
    products: Tuple[Product, ...]
    video_content: Tuple[VideoContent, ...]
    orders: Tuple[Order, ...]
    money: MoneyData
    social_metrics: SocialMetrics
    analytics: Dict[str, Any] = field(default_factory=dict)


def load_seed(path: Union[str, Path]) -> SeedData:
    """Загружает seed.json и возвращает иммутабельные кортежи сущностей"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    products = tuple(map(Product.from_dict, data.get("products", [])))
    videos = tuple(map(VideoContent.from_dict, data.get("videoContent", [])))
    orders = tuple(map(Order.from_dict, data.get("orders", [])))

    # topPerformingContent в сиде задан ссылками на видео
    raw_social = dict(data.get("socialMetrics", {}))
    top_ids = raw_social.pop("topPerformingContentIds", [])
    videos_by_id = {v.id: v for v in videos}
    social = replace(
        SocialMetrics.from_dict(raw_social),
        top_performing_content=tuple(
            videos_by_id[vid] for vid in top_ids if vid in videos_by_id
        ),
    )

    return SeedData(
        products=products,
        video_content=videos,
        orders=orders,
        money=MoneyData.from_dict(data.get("money", {})),
        social_metrics=social,
        analytics=data.get("analytics", {}),
    )


class FallbackDataset:
    """
    Ленивая загрузка сида, подменяющего бэкенд в разработке.
    Ошибка загрузки не глотается: её обрабатывает вызывающий хук.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        loader: Callable[[Union[str, Path]], SeedData] = load_seed,
    ):
        if path is None:
            from .config import settings

            path = settings.SEED_PATH
        self.path = path
        self.loader = loader
        self._data: Optional[SeedData] = None

    @property
    def data(self) -> SeedData:
        if self._data is None:
            logger.debug("Loading fallback dataset from %s", self.path)
            self._data = self.loader(self.path)
        return self._data

    def products(self) -> Tuple[Product, ...]:
        return self.data.products

    def video_content(self) -> Tuple[VideoContent, ...]:
        return self.data.video_content

    def orders(self) -> Tuple[Order, ...]:
        return self.data.orders

    def money(self) -> MoneyData:
        return self.data.money

    def social_metrics(self) -> SocialMetrics:
        return self.data.social_metrics

    def analytics(self) -> Dict[str, Any]:
        return self.data.analytics


# ============ Замыкания-фильтры (HOF) ============


def by_status(status: str) -> Callable[[Any], bool]:
    """Фильтр по статусу (товар, видео или заказ)"""
    return lambda e: e.status == status


def by_category(category: str) -> Callable[[Product], bool]:
    return lambda p: p.category == category


def by_product(product_id: str) -> Callable[[VideoContent], bool]:
    return lambda v: v.product_id == product_id


def by_search(term: str) -> Callable[[Any], bool]:
    """Поиск без учёта регистра по name/title/customer_name/product_name"""
    needle = term.strip().lower()

    def matches(entity) -> bool:
        haystack = " ".join(
            str(getattr(entity, attr, "") or "")
            for attr in ("id", "name", "title", "customer_name", "product_name")
        )
        return needle in haystack.lower()

    return matches


def apply_filters(items: Tuple, *predicates: Callable[[Any], bool]) -> Tuple:
    """Композиция фильтров через all()"""
    return tuple(filter(lambda e: all(p(e) for p in predicates), items))


# ============ Форматирование ============


def format_number(num: int) -> str:
    """12500 -> 12.5K, 1500000 -> 1.5M"""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(num)


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_duration(seconds: int) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"
