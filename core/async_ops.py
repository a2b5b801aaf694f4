import asyncio
import logging
from typing import Any, Awaitable, Dict, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============ Параллельная загрузка дашборда ============


async def load_dashboard_async(
    products_hook, videos_hook, orders_hook, finance_hook
) -> Dict[str, Any]:
    """
    Загружает все источники параллельно.
    Каждый хук сам решает remote/local, поэтому gather не падает
    из-за недоступного API: ошибки приходят как Left.
    """
    (
        products,
        videos,
        orders,
        money,
        social,
        analytics,
    ) = await asyncio.gather(
        products_hook.fetch(),
        videos_hook.fetch(),
        orders_hook.fetch(),
        finance_hook.fetch_money(),
        finance_hook.fetch_social_metrics(),
        finance_hook.fetch_analytics(),
    )

    results = {
        "products": products,
        "video_content": videos,
        "orders": orders,
        "money": money,
        "social_metrics": social,
        "analytics": analytics,
    }

    sources = {
        name: result.value.source if result.is_right else "error"
        for name, result in results.items()
    }
    logger.info("Dashboard loaded: %s", sources)

    return {**results, "sources": sources}


async def refresh_many_async(*hooks) -> tuple:
    """Параллельный refresh произвольного набора хуков"""
    return tuple(await asyncio.gather(*(h.refresh() for h in hooks)))


# ============ Синхронная обёртка для UI ============


def run_async(coro: Awaitable[T]) -> T:
    """
    Синхронная обёртка для Streamlit: каждое действие - отдельный asyncio.run.
    Отложенные задачи loop'а не переживают, поэтому метки истекают по часам.
    """
    return asyncio.run(coro)
