from typing import Tuple, Dict, List, Optional, Any
from functools import reduce
from core.domain import (
    ORDER_STATUSES,
    MoneyData,
    Order,
    Product,
    SocialMetrics,
    VideoContent,
)

LOW_STOCK_THRESHOLD = 20
NON_REVENUE_STATUSES = ("cancelled", "returned")


# ============ Каталог ============


def is_low_stock(product: Product, threshold: int = LOW_STOCK_THRESHOLD) -> bool:
    """0 < stock < threshold, статус не учитывается"""
    return 0 < product.stock < threshold


def product_stats(products: Tuple[Product, ...]) -> dict:
    """
    Сводка по каталогу. Не разбиение: low_stock считается по остатку,
    out_of_stock - по статусу, товар может попасть в обе группы.
    """
    return {
        "total": len(products),
        "active": sum(1 for p in products if p.status == "active"),
        "draft": sum(1 for p in products if p.status == "draft"),
        "low_stock": sum(1 for p in products if is_low_stock(p)),
        "out_of_stock": sum(1 for p in products if p.status == "out-of-stock"),
    }


def low_stock_products(
    products: Tuple[Product, ...], threshold: int = LOW_STOCK_THRESHOLD
) -> List[dict]:
    """Товары с заканчивающимся остатком, по возрастанию остатка"""
    low = sorted(
        filter(lambda p: is_low_stock(p, threshold), products), key=lambda p: p.stock
    )
    return [{"id": p.id, "name": p.name, "stock": p.stock} for p in low]


def catalog_value(products: Tuple[Product, ...]) -> float:
    """Стоимость остатков на складе"""
    return round(reduce(lambda acc, p: acc + p.price * p.stock, products, 0.0), 2)


# ============ Заказы ============


def total_revenue(orders: Tuple[Order, ...]) -> float:
    """Выручка без отменённых и возвращённых заказов"""
    counted = filter(lambda o: o.status not in NON_REVENUE_STATUSES, orders)
    return round(reduce(lambda acc, o: acc + o.amount, counted, 0.0), 2)


def order_stats(orders: Tuple[Order, ...]) -> dict:
    def count_status(acc: dict, order: Order) -> dict:
        return {**acc, order.status: acc.get(order.status, 0) + 1}

    by_status = reduce(count_status, orders, {s: 0 for s in ORDER_STATUSES})
    return {
        "total": len(orders),
        "by_status": by_status,
        "pending": by_status["pending"],
        "shipped": by_status["shipped"],
        "delivered": by_status["delivered"],
        "total_revenue": total_revenue(orders),
    }


def average_order_value(orders: Tuple[Order, ...]) -> float:
    counted = tuple(o for o in orders if o.status not in NON_REVENUE_STATUSES)
    if not counted:
        return 0.0
    return round(total_revenue(counted) / len(counted), 2)


def top_products(orders: Tuple[Order, ...], k: int = 5) -> List[dict]:
    """
    Топ-K товаров по выручке (по денормализованному product_name)
    """

    def accumulate(acc: dict, order: Order) -> dict:
        if order.status in NON_REVENUE_STATUSES:
            return acc
        units, revenue = acc.get(order.product_name, (0, 0.0))
        return {
            **acc,
            order.product_name: (units + order.quantity, revenue + order.amount),
        }

    totals = reduce(accumulate, orders, {})
    ranked = sorted(totals.items(), key=lambda item: item[1][1], reverse=True)[:k]
    return [
        {"name": name, "units": units, "revenue": round(revenue, 2)}
        for name, (units, revenue) in ranked
    ]


def sales_by_category(
    products: Tuple[Product, ...], orders: Tuple[Order, ...]
) -> Dict[str, float]:
    """
    Выручка по категориям. Заказ связывается с товаром по product_id,
    иначе по названию; несвязанные попадают в "Uncategorized".
    """
    by_id = {p.id: p.category for p in products}
    by_name = {p.name: p.category for p in products}

    def category_of(order: Order) -> str:
        if order.product_id and order.product_id in by_id:
            return by_id[order.product_id]
        return by_name.get(order.product_name, "Uncategorized")

    def accumulate(acc: dict, order: Order) -> dict:
        if order.status in NON_REVENUE_STATUSES:
            return acc
        category = category_of(order)
        return {**acc, category: round(acc.get(category, 0.0) + order.amount, 2)}

    return reduce(accumulate, orders, {})


# ============ Видео-контент ============


def videos_by_product(
    videos: Tuple[VideoContent, ...], product_id: str
) -> Tuple[VideoContent, ...]:
    """Видео товара в исходном порядке. O(n), индекса нет"""
    return tuple(filter(lambda v: v.product_id == product_id, videos))


def content_stats(videos: Tuple[VideoContent, ...]) -> dict:
    def accumulate(acc: dict, v: VideoContent) -> dict:
        return {
            "views": acc["views"] + v.views,
            "likes": acc["likes"] + v.likes,
            "comments": acc["comments"] + v.comments,
            "shares": acc["shares"] + v.shares,
            "reach": acc["reach"] + v.reach,
        }

    totals = reduce(
        accumulate,
        videos,
        {"views": 0, "likes": 0, "comments": 0, "shares": 0, "reach": 0},
    )
    interactions = totals["likes"] + totals["comments"] + totals["shares"]
    engagement = interactions / totals["views"] * 100 if totals["views"] else 0.0

    return {
        **totals,
        "total": len(videos),
        "published": sum(1 for v in videos if v.status == "published"),
        "reels": sum(1 for v in videos if v.type == "reel"),
        "engagement_rate": round(engagement, 2),
    }


def content_by_product(
    products: Tuple[Product, ...], videos: Tuple[VideoContent, ...]
) -> List[dict]:
    """Сколько видео и просмотров у каждого товара; осиротевшие видео не учитываются"""
    return [
        {
            "product_id": p.id,
            "name": p.name,
            "videos": len(own),
            "views": sum(v.views for v in own),
        }
        for p in products
        for own in (videos_by_product(videos, p.id),)
    ]


def orphan_videos(
    products: Tuple[Product, ...], videos: Tuple[VideoContent, ...]
) -> Tuple[VideoContent, ...]:
    """Видео, чей товар удалён (каскадного удаления нет)"""
    known = {p.id for p in products}
    return tuple(v for v in videos if v.product_id not in known)


# ============ Финансы ============


def money_summary(money: MoneyData) -> dict:
    history_income = reduce(lambda acc, p: acc + p.income, money.income_history, 0.0)
    history_commission = reduce(
        lambda acc, p: acc + p.commission, money.income_history, 0.0
    )
    last_two = money.income_history[-2:]
    growth: Optional[float] = None
    if len(last_two) == 2 and last_two[0].income:
        growth = round((last_two[1].income - last_two[0].income) / last_two[0].income * 100, 1)

    return {
        "total_income": money.total_income,
        "commission": money.commission,
        "pending_payout": money.pending_payout,
        "net_income": round(money.total_income - money.commission, 2),
        "commission_rate": (
            round(money.commission / money.total_income * 100, 1)
            if money.total_income
            else 0.0
        ),
        "history_income": round(history_income, 2),
        "history_commission": round(history_commission, 2),
        "month_over_month": growth,
    }


# ============ Композитный отчёт ============


def dashboard_report(
    products: Tuple[Product, ...],
    videos: Tuple[VideoContent, ...],
    orders: Tuple[Order, ...],
    money: Optional[MoneyData] = None,
    social: Optional[SocialMetrics] = None,
) -> Dict[str, Any]:
    """Все сводки дашборда, пересчитываются на каждый вызов"""
    return {
        "products": product_stats(products),
        "low_stock": low_stock_products(products),
        "orders": order_stats(orders),
        "top_products": top_products(orders),
        "sales_by_category": sales_by_category(products, orders),
        "content": content_stats(videos),
        "money": money_summary(money) if money else None,
        "followers": social.followers if social else None,
    }
