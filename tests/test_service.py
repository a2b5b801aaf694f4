import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest

from core.async_ops import refresh_many_async, run_async
from core.service import SellerDashboard
from conftest import make_api


@pytest.mark.asyncio
async def test_load_offline_uses_fallback_everywhere(offline_api, fallback):
    dashboard = SellerDashboard(api=offline_api, fallback=fallback)

    result = await dashboard.load()

    assert set(result["sources"].values()) == {"local"}
    report = dashboard.report()
    assert report["products"]["total"] == 5
    assert report["orders"]["total"] == 6
    assert report["followers"] == 25400
    assert report["money"]["pending_payout"] == 2340.20
    dashboard.close()


@pytest.mark.asyncio
async def test_load_mixed_sources(backend, fallback):
    backend.on(
        "GET",
        "/products",
        {
            "success": True,
            "data": [{"id": "r1", "name": "Remote", "category": "X", "price": 1, "stock": 1, "status": "active"}],
        },
    )
    dashboard = SellerDashboard(api=make_api(backend), fallback=fallback)

    result = await dashboard.load()

    assert result["sources"]["products"] == "remote"
    assert result["sources"]["orders"] == "local"
    assert dashboard.products.store.ids() == ("r1",)
    dashboard.close()


@pytest.mark.asyncio
async def test_changes_reach_feed_and_sink(offline_api, fallback):
    delivered = []
    dashboard = SellerDashboard(api=offline_api, fallback=fallback, notification_sink=delivered.append)
    await dashboard.load()

    await dashboard.products.delete("5")
    await dashboard.orders.cancel("ORD-003")

    assert [d.title for d in delivered] == ["Product Deleted (Local)", "Order Status Updated (Local)"]
    assert [(e["kind"], e["action"]) for e in dashboard.feed.activity] == [
        ("Order", "updated"),
        ("Product", "removed"),
    ]
    dashboard.close()


@pytest.mark.asyncio
async def test_close_cancels_marker_timers(offline_api, fallback):
    dashboard = SellerDashboard(api=offline_api, fallback=fallback)
    await dashboard.load()
    await dashboard.products.create(
        {"name": "Lamp", "category": "Home", "price": 1.0, "stock": 1, "status": "draft"}
    )
    assert dashboard.products.recently_added.value is not None

    dashboard.close()

    assert dashboard.scope.closed
    assert dashboard.products.recently_added.value is None


@pytest.mark.asyncio
async def test_refresh_many(offline_api, fallback):
    dashboard = SellerDashboard(api=offline_api, fallback=fallback)
    products, orders = await refresh_many_async(dashboard.products, dashboard.orders)
    assert products.is_right and orders.is_right
    assert len(dashboard.orders.items) == 6
    dashboard.close()


def test_run_async_wrapper(offline_api, fallback):
    dashboard = SellerDashboard(api=offline_api, fallback=fallback)
    result = run_async(dashboard.load())
    assert result["sources"]["money"] == "local"
    assert dashboard.videos.recently_added.value is None


@pytest.mark.asyncio
async def test_aclose_releases_http_client(offline_api, fallback):
    dashboard = SellerDashboard(api=offline_api, fallback=fallback)
    await dashboard.load()

    await dashboard.aclose()

    assert dashboard.scope.closed
    assert offline_api._client.is_closed
