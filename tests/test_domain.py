import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from dataclasses import replace

from core.domain import (
    MoneyData,
    Order,
    Product,
    VideoContent,
    to_wire,
    to_wire_key,
)
from core.ftypes import Either, Maybe, Sourced


def test_product_from_backend_json():
    """Продукт из camelCase JSON, _id становится id, если id нет"""
    p = Product.from_dict(
        {
            "_id": "65f0",
            "name": "Lamp",
            "category": "Home",
            "price": 12.5,
            "stock": 3,
            "status": "active",
            "createdAt": "2024-03-01T10:00:00Z",
        }
    )
    assert p.id == "65f0"
    assert p.backend_id == "65f0"
    assert p.created_at == "2024-03-01T10:00:00Z"
    assert p.images == 0 and p.reels == 0


def test_product_to_dict_drops_empty_optionals():
    p = Product("1", "Lamp", "Home", 12.5, 3, "active", created_at="2024-01-01")
    data = p.to_dict()
    assert data["createdAt"] == "2024-01-01"
    assert "_id" not in data
    assert "updatedAt" not in data


def test_product_rejects_unknown_status():
    with pytest.raises(ValueError):
        Product("1", "Lamp", "Home", 12.5, 3, "archived")


def test_product_rejects_negative_stock():
    with pytest.raises(ValueError):
        Product("1", "Lamp", "Home", 12.5, -1, "active")


def test_replace_is_validated_too():
    """dataclasses.replace проходит через __post_init__"""
    p = Product("1", "Lamp", "Home", 12.5, 3, "active")
    with pytest.raises(ValueError):
        replace(p, status="sold")


def test_zero_stock_does_not_change_status():
    p = Product("1", "Lamp", "Home", 12.5, 0, "active")
    assert p.status == "active"


def test_video_content_wire_names():
    v = VideoContent.from_dict(
        {
            "id": "v1",
            "title": "Unboxing",
            "type": "reel",
            "duration": 30,
            "views": 10,
            "uploadDate": "2024-02-20",
            "status": "published",
            "productId": "1",
        }
    )
    assert v.product_id == "1"
    assert v.upload_date == "2024-02-20"
    assert v.to_dict()["productId"] == "1"


def test_video_content_rejects_unknown_type():
    with pytest.raises(ValueError):
        VideoContent("v1", "t", "story", "", 1, 0, 0, 0, 0, 0, "", "draft", "1")


def test_order_quantity_must_be_positive():
    with pytest.raises(ValueError):
        Order("ORD-1", "Lamp", "Ann", "pending", "2024-01-01", 10.0, 0)


def test_money_data_history():
    money = MoneyData.from_dict(
        {
            "totalIncome": 100,
            "commission": 10,
            "pendingPayout": 5,
            "incomeHistory": [{"month": "Jan", "income": 60, "commission": 6}],
        }
    )
    assert money.total_income == 100.0
    assert money.income_history[0].month == "Jan"
    assert isinstance(money.income_history, tuple)


def test_to_wire_keys():
    assert to_wire_key("created_at") == "createdAt"
    assert to_wire_key("product_id") == "productId"
    assert to_wire_key("backend_id") == "_id"
    assert to_wire({"upload_date": "x", "name": "y"}) == {"uploadDate": "x", "name": "y"}


def test_maybe_and_either():
    assert Maybe.some(2).map(lambda x: x + 1).get_or_else(0) == 3
    assert Maybe.nothing().map(lambda x: x + 1).get_or_else(0) == 0

    ok = Either.right(Sourced.local(5))
    assert ok.is_right
    assert ok.map(lambda s: s.value).get_or_else(None) == 5
    assert ok.value.is_local

    err = Either.left("boom")
    assert err.fold(lambda e: f"error: {e}", lambda v: v) == "error: boom"
    assert err.get_or_else("default") == "default"
