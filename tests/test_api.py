import sys
import os
import json

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import httpx
import pytest

from core.api import ApiError, ApiResponse, ApiService
from conftest import BASE_URL, make_api


@pytest.mark.asyncio
async def test_get_products_sends_pagination(api, backend):
    backend.on(
        "GET",
        "/products",
        {
            "success": True,
            "data": [],
            "pagination": {"page": 2, "limit": 10, "total": 12, "totalPages": 2},
        },
    )

    response = await api.get_products(page=2, limit=10)

    request = backend.requests[0]
    assert request.url.params["page"] == "2"
    assert request.url.params["limit"] == "10"
    assert response.success is True
    assert response.pagination.total_pages == 2


@pytest.mark.asyncio
async def test_bearer_token_added_when_present(backend):
    backend.on("GET", "/money", {"success": True, "data": {}})
    api = make_api(backend, token="secret")

    await api.get_money_data()

    assert backend.requests[0].headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_no_authorization_without_token(api, backend):
    backend.on("GET", "/money", {"success": True, "data": {}})
    await api.get_money_data()
    assert "Authorization" not in backend.requests[0].headers


@pytest.mark.asyncio
async def test_json_body_and_method(api, backend):
    backend.on("PUT", "/products/7", {"success": True, "data": {"id": "7"}})

    await api.update_product("7", {"stock": 3})

    request = backend.requests[0]
    assert request.method == "PUT"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"stock": 3}


@pytest.mark.asyncio
async def test_error_status_uses_server_message(api, backend):
    backend.on(
        "POST",
        "/products",
        {"success": False, "message": "Name is required", "code": "VALIDATION"},
        status=400,
    )

    with pytest.raises(ApiError) as info:
        await api.create_product({})

    assert info.value.message == "Name is required"
    assert info.value.code == "VALIDATION"
    assert info.value.status == 400


@pytest.mark.asyncio
async def test_error_status_without_body():
    api = make_api(lambda request: httpx.Response(502, text="Bad gateway"))

    with pytest.raises(ApiError) as info:
        await api.get_orders()

    assert info.value.message == "HTTP error! status: 502"
    assert info.value.status == 502


@pytest.mark.asyncio
async def test_network_failure_becomes_api_error(offline_api):
    with pytest.raises(ApiError):
        await offline_api.get_products()


@pytest.mark.asyncio
async def test_invalid_json_becomes_api_error():
    api = make_api(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(ApiError):
        await api.get_social_metrics()


@pytest.mark.asyncio
async def test_order_status_is_checked_before_request(api, backend):
    with pytest.raises(ValueError):
        await api.update_order_status("ORD-1", "lost")
    assert backend.requests == []


@pytest.mark.asyncio
async def test_order_status_patch(api, backend):
    backend.on("PATCH", "/orders/ORD-1/status", {"success": True, "data": {"id": "ORD-1"}})

    await api.update_order_status("ORD-1", "shipped")

    assert json.loads(backend.requests[0].content) == {"status": "shipped"}


@pytest.mark.asyncio
async def test_analytics_date_range(api, backend):
    backend.on("GET", "/analytics", {"success": True, "data": {}})

    await api.get_analytics("2024-01-01", "2024-01-31")

    params = backend.requests[0].url.params
    assert params["startDate"] == "2024-01-01"
    assert params["endDate"] == "2024-01-31"


@pytest.mark.asyncio
async def test_video_content_filter_by_product(api, backend):
    backend.on("GET", "/video-content", {"success": True, "data": []})
    await api.get_video_content(product_id="3")
    assert backend.requests[0].url.params["productId"] == "3"


@pytest.mark.asyncio
async def test_upload_is_multipart(api, backend):
    backend.on(
        "POST",
        "/upload",
        {"success": True, "data": {"url": "/uploads/a.png", "filename": "a.png"}},
    )

    response = await api.upload_file(b"\x89PNG", "a.png", "image")

    request = backend.requests[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="type"' in request.content
    assert b'filename="a.png"' in request.content
    assert response.unwrap()["url"] == "/uploads/a.png"


@pytest.mark.asyncio
async def test_upload_type_checked(api):
    with pytest.raises(ValueError):
        await api.upload_file(b"", "a.gif", "gif")


def test_unwrap_unsuccessful_envelope():
    response = ApiResponse.from_payload({"success": False, "message": "Product not found"})
    with pytest.raises(ApiError) as info:
        response.unwrap()
    assert info.value.message == "Product not found"


def test_unwrap_missing_data():
    with pytest.raises(ApiError):
        ApiResponse.from_payload({"success": True}).unwrap()


def test_default_base_url_strips_slash():
    api = ApiService(base_url=BASE_URL + "/")
    assert api.base_url == BASE_URL


@pytest.mark.asyncio
async def test_create_order(api, backend):
    backend.on("POST", "/orders", {"success": True, "data": {"id": "ORD-9"}})

    response = await api.create_order({"productName": "Lamp", "quantity": 2})

    request = backend.requests[0]
    assert request.method == "POST"
    assert json.loads(request.content) == {"productName": "Lamp", "quantity": 2}
    assert response.unwrap() == {"id": "ORD-9"}


@pytest.mark.asyncio
async def test_update_social_metrics(api, backend):
    backend.on("PUT", "/social-metrics", {"success": True, "data": {"followers": 10}})

    response = await api.update_social_metrics({"followers": 10})

    assert backend.requests[0].method == "PUT"
    assert json.loads(backend.requests[0].content) == {"followers": 10}
    assert response.unwrap()["followers"] == 10


@pytest.mark.asyncio
async def test_aclose_closes_injected_client(api):
    await api.aclose()
    assert api._client.is_closed
    await api.aclose()


@pytest.mark.asyncio
async def test_context_manager_closes_client(backend):
    backend.on("GET", "/money", {"success": True, "data": {}})

    async with make_api(backend) as api:
        await api.get_money_data()

    assert api._client.is_closed


@pytest.mark.asyncio
async def test_aclose_without_client_is_noop():
    api = ApiService(base_url=BASE_URL)
    await api.aclose()
