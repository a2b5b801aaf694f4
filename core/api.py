"""HTTP client for the seller backend (Express/MongoDB REST API)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from core.config import settings
from core.domain import ORDER_STATUSES

logger = logging.getLogger(__name__)

UPLOAD_TYPES = ("image", "video")


class ApiError(Exception):
    """Ошибка удалённого API: транспорт, не-2xx ответ или неуспешный конверт."""

    def __init__(
        self, message: str, code: Optional[str] = None, status: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def __repr__(self) -> str:
        return f"ApiError({self.message!r}, code={self.code!r}, status={self.status!r})"


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class ApiResponse:
    """Конверт ответа: {success, data?, message?, error?, pagination?}"""

    success: bool
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None
    pagination: Optional[Pagination] = None

    @staticmethod
    def from_payload(payload: Any) -> "ApiResponse":
        if not isinstance(payload, dict):
            raise ApiError("Malformed response envelope")
        raw_page = payload.get("pagination")
        pagination = (
            Pagination(
                page=int(raw_page.get("page", 1)),
                limit=int(raw_page.get("limit", 0)),
                total=int(raw_page.get("total", 0)),
                total_pages=int(raw_page.get("totalPages", 0)),
            )
            if isinstance(raw_page, dict)
            else None
        )
        return ApiResponse(
            success=bool(payload.get("success", False)),
            data=payload.get("data"),
            message=payload.get("message"),
            error=payload.get("error"),
            pagination=pagination,
        )

    def raise_for_failure(self) -> "ApiResponse":
        if not self.success:
            raise ApiError(self.message or self.error or "Request was not successful")
        return self

    def unwrap(self) -> Any:
        """Возвращает data или бросает ApiError, если конверт пустой/неуспешный"""
        self.raise_for_failure()
        if self.data is None:
            raise ApiError(self.message or "Response contained no data")
        return self.data


class ApiService:
    """
    Тонкая обёртка над REST API. Состояния между вызовами не хранит.

    Args:
        base_url: базовый URL API, по умолчанию settings.API_URL
        token_provider: возвращает bearer-токен или None
        client: готовый httpx.AsyncClient (в тестах - с MockTransport)
        timeout: таймаут запроса в секундах
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.token_provider = token_provider or (lambda: settings.AUTH_TOKEN)
        self.timeout = settings.API_TIMEOUT if timeout is None else timeout
        self._client = client

    async def aclose(self) -> None:
        """Закрывает переданный httpx.AsyncClient (временные клиенты закрываются сами)"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "ApiService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _headers(self, json_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, **kwargs)

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        url = f"{self.base_url}{endpoint}"
        # multipart: boundary и Content-Type выставляет httpx
        headers = self._headers(json_body=files is None)

        try:
            response = await self._send(
                method,
                url,
                headers=headers,
                json=json,
                params=params,
                files=files,
                data=data,
            )
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %r", method, url, exc)
            raise ApiError(str(exc) or "Network error occurred") from exc

        if not response.is_success:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            if not isinstance(error_data, dict):
                error_data = {}
            raise ApiError(
                error_data.get("message")
                or f"HTTP error! status: {response.status_code}",
                error_data.get("code"),
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError("Invalid JSON in response", status=response.status_code) from exc
        return ApiResponse.from_payload(payload)

    # ============ Products ============

    async def get_products(self, page: int = 1, limit: int = 20) -> ApiResponse:
        return await self._request(
            "GET", "/products", params={"page": page, "limit": limit}
        )

    async def get_product(self, product_id: str) -> ApiResponse:
        return await self._request("GET", f"/products/{product_id}")

    async def create_product(self, product: Dict[str, Any]) -> ApiResponse:
        return await self._request("POST", "/products", json=product)

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> ApiResponse:
        return await self._request("PUT", f"/products/{product_id}", json=fields)

    async def delete_product(self, product_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/products/{product_id}")

    # ============ Video content ============

    async def get_video_content(self, product_id: Optional[str] = None) -> ApiResponse:
        params = {"productId": product_id} if product_id else None
        return await self._request("GET", "/video-content", params=params)

    async def create_video_content(self, video: Dict[str, Any]) -> ApiResponse:
        return await self._request("POST", "/video-content", json=video)

    async def update_video_content(self, video_id: str, fields: Dict[str, Any]) -> ApiResponse:
        return await self._request("PUT", f"/video-content/{video_id}", json=fields)

    async def delete_video_content(self, video_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/video-content/{video_id}")

    # ============ Social metrics ============

    async def get_social_metrics(self) -> ApiResponse:
        return await self._request("GET", "/social-metrics")

    async def update_social_metrics(self, metrics: Dict[str, Any]) -> ApiResponse:
        return await self._request("PUT", "/social-metrics", json=metrics)

    # ============ Orders ============

    async def get_orders(self, page: int = 1, limit: int = 20) -> ApiResponse:
        return await self._request(
            "GET", "/orders", params={"page": page, "limit": limit}
        )

    async def get_order(self, order_id: str) -> ApiResponse:
        return await self._request("GET", f"/orders/{order_id}")

    async def create_order(self, order: Dict[str, Any]) -> ApiResponse:
        return await self._request("POST", "/orders", json=order)

    async def update_order_status(self, order_id: str, status: str) -> ApiResponse:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status '{status}'")
        return await self._request(
            "PATCH", f"/orders/{order_id}/status", json={"status": status}
        )

    # ============ Money / analytics ============

    async def get_money_data(self) -> ApiResponse:
        return await self._request("GET", "/money")

    async def get_analytics(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> ApiResponse:
        params = {}
        if start_date:
            params["startDate"] = start_date
        if end_date:
            params["endDate"] = end_date
        return await self._request("GET", "/analytics", params=params or None)

    # ============ Upload ============

    async def upload_file(self, content: bytes, filename: str, type: str) -> ApiResponse:
        """Multipart-загрузка: поля file и type ("image" | "video") -> {url, filename}"""
        if type not in UPLOAD_TYPES:
            raise ValueError(f"Upload type must be one of {UPLOAD_TYPES}")
        return await self._request(
            "POST",
            "/upload",
            files={"file": (filename, content)},
            data={"type": type},
        )
