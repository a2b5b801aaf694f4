import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import httpx
import pytest

from core.api import ApiService
from core.notifications import NotificationCenter
from core.transforms import FallbackDataset

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SEED_PATH = os.path.join(ROOT, "data", "seed.json")

BASE_URL = "http://backend.test/api"
API_PREFIX = "/api"


class FakeBackend:
    """
    Обработчик для httpx.MockTransport: (method, path) -> (status, payload).
    payload может быть функцией от запроса. Неизвестный маршрут -> 404.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, payload=None, status=200):
        self.routes[(method, path)] = (status, payload)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len(API_PREFIX):]
        if (request.method, path) not in self.routes:
            return httpx.Response(
                404, json={"success": False, "message": f"No route {request.method} {path}"}
            )
        status, payload = self.routes[(request.method, path)]
        if callable(payload):
            payload = payload(request)
        return httpx.Response(status, json=payload)


def make_api(handler, token=None) -> ApiService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ApiService(base_url=BASE_URL, token_provider=lambda: token, client=client)


def refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api(backend):
    return make_api(backend)


@pytest.fixture
def offline_api():
    """API, до которого нельзя достучаться"""
    return make_api(refuse)


@pytest.fixture
def fallback():
    return FallbackDataset(SEED_PATH)


@pytest.fixture
def notifications():
    return NotificationCenter()
