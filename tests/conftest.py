"""Shared test fixtures."""

import os

# Set test environment variables BEFORE any app imports
os.environ.setdefault("GITUTILS_STORAGE_BACKEND", "memory")
if not os.environ.get("GITUTILS_SECRET_KEY"):
    from cryptography.fernet import Fernet

    os.environ["GITUTILS_SECRET_KEY"] = Fernet.generate_key().decode()

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.adapters import get_transport
from app.main import app
from app.store import LocalRecordStore, MemoryBackend, SqlBackend


class FakeUpstream:
    """Routes ``(method, raw path)`` to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def add(
        self,
        method: str,
        url: str,
        *,
        status: int = 200,
        json: Any = None,
        text: str | None = None,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        path = httpx.URL(url).raw_path.decode().split("?")[0]
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                if text is not None:
                    return httpx.Response(status, text=text)
                if json is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=json)
        self.routes[(method.upper(), path)] = handler

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode().split("?")[0]
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, text=f"404 Not Found: {request.method} {path}")
        return handler(request)

    def calls(self, method: str | None = None) -> list[httpx.Request]:
        return [r for r in self.requests if method is None or r.method == method]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture
async def store():
    s = LocalRecordStore(MemoryBackend())
    await s.open()
    yield s
    await s.close()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def any_store(request, tmp_path):
    """The same store contract on both backends."""
    if request.param == "memory":
        backend = MemoryBackend()
    else:
        backend = SqlBackend(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    s = LocalRecordStore(backend)
    await s.open()
    yield s
    await s.close()


@pytest_asyncio.fixture
async def client(store, upstream):
    app.state.store = store
    app.dependency_overrides[get_transport] = lambda: upstream.transport
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
