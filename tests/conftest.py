from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx
import pytest

# settings are read at import time
os.environ.setdefault("ENABLE_METRICS", "false")
os.environ.setdefault("MINERU_BASE_URL", "https://mineru.test/api/v4")
os.environ.setdefault("PANDOC_SERVICE_URL", "https://pandoc.test")

from fastapi.testclient import TestClient  # noqa: E402

from mineru_relay.app import app  # noqa: E402
from mineru_relay.config import settings  # noqa: E402
from mineru_relay.dependencies import get_binary_relay, get_mineru_client  # noqa: E402
from mineru_relay.services.binary_relay import BinaryRelay  # noqa: E402
from mineru_relay.services.mineru_client import MineruClient  # noqa: E402

BATCH_OK = {
    "code": 0,
    "msg": "ok",
    "trace_id": "t-123",
    "data": {"batch_id": "B1", "file_urls": ["http://mock/up"]},
}

RESULTS_OK = {
    "code": 0,
    "msg": "ok",
    "data": {
        "batch_id": "B1",
        "extract_result": [
            {"file_name": "a.pdf", "state": "running", "err_msg": ""},
        ],
    },
}


@dataclass
class MockRemote:
    """In-process stand-in for MinerU plus the presigned storage bucket."""

    batch_response: httpx.Response | dict = field(default_factory=lambda: dict(BATCH_OK))
    results_response: httpx.Response | dict = field(default_factory=lambda: dict(RESULTS_OK))
    put_status: int = 200
    put_error: Optional[Exception] = None
    requests: list[httpx.Request] = field(default_factory=list)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def requests_to(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def _reply(self, value: httpx.Response | dict) -> httpx.Response:
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(200, json=value)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and request.url.path.endswith("/file-urls/batch"):
            return self._reply(self.batch_response)
        if request.method == "GET" and "/extract-results/batch/" in request.url.path:
            return self._reply(self.results_response)
        if request.method == "PUT":
            if self.put_error is not None:
                raise self.put_error
            return httpx.Response(self.put_status)
        return httpx.Response(404, json={"msg": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> MineruClient:
        return MineruClient(cfg=settings, transport=self.transport())


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def remote() -> MockRemote:
    return MockRemote()


@pytest.fixture
def upstream_handler() -> dict[str, Callable[[httpx.Request], httpx.Response]]:
    """Holder for the binary-relay upstream; tests replace ``["handler"]``."""
    return {"handler": lambda request: httpx.Response(404)}


@pytest.fixture
def api(remote: MockRemote, upstream_handler) -> TestClient:
    async def _mineru_client() -> MineruClient:
        return remote.client()

    async def _binary_relay() -> BinaryRelay:
        transport = httpx.MockTransport(lambda request: upstream_handler["handler"](request))
        return BinaryRelay(cfg=settings, transport=transport)

    app.dependency_overrides[get_mineru_client] = _mineru_client
    app.dependency_overrides[get_binary_relay] = _binary_relay
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
