from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from asset_viewer.bootstrap import ViewerServices, build_services
from asset_viewer.config import AppConfig


API_BASE = "http://content.test"
API_PREFIX = "/api"


def _static_response(status: int, body: Any) -> Callable[[httpx.Request], httpx.Response]:
    def respond(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)

    return respond


class FakeContentService:
    """Routes requests of an ``httpx.MockTransport`` to canned responses.

    Paths are given relative to the API prefix. A route registered without
    ``params`` only matches requests without a query string.
    """

    def __init__(self) -> None:
        self._routes: List[Tuple[str, str, Optional[Dict[str, str]], Any]] = []
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        status: int = 200,
        params: Optional[Dict[str, str]] = None,
        responder: Optional[Callable[[httpx.Request], httpx.Response]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        if responder is None and error is None:
            responder = _static_response(status, json)
        self._routes.append((method.upper(), API_PREFIX + path, params, error or responder))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        request_params = dict(request.url.params)
        for method, path, params, outcome in self._routes:
            if method != request.method or path != request.url.path:
                continue
            if (params or {}) != request_params:
                continue
            if isinstance(outcome, Exception):
                raise outcome
            return outcome(request)
        return httpx.Response(404, json={"message": "Not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls(self, method: str, path: str) -> int:
        full_path = API_PREFIX + path
        return sum(
            1 for request in self.requests if request.method == method and request.url.path == full_path
        )


@pytest.fixture()
def config(tmp_path: Path) -> AppConfig:
    return AppConfig.from_mapping(
        {
            "api_base_url": API_BASE,
            "api_prefix": API_PREFIX,
            "telemetry_backoff_seconds": 0,
            "log_root": "logs",
        },
        base_path=tmp_path,
    )


@pytest.fixture()
def content_service() -> FakeContentService:
    return FakeContentService()


@pytest.fixture()
def services(config: AppConfig, content_service: FakeContentService) -> ViewerServices:
    return build_services(config, transport=content_service.transport)
