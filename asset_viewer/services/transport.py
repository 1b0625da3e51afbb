"""Asynchronous JSON client for the content service."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from ..config import AppConfig
from .events import emit_http_event


LOGGER = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Raised for any failed exchange: network error, non-2xx status or bad JSON."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, path: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.path = path


@dataclass(frozen=True)
class RequestContext:
    """Credentials supplied explicitly by the caller for one view."""

    token: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def as_headers(self) -> Dict[str, str]:
        headers = dict(self.headers)
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @classmethod
    def from_authorization(cls, value: Optional[str]) -> "RequestContext":
        """Build a context from an inbound ``Authorization`` header value."""

        if not value:
            return cls()
        scheme, _, credentials = value.strip().partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return cls(token=credentials.strip())
        return cls(headers={"Authorization": value.strip()})


def render(template: str, **values: str) -> str:
    """Fill *template* with URL-quoted *values*."""

    quoted = {key: quote(str(value), safe="") for key, value in values.items()}
    return template.format(**quoted)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return f"HTTP {response.status_code}"


class ContentServiceClient:
    """Issue JSON requests against ``api_base_url + api_prefix``."""

    def __init__(
        self,
        config: AppConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def config(self) -> AppConfig:
        return self._config

    async def get_json(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> Any:
        return await self._request("GET", path, params=params, context=context)

    async def post_json(
        self,
        path: str,
        body: Optional[Mapping[str, Any]] = None,
        *,
        context: Optional[RequestContext] = None,
    ) -> Any:
        return await self._request("POST", path, body=body, context=context)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        body: Optional[Mapping[str, Any]] = None,
        context: Optional[RequestContext] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if context is not None:
            headers.update(context.as_headers())

        start = time.perf_counter()
        event: Dict[str, Any] = {"method": method, "path": path}
        if params:
            event["params"] = dict(params)

        try:
            async with httpx.AsyncClient(
                base_url=self._config.api_root,
                timeout=self._config.request_timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    params=dict(params) if params else None,
                    json=dict(body) if body is not None else None,
                    headers=headers,
                )
        except httpx.HTTPError as error:
            event.update(status="error", error=f"{error.__class__.__name__}: {error}")
            emit_http_event(
                "Request failed",
                details=event,
                duration_ms=(time.perf_counter() - start) * 1000.0,
                level=logging.WARNING,
            )
            raise TransportError(str(error) or error.__class__.__name__, path=path) from error

        duration_ms = (time.perf_counter() - start) * 1000.0
        event["status"] = response.status_code
        if not response.is_success:
            message = _error_message(response)
            event["error"] = message
            emit_http_event(
                "Request rejected", details=event, duration_ms=duration_ms, level=logging.WARNING
            )
            raise TransportError(message, status_code=response.status_code, path=path)

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as error:
            event["error"] = "invalid JSON"
            emit_http_event(
                "Malformed response", details=event, duration_ms=duration_ms, level=logging.WARNING
            )
            raise TransportError(
                "Response was not valid JSON", status_code=response.status_code, path=path
            ) from error

        emit_http_event("Request completed", details=event, duration_ms=duration_ms, level=logging.DEBUG)
        return data


__all__ = ["ContentServiceClient", "RequestContext", "TransportError", "render"]
