"""Structured log events for outbound requests, set resolution and telemetry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional


EVENT_LOGGER = logging.getLogger("asset_viewer.events")

_MAX_VALUE_LENGTH = 200


class EventKind(str, Enum):
    API_REQUEST = "API_REQUEST"
    HTTP_REQUEST = "HTTP_REQUEST"
    QUESTION_SET = "QUESTION_SET"
    TELEMETRY = "TELEMETRY"


def loggable(value: Any) -> Any:
    """Reduce *value* to something fit for one log line; ``None`` means drop it."""

    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, Enum):
        return loggable(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return compact(value) or None
    if isinstance(value, (list, tuple, set)):
        value = ", ".join(str(item) for item in value)
    text = str(value).strip()
    if not text:
        return None
    if len(text) > _MAX_VALUE_LENGTH:
        return text[:_MAX_VALUE_LENGTH] + "…"
    return text


def compact(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return *values* without empty entries, every remaining value loggable."""

    result: Dict[str, Any] = {}
    for key, raw in (values or {}).items():
        if not key:
            continue
        value = loggable(raw)
        if value is None:
            continue
        result[str(key)] = value
    return result


@dataclass
class ViewerEvent:
    kind: EventKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    correlation: Dict[str, Any] = field(default_factory=dict)
    duration_ms: Optional[float] = None

    def render(self) -> str:
        parts = {**self.correlation, **self.details}
        if self.duration_ms is not None:
            parts["duration_ms"] = round(self.duration_ms, 1)
        text = f"[{self.kind.value}] {self.message}"
        if parts:
            text += " (" + ", ".join(f"{key}={value}" for key, value in parts.items()) + ")"
        return text

    def extra(self) -> Dict[str, Any]:
        """Fields attached to the log record for handlers that want them."""

        extra: Dict[str, Any] = {"event_type": self.kind.value, "event_message": self.message}
        if self.details:
            extra["event_details"] = self.details
        if self.correlation:
            extra["event_correlation"] = self.correlation
        if self.duration_ms is not None:
            extra["event_duration_ms"] = self.duration_ms
        return extra


def emit_event(
    kind: EventKind,
    message: str,
    *,
    details: Optional[Mapping[str, Any]] = None,
    correlation: Optional[Mapping[str, Any]] = None,
    duration_ms: Optional[float] = None,
    level: int = logging.INFO,
    logger: logging.Logger | logging.LoggerAdapter = EVENT_LOGGER,
) -> ViewerEvent:
    event = ViewerEvent(
        kind=kind,
        message=str(message).strip(),
        details=compact(details),
        correlation=compact(correlation),
        duration_ms=None if duration_ms is None else float(duration_ms),
    )
    logger.log(level, event.render(), extra=event.extra())
    return event


def emit_http_event(
    action: str,
    *,
    details: Optional[Mapping[str, Any]] = None,
    duration_ms: Optional[float] = None,
    level: int = logging.INFO,
) -> ViewerEvent:
    return emit_event(
        EventKind.HTTP_REQUEST, action, details=details, duration_ms=duration_ms, level=level
    )


def emit_resolution_event(
    message: str,
    *,
    details: Optional[Mapping[str, Any]] = None,
    level: int = logging.INFO,
) -> ViewerEvent:
    return emit_event(EventKind.QUESTION_SET, message, details=details, level=level)


def emit_telemetry_event(
    message: str,
    *,
    details: Optional[Mapping[str, Any]] = None,
    level: int = logging.INFO,
) -> ViewerEvent:
    return emit_event(EventKind.TELEMETRY, message, details=details, level=level)


__all__ = [
    "EVENT_LOGGER",
    "EventKind",
    "ViewerEvent",
    "compact",
    "emit_event",
    "emit_http_event",
    "emit_resolution_event",
    "emit_telemetry_event",
    "loggable",
]
