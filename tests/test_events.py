from __future__ import annotations

import logging
from enum import Enum

from asset_viewer.services.events import (
    EventKind,
    compact,
    emit_event,
    emit_http_event,
    loggable,
)


class Colour(Enum):
    RED = "red"


def test_event_renders_details_after_correlation(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="asset_viewer.events")

    event = emit_event(
        EventKind.QUESTION_SET,
        " Resolved ",
        details={"set_id": "s1", "empty": "", "missing": None},
        correlation={"request_id": "abc"},
        duration_ms=12.345,
    )

    record = caplog.records[-1]
    assert record.getMessage() == "[QUESTION_SET] Resolved (request_id=abc, set_id=s1, duration_ms=12.3)"
    assert record.event_type == "QUESTION_SET"
    assert record.event_details == {"set_id": "s1"}
    assert record.event_correlation == {"request_id": "abc"}
    assert record.event_duration_ms == 12.345
    assert event.message == "Resolved"


def test_http_event_uses_requested_level(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="asset_viewer.events")

    emit_http_event("Request rejected", details={"status": 500}, level=logging.WARNING)

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "[HTTP_REQUEST] Request rejected (status=500)"


def test_event_without_details_has_no_parentheses(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="asset_viewer.events")

    emit_event(EventKind.TELEMETRY, "Drained", correlation={"request_id": None})

    assert caplog.records[-1].getMessage() == "[TELEMETRY] Drained"


def test_loggable() -> None:
    assert loggable(Colour.RED) == "red"
    assert loggable(["a", "b"]) == "a, b"
    assert loggable("   ") is None
    assert loggable(True) is True
    assert loggable(0) == 0
    assert loggable({"empty": ""}) is None
    long_value = loggable("x" * 250)
    assert long_value.endswith("…")
    assert len(long_value) == 201


def test_compact_drops_empty_values() -> None:
    assert compact({"a": 1, "b": "", "c": None, "": "x", "d": {"e": None, "f": 2}}) == {
        "a": 1,
        "d": {"f": 2},
    }
    assert compact(None) == {}
