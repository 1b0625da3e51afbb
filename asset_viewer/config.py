"""Configuration loading utilities for the asset viewer."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


LOGGER = logging.getLogger(__name__)


_PERMISSION_SENTINEL = ".asset_viewer_write_check"

API_URL_ENV = "ASSET_VIEWER_API_URL"
TIMEOUT_ENV = "ASSET_VIEWER_TIMEOUT"


DEFAULT_ENDPOINTS: Dict[str, str] = {
    "book": "/qrcode/book-data/{book_id}",
    "chapter": "/qrcode/book-data/{book_id}/chapters/{chapter_id}",
    "topic": "/qrcode/book-data/{book_id}/chapters/{chapter_id}/topics/{topic_id}",
    "subtopic": (
        "/qrcode/book-data/{book_id}/chapters/{chapter_id}"
        "/topics/{topic_id}/subtopics/{subtopic_id}"
    ),
    "set_questions": "/objective-assets/question-sets/{set_id}/questions",
    "questions": "/objective-assets/questions",
    "video_view": "/video-assets/videos/{video_id}/view",
    "answer": "/objective-assets/questions/{question_id}/answer",
}


DEFAULT_SETTINGS: Dict[str, Any] = {
    "api_base_url": "http://localhost:5000",
    "api_prefix": "/api",
    "request_timeout": 15.0,
    "telemetry_max_attempts": 2,
    "telemetry_backoff_seconds": 0.5,
    "log_root": "logs",
}


def _ensure_writable_directory(path: Path) -> bool:
    """Return ``True`` if *path* can be created and written to."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False

    test_file = path / _PERMISSION_SENTINEL
    try:
        with test_file.open("w", encoding="utf-8") as handle:
            handle.write("ok")
    except OSError:
        return False
    finally:
        with contextlib.suppress(OSError):
            test_file.unlink()

    return True


def _select_writable_directory(
    preferred: Path,
    *,
    label: str,
    fallbacks: Iterable[Path] = (),
) -> Tuple[Path, bool]:
    """Return a usable directory based on ``preferred`` and ``fallbacks``.

    The first writable candidate wins and the flag reports whether a fallback
    was used. When nothing can be prepared ``preferred`` is returned as-is so
    that the caller fails loudly on first use instead of here.
    """

    preferred = preferred.resolve()
    if _ensure_writable_directory(preferred):
        return preferred, False

    for fallback in fallbacks:
        candidate = fallback.resolve()
        if candidate == preferred:
            continue
        if _ensure_writable_directory(candidate):
            LOGGER.warning(
                "Preferred %s directory '%s' is not writable; using fallback '%s'.",
                label,
                preferred,
                candidate,
            )
            return candidate, True

    LOGGER.warning(
        "%s directory '%s' is not writable and no fallback is available.",
        label.capitalize(),
        preferred,
    )
    return preferred, False


@dataclass(frozen=True)
class EndpointTemplates:
    """Path templates of the content service, relative to the API prefix."""

    book: str
    chapter: str
    topic: str
    subtopic: str
    set_questions: str
    questions: str
    video_view: str
    answer: str

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "EndpointTemplates":
        merged = dict(DEFAULT_ENDPOINTS)
        for key, value in (mapping or {}).items():
            if key not in merged:
                LOGGER.debug("Ignoring unknown endpoint template '%s'", key)
                continue
            text = str(value or "").strip()
            if not text:
                raise ValueError(f"Endpoint template '{key}' must not be empty")
            merged[key] = text if text.startswith("/") else f"/{text}"
        return cls(**merged)

    def for_kind(self, kind: str) -> str:
        """Return the aggregation template for an entity *kind*."""

        if kind not in {"book", "chapter", "topic", "subtopic"}:
            raise KeyError(kind)
        return getattr(self, kind)


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings for talking to the content service."""

    api_base_url: str
    api_prefix: str
    request_timeout: float
    telemetry_max_attempts: int
    telemetry_backoff_seconds: float
    endpoints: EndpointTemplates
    log_root: Path

    @property
    def api_root(self) -> str:
        """Base URL every endpoint template is appended to."""

        return f"{self.api_base_url}{self.api_prefix}"

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], *, base_path: Path) -> "AppConfig":
        settings: Dict[str, Any] = dict(DEFAULT_SETTINGS)
        known = {item.name for item in fields(cls)}
        for key, value in mapping.items():
            if key in known:
                settings[key] = value
            else:
                LOGGER.debug("Ignoring unknown configuration key '%s'", key)

        base_url = str(settings["api_base_url"] or "").strip().rstrip("/")
        if not base_url:
            raise ValueError("api_base_url must not be empty")

        prefix = str(settings["api_prefix"] or "").strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = f"/{prefix}"

        timeout = float(settings["request_timeout"])
        if timeout <= 0:
            raise ValueError("request_timeout must be positive")

        try:
            attempts = int(settings["telemetry_max_attempts"])
        except OverflowError as error:
            raise ValueError("telemetry_max_attempts must be a finite number") from error
        if attempts < 1:
            raise ValueError("telemetry_max_attempts must be at least 1")

        backoff = float(settings["telemetry_backoff_seconds"])
        if backoff < 0:
            raise ValueError("telemetry_backoff_seconds must not be negative")

        preferred_logs = (base_path / str(settings["log_root"])).resolve()
        log_root, _ = _select_writable_directory(
            preferred_logs,
            label="log",
            fallbacks=(Path.home() / ".asset_viewer" / "logs",),
        )

        return cls(
            api_base_url=base_url,
            api_prefix=prefix,
            request_timeout=timeout,
            telemetry_max_attempts=attempts,
            telemetry_backoff_seconds=backoff,
            endpoints=EndpointTemplates.from_mapping(settings.get("endpoints")),
            log_root=log_root,
        )


def _apply_environment(raw_config: Dict[str, Any]) -> Dict[str, Any]:
    api_url = os.environ.get(API_URL_ENV, "").strip()
    if api_url:
        raw_config["api_base_url"] = api_url
    timeout = os.environ.get(TIMEOUT_ENV, "").strip()
    if timeout:
        try:
            raw_config["request_timeout"] = float(timeout)
        except ValueError:
            LOGGER.warning("Ignoring non-numeric %s value '%s'", TIMEOUT_ENV, timeout)
    return raw_config


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the configuration from ``config/default.json`` by default.

    A missing default file is not an error: the built-in defaults apply. An
    explicitly requested file must exist.
    """

    base_path = Path(__file__).resolve().parent.parent
    explicit = config_path is not None
    if config_path is None:
        config_path = base_path / "config" / "default.json"

    raw_config: Dict[str, Any] = {}
    if explicit or config_path.exists():
        with config_path.open("r", encoding="utf-8") as config_file:
            raw_config = json.load(config_file)
    else:
        LOGGER.debug("No configuration file at %s; using defaults", config_path)

    return AppConfig.from_mapping(_apply_environment(raw_config), base_path=base_path)


__all__ = ["AppConfig", "EndpointTemplates", "DEFAULT_ENDPOINTS", "load_config"]
