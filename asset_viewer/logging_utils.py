"""Logging setup shared by the CLI and the web server."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List


DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE_NAME = "asset_viewer.log"

# The HTTP stack logs every request again below the transport's own events.
QUIET_LOGGERS = ("httpx", "httpcore")


def get_log_file_path(log_root: Path) -> Path:
    return log_root / LOG_FILE_NAME


def build_handlers(log_root: Path, *, verbose: bool = False) -> List[logging.Handler]:
    """Return a file handler for *log_root* and a terminal handler.

    The terminal only shows warnings unless *verbose* is set; the file always
    receives everything the root logger lets through.
    """

    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)

    file_handler = logging.FileHandler(get_log_file_path(log_root), encoding="utf-8")
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)

    return [file_handler, stream_handler]


def configure_logging(
    level: int = logging.INFO,
    *,
    handlers: Iterable[logging.Handler] | None = None,
) -> logging.Logger:
    """Attach *handlers* (or a plain stream handler) to the root logger."""

    root = logging.getLogger()
    root.setLevel(level)

    if handlers is None:
        fallback = logging.StreamHandler()
        fallback.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        handlers = [fallback]
    for handler in handlers:
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root


__all__ = [
    "DEFAULT_LOG_FORMAT",
    "LOG_FILE_NAME",
    "build_handlers",
    "configure_logging",
    "get_log_file_path",
]
