import logging
from pathlib import Path

from asset_viewer.logging_utils import build_handlers, configure_logging, get_log_file_path


def test_handlers_write_to_the_log_root(tmp_path: Path) -> None:
    handlers = build_handlers(tmp_path, verbose=False)
    try:
        file_handler, stream_handler = handlers
        assert Path(file_handler.baseFilename).resolve() == get_log_file_path(tmp_path).resolve()
        assert stream_handler.level == logging.WARNING
    finally:
        for handler in handlers:
            handler.close()


def test_verbose_terminal_shows_debug(tmp_path: Path) -> None:
    handlers = build_handlers(tmp_path, verbose=True)
    try:
        assert handlers[1].level == logging.DEBUG
    finally:
        for handler in handlers:
            handler.close()


def test_configure_logging_quiets_the_http_stack() -> None:
    root = logging.getLogger()
    previous_level = root.level
    handler = logging.NullHandler()
    try:
        configure_logging(logging.DEBUG, handlers=[handler])
        assert handler in root.handlers
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
    finally:
        root.removeHandler(handler)
        root.setLevel(previous_level)
