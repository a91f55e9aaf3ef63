from __future__ import annotations

import logging
from logging import Formatter, Handler, StreamHandler
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

from .paths import APP_LOG_FILE, ensure_dir

_installed: List[Handler] = []

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3


def _resolve_level(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        named = getattr(logging, level.upper(), None)
        if isinstance(named, int):
            return named
        try:
            return int(level)
        except ValueError:
            return logging.INFO
    return logging.INFO


def setup_app_logging(
    level: Union[str, int] = "INFO", log_file: Optional[Path] = None
) -> None:
    """Configure console and rotating file logging once per process."""
    resolved = _resolve_level(level)
    root = logging.getLogger()
    if not _installed:
        file_handler = _build_rotating_handler(log_file or APP_LOG_FILE)
        stream_handler = StreamHandler()
        stream_handler.setFormatter(Formatter(LOG_FORMAT))
        for handler in (file_handler, stream_handler):
            root.addHandler(handler)
            _installed.append(handler)
    root.setLevel(resolved)
    for handler in _installed:
        handler.setLevel(resolved)


def reset_logging() -> None:
    """Remove and close the handlers installed by :func:`setup_app_logging`."""
    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()


def _build_rotating_handler(path: Path, level: Optional[int] = None) -> Handler:
    ensure_dir(path.parent)
    handler = RotatingFileHandler(
        path,
        mode="a",
        encoding="utf-8",
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
    )
    handler.setFormatter(Formatter(LOG_FORMAT))
    if level is not None:
        handler.setLevel(level)
    return handler
