from __future__ import annotations

import logging
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGE_DIR = PROJECT_ROOT / "vaultrisk"

APP_LOGS_DIR = PACKAGE_DIR / "logs"
APP_LOG_FILE = APP_LOGS_DIR / "app.log"

_LOGGER = logging.getLogger(__name__)


def ensure_dir(path: Path | str) -> Path:
    """Create *path* (and parents) if missing and return it resolved."""

    resolved = Path(path).expanduser().resolve()
    if resolved.exists() and not resolved.is_dir():
        raise NotADirectoryError(f"expected directory path={resolved} but found file")
    if not resolved.exists():
        resolved.mkdir(parents=True, exist_ok=True)
        _LOGGER.info("created dir path=%s", resolved)
    return resolved


__all__ = [
    "PROJECT_ROOT",
    "PACKAGE_DIR",
    "APP_LOGS_DIR",
    "APP_LOG_FILE",
    "ensure_dir",
]
