"""Publisher logs live next to the persisted state, under ``<vault>/.jade/logs``."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
from typing import List, Optional, Union

LOG_DIR = Path(".jade") / "logs"
LOG_SUBPATH = LOG_DIR / "publisher.log"
STRUCTURED_LOG_SUBPATH = LOG_DIR / "publisher.jsonl"
MAX_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 3
REPO_ROOT = Path(__file__).resolve().parent.parent
FALLBACK_ROOT = REPO_ROOT / ".jade_runtime"
ROOT_LOGGER = "jade_publisher"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
QUIET_LOGGERS = ("aiohttp", "aiohttp.client", "aiohttp.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for the ``publisher.jsonl`` log."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(
    vault_dir: Path,
    level: Union[str, int] = logging.WARNING,
    structured: bool = True,
    console: bool = True,
) -> Path:
    """Route the ``jade_publisher`` logger tree to rotating files.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        vault_dir: Vault root; logs go under ``.jade/logs``.
        level: Logging level (string name or int constant).
        structured: Also write JSON lines to ``publisher.jsonl``.
        console: Mirror log output to stderr.

    Returns:
        Path to the text log file.
    """
    log_root = _writable_root(vault_dir)
    log_path = log_root / LOG_SUBPATH
    text_formatter = logging.Formatter(TEXT_FORMAT)

    handlers: List[logging.Handler] = [_rotating_handler(log_path, text_formatter)]
    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(text_formatter)
        handlers.append(stream)
    if structured:
        handlers.append(_rotating_handler(log_root / STRUCTURED_LOG_SUBPATH, JSONFormatter()))

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(_level_number(level))
    logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return log_path


def _rotating_handler(path: Path, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def _level_number(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.WARNING)


def _writable_root(vault_dir: Path) -> Path:
    """Vault root when its log directory can be created, else ``FALLBACK_ROOT``."""
    try:
        (vault_dir / LOG_DIR).mkdir(parents=True, exist_ok=True)
        return vault_dir
    except PermissionError:
        (FALLBACK_ROOT / LOG_DIR).mkdir(parents=True, exist_ok=True)
        print(
            f"[config] Cannot create '{vault_dir / LOG_DIR}'; "
            f"logging under '{FALLBACK_ROOT / LOG_DIR}' instead.",
            file=sys.stderr,
        )
        return FALLBACK_ROOT


def describe_log_path(log_path: Path, vault_dir: Optional[Path] = None) -> str:
    """Show ``log_path`` relative to the vault when it lives inside it."""
    if vault_dir is not None:
        try:
            return str(log_path.relative_to(vault_dir))
        except ValueError:
            pass
    return str(log_path)


__all__ = [
    "FALLBACK_ROOT",
    "JSONFormatter",
    "LOG_SUBPATH",
    "STRUCTURED_LOG_SUBPATH",
    "describe_log_path",
    "setup_logging",
]
