"""Tests for logging utilities."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from jade_publisher import logging_utils


def _reset_logger() -> logging.Logger:
    logger = logging.getLogger("jade_publisher")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def test_setup_logging_creates_rotating_files(tmp_path: Path):
    logger = _reset_logger()
    log_path = logging_utils.setup_logging(tmp_path, level="INFO", console=False)

    assert log_path == tmp_path / ".jade" / "logs" / "publisher.log"
    assert log_path.exists()
    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 2
    assert logger.level == logging.INFO


def test_structured_log_writes_json_lines(tmp_path: Path):
    logger = _reset_logger()
    logging_utils.setup_logging(tmp_path, level="DEBUG", console=False)

    logging.getLogger("jade_publisher.sync.coordinator").info("committed %d", 3)
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / ".jade" / "logs" / "publisher.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["message"] == "committed 3"
    assert record["logger"] == "jade_publisher.sync.coordinator"
    assert record["level"] == "INFO"


def test_setup_logging_is_idempotent(tmp_path: Path):
    logger = _reset_logger()
    logging_utils.setup_logging(tmp_path, level="INFO")
    handler_count = len(logger.handlers)

    logging_utils.setup_logging(tmp_path, level="INFO")
    assert len(logger.handlers) == handler_count


def test_setup_logging_falls_back_when_permission_denied(tmp_path: Path, monkeypatch):
    _reset_logger()
    vault_dir = tmp_path / "vault"
    primary_parent = vault_dir / ".jade" / "logs"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):
        if str(self).startswith(str(primary_parent)):
            raise PermissionError
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    fallback_root = tmp_path / "fallback"
    monkeypatch.setattr(logging_utils, "FALLBACK_ROOT", fallback_root)

    log_path = logging_utils.setup_logging(vault_dir, level="INFO", structured=False)

    assert log_path == fallback_root / ".jade" / "logs" / "publisher.log"
    assert log_path.exists()
