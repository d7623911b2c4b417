"""Tests for logging utilities."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from mail_archiver.core.config import LoggingSettings
from mail_archiver.core.logging import configure_logging


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_run_log_lines_are_iso_timestamped_and_appended(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "archive.log"
    log_file.parent.mkdir()
    log_file.write_text("2026-01-01T00:00:00+00:00  earlier run\n", encoding="utf-8")

    configure_logging(LoggingSettings(level="INFO", log_file=log_file))
    logging.getLogger("mail_archiver.test").info("Exported 3 item(s)")
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "2026-01-01T00:00:00+00:00  earlier run"
    stamp, message = lines[-1].split("  ", 1)
    assert message == "Exported 3 item(s)"
    assert datetime.fromisoformat(stamp).tzinfo is not None

    configure_logging(LoggingSettings(level="INFO"))
