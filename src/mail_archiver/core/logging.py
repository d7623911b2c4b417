"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
from datetime import datetime
from typing import Any

from .config import LoggingSettings


class IsoTimestampFormatter(logging.Formatter):
    """Formatter rendering ``asctime`` as a local ISO-8601 timestamp."""

    def formatTime(  # noqa: N802 - overrides logging.Formatter API
        self, record: logging.LogRecord, datefmt: str | None = None
    ) -> str:
        del datefmt
        stamp = datetime.fromtimestamp(record.created).astimezone()
        return stamp.isoformat(timespec="seconds")


def _structured_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for structured logs."""
    return {
        "format": "{asctime} {levelname} {name} {message}",
        "style": "{",
    }


def _plain_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for human readable logs."""
    return {
        "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
    }


def _run_log_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for the append-only run log."""
    return {
        "()": IsoTimestampFormatter,
        "fmt": "%(asctime)s  %(message)s",
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    formatter = _structured_formatter() if settings.structured else _plain_formatter()

    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": settings.level,
        },
    }
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers["run_log"] = {
            "class": "logging.FileHandler",
            "formatter": "run_log",
            "level": settings.level,
            "filename": str(settings.log_file),
            "mode": "a",
            "encoding": "utf-8",
        }

    dict_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": formatter,
            "run_log": _run_log_formatter(),
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers),
            "level": settings.level,
        },
    }

    logging.config.dictConfig(dict_config)


__all__ = ["IsoTimestampFormatter", "configure_logging"]
