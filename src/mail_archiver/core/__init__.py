"""Core utilities for configuration, logging, and shared models."""

from .config import AppSettings, ExportSettings, LoggingSettings, load_app_settings
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "ExportSettings",
    "LoggingSettings",
    "configure_logging",
    "load_app_settings",
]
