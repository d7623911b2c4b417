"""Application configuration models and loader utilities."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field, field_validator, model_validator

INDEX_FILE_NAME = "_export_index.json"
LOG_FILE_NAME = "_export.log"

LOGGER = logging.getLogger(__name__)


class ExportSettings(BaseModel):
    """Options controlling which items are archived and where they land."""

    archive_tag: str = Field(
        default="Archive", description="Category marking items for export"
    )
    post_export_tag: str = Field(
        default="Exported",
        description="Category applied after export; blank disables re-tagging",
    )
    min_age_days: int = Field(
        default=0, ge=0, description="Only export items at least this old (0 = any)"
    )
    export_root: Path = Field(
        default_factory=lambda: Path.home() / "MailArchive",
        description="Absolute directory receiving exported .msg files",
    )
    folders_to_scan: list[str] = Field(
        default_factory=list,
        description="Folder paths such as 'Inbox/Projects'; empty scans everything",
    )
    compute_content_hash: bool = Field(
        default=False, description="Record a SHA-256 digest of every exported file"
    )
    index_file: Path | None = Field(
        default=None, description="Export index location (defaults under export_root)"
    )

    @field_validator("archive_tag")
    @classmethod
    def _require_tag(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("archive_tag must not be blank")
        return stripped

    @field_validator("post_export_tag", mode="before")
    @classmethod
    def _normalize_post_tag(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("export_root")
    @classmethod
    def _require_absolute_root(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"export_root must be an absolute path, got '{value}'")
        return value

    @field_validator("folders_to_scan", mode="before")
    @classmethod
    def _split_folder_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [segment.strip() for segment in value.split(";") if segment.strip()]
        return value

    @model_validator(mode="after")
    def _warn_on_overlapping_tags(self) -> ExportSettings:
        if self.retag_enabled and (
            self.archive_tag.casefold() in self.post_export_tag.casefold()
        ):
            LOGGER.warning(
                "post_export_tag '%s' contains archive_tag '%s'; re-tagged items "
                "will keep matching and rely on the export index alone",
                self.post_export_tag,
                self.archive_tag,
            )
        return self

    @property
    def retag_enabled(self) -> bool:
        """Return ``True`` when exported items should be moved to a new tag."""
        return bool(self.post_export_tag)

    @property
    def resolved_index_file(self) -> Path:
        """Return the export index path, defaulting inside ``export_root``."""
        return self.index_file or self.export_root / INDEX_FILE_NAME


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle brace-style structured console logs"
    )
    log_file: Path | None = Field(
        default=None, description="Append-only run log (defaults under export_root)"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    export: ExportSettings = Field(default_factory=ExportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def _default_log_file(self) -> AppSettings:
        if self.logging.log_file is None:
            self.logging.log_file = self.export.export_root / LOG_FILE_NAME
        return self


ENV_PREFIX = "MAIL_ARCHIVER_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, include_environment: bool
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "ExportSettings",
    "LoggingSettings",
    "load_app_settings",
]
