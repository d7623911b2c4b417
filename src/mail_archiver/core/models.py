"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ExportRecord:
    """Durable proof that an item identity has been written to disk."""

    identity: str
    exported_at: datetime
    file_path: Path
    content_hash: str | None = None


@dataclass(slots=True)
class ExportStats:
    """Counters accumulated while processing folders during one run."""

    exported: int = 0
    already_exported: int = 0
    skipped_non_mail: int = 0
    export_failures: int = 0
    retag_failures: int = 0
    folders_failed: int = 0


@dataclass(slots=True)
class RunReport:
    """Outcome summary for an archive run."""

    exported: int
    index_size: int
    index_path: Path
    stats: ExportStats = field(default_factory=ExportStats)


__all__ = [
    "ExportRecord",
    "ExportStats",
    "RunReport",
]
