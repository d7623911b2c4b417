"""Export index: the durable record of which items were already archived."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from ..core.datetime_utils import parse_datetime, serialize_datetime
from ..core.models import ExportRecord

LOGGER = logging.getLogger(__name__)


class DuplicateExportError(ValueError):
    """Raised when an identity is recorded twice in the same index."""


class ExportIndex:
    """In-memory mapping of identity key to :class:`ExportRecord`.

    The index is owned by a single run. It is loaded once at the start,
    mutated while folders are processed and flushed once at the end through
    :class:`JsonExportIndexStore`. Items written to disk after the last flush
    are not remembered if the process dies, and will be exported again under a
    disambiguated file name on the next run.
    """

    def __init__(self, records: dict[str, ExportRecord] | None = None) -> None:
        """Initialise the index with optional pre-existing records."""
        self._records: dict[str, ExportRecord] = dict(records or {})

    def contains(self, identity: str) -> bool:
        """Return ``True`` when ``identity`` has already been exported."""
        return identity in self._records

    def get(self, identity: str) -> ExportRecord | None:
        """Return the stored record for ``identity`` if present."""
        return self._records.get(identity)

    def record(self, identity: str, export_record: ExportRecord) -> None:
        """Insert a new record; existing records are never overwritten."""
        if identity in self._records:
            raise DuplicateExportError(f"Identity '{identity}' is already indexed")
        self._records[identity] = export_record

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def records(self) -> dict[str, ExportRecord]:
        """Return a shallow copy of all records."""
        return dict(self._records)


class JsonExportIndexStore:
    """Load and atomically save an :class:`ExportIndex` as a JSON document."""

    def __init__(self, path: Path) -> None:
        """Initialise the store for the index file at ``path``."""
        self.path = Path(path)

    def load(self) -> ExportIndex:
        """Read the index file; missing or unreadable content yields an empty index."""
        if not self.path.exists():
            LOGGER.info("No export index at %s; starting empty", self.path)
            return ExportIndex()

        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
            records = _decode_records(document)
        except (OSError, ValueError, TypeError, KeyError) as exc:
            LOGGER.warning(
                "Export index %s is unreadable (%s); starting with an empty index",
                self.path,
                exc,
            )
            return ExportIndex()

        LOGGER.info("Loaded %s export record(s) from %s", len(records), self.path)
        return ExportIndex(records)

    def save(self, index: ExportIndex) -> None:
        """Serialise ``index`` and replace the index file atomically."""
        payload = {
            identity: {
                "ExportedAt": serialize_datetime(record.exported_at),
                "FilePath": str(record.file_path),
                "Hash": record.content_hash,
            }
            for identity, record in index.records().items()
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(payload, stream, ensure_ascii=False, indent=2)
                stream.flush()
                os.fsync(stream.fileno())
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        LOGGER.info("Saved %s export record(s) to %s", len(index), self.path)


def _decode_records(document: Any) -> dict[str, ExportRecord]:
    if not isinstance(document, dict):
        raise ValueError("index document is not a JSON object")

    records: dict[str, ExportRecord] = {}
    for identity, entry in document.items():
        if not isinstance(entry, dict):
            raise ValueError(f"entry for '{identity}' is not an object")
        exported_at = parse_datetime(entry["ExportedAt"])
        if exported_at is None:
            raise ValueError(f"entry for '{identity}' has no export time")
        content_hash = entry.get("Hash")
        records[identity] = ExportRecord(
            identity=identity,
            exported_at=exported_at,
            file_path=Path(entry["FilePath"]),
            content_hash=str(content_hash) if content_hash is not None else None,
        )
    return records


__all__ = ["DuplicateExportError", "ExportIndex", "JsonExportIndexStore"]
