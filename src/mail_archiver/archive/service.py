"""A single archive run: load the index, traverse the store, flush the index."""

from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from pathlib import Path

from ..core.config import ExportSettings
from ..core.interfaces import ExportRootError, MailStore
from ..core.models import ExportStats, RunReport
from .filters import ItemFilterBuilder
from .index import JsonExportIndexStore
from .processor import FolderProcessor
from .traversal import TraversalController

LOGGER = logging.getLogger(__name__)


def ensure_export_root(root: Path) -> None:
    """Create ``root`` if needed and prove it is writable."""
    try:
        root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryFile(dir=root, prefix=".write-probe-"):
            pass
    except OSError as exc:
        raise ExportRootError(f"Export root {root} is not writable: {exc}") from exc


class ArchiveService:
    """Run the incremental export engine once against a mail store."""

    def __init__(
        self,
        settings: ExportSettings,
        *,
        index_store: JsonExportIndexStore | None = None,
        filter_builder: ItemFilterBuilder | None = None,
        processor: FolderProcessor | None = None,
    ) -> None:
        """Initialise the service from settings, allowing collaborators to be swapped."""
        self._settings = settings
        self._index_store = index_store or JsonExportIndexStore(
            settings.resolved_index_file
        )
        self._filter_builder = filter_builder or ItemFilterBuilder()
        self._processor = processor or FolderProcessor.from_settings(settings)

    def run(self, store: MailStore, *, now: datetime | None = None) -> RunReport:
        """Export matching items and persist the index exactly once."""
        settings = self._settings
        self._processor.stats = ExportStats()
        index = self._index_store.load()
        query = self._filter_builder.build(
            settings.archive_tag, settings.min_age_days, now=now
        )
        LOGGER.info(
            "Archiving items tagged '%s' into %s",
            settings.archive_tag,
            settings.export_root,
        )

        controller = TraversalController(self._processor)
        exported = controller.run(store, settings.folders_to_scan, query, index)

        self._index_store.save(index)
        stats = self._processor.stats
        LOGGER.info(
            "Run complete: exported=%s, already_exported=%s, export_failures=%s, "
            "retag_failures=%s, folders_failed=%s",
            exported,
            stats.already_exported,
            stats.export_failures,
            stats.retag_failures,
            stats.folders_failed,
        )
        return RunReport(
            exported=exported,
            index_size=len(index),
            index_path=self._index_store.path,
            stats=stats,
        )


__all__ = ["ArchiveService", "ensure_export_root"]
