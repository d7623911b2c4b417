"""Drive the folder processor across configured folders or the whole store."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..core.interfaces import MailFolder, MailStore
from .filters import ItemQuery
from .index import ExportIndex
from .locator import FolderLocator
from .processor import FolderProcessor

LOGGER = logging.getLogger(__name__)


class TraversalController:
    """Visit folders and sum the items exported from each."""

    def __init__(
        self, processor: FolderProcessor, locator: FolderLocator | None = None
    ) -> None:
        """Initialise the controller with its processor and folder locator."""
        self._processor = processor
        self._locator = locator or FolderLocator()

    def run(
        self,
        store: MailStore,
        folder_specs: Sequence[str],
        query: ItemQuery,
        index: ExportIndex,
    ) -> int:
        """Process ``folder_specs`` (or every folder when empty); return items exported.

        The index is only mutated here; persisting it is left to the caller.
        """
        if not folder_specs:
            LOGGER.info("No folders configured; scanning the entire store")
            try:
                root = store.root
            except Exception as exc:  # pylint: disable=broad-except
                LOGGER.warning("Could not open the store root folder: %s", exc)
                self._processor.stats.folders_failed += 1
                return 0
            return self._walk(root, query, index)

        total = 0
        for path_string in folder_specs:
            folder = self._locator.locate(store, path_string)
            if folder is None:
                LOGGER.warning("Folder '%s' not found; skipping", path_string)
                self._processor.stats.folders_failed += 1
                continue
            LOGGER.info("Scanning folder '%s'", path_string)
            total += self._processor.process(folder, query, index)
        return total

    def _walk(self, folder: MailFolder, query: ItemQuery, index: ExportIndex) -> int:
        total = self._processor.process(folder, query, index)
        try:
            children = folder.children()
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning("Could not list sub-folders of %s: %s", folder.name, exc)
            return total
        for child in children:
            total += self._walk(child, query, index)
        return total


__all__ = ["TraversalController"]
