"""Per-folder export orchestration."""

from __future__ import annotations

import hashlib
import logging
import re
from datetime import datetime
from pathlib import Path

from ..core.config import ExportSettings
from ..core.datetime_utils import ensure_aware
from ..core.interfaces import MailFolder, MailItem
from ..core.models import ExportRecord, ExportStats
from .filters import ItemQuery
from .identity import item_identity
from .index import ExportIndex
from .naming import NamingResolver

LOGGER = logging.getLogger(__name__)

MAIL_MESSAGE_CLASS = "IPM.Note"
TAG_SEPARATOR = ", "

_TAG_DELIMITERS = re.compile(r"[,;]")
_HASH_CHUNK_SIZE = 1024 * 1024


def split_tags(categories: str | None) -> list[str]:
    """Split a delimited tag-set string into trimmed, non-empty tags."""
    return [tag.strip() for tag in _TAG_DELIMITERS.split(categories or "") if tag.strip()]


def rewrite_tags(categories: str | None, remove: str, add: str) -> str:
    """Drop ``remove`` from the tag set, append ``add`` and de-duplicate."""
    removed = remove.casefold()
    result: list[str] = []
    seen: set[str] = set()
    for tag in [*split_tags(categories), add]:
        key = tag.casefold()
        if key == removed or key in seen:
            continue
        seen.add(key)
        result.append(tag)
    return TAG_SEPARATOR.join(result)


def file_digest(path: Path) -> str:
    """Return the hex SHA-256 digest of the file at ``path``."""
    digest = hashlib.sha256()
    with path.open("rb") as stream:
        for chunk in iter(lambda: stream.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FolderProcessor:
    """Export the tagged items of one folder and move them to the post-export tag."""

    def __init__(
        self,
        export_root: Path,
        archive_tag: str,
        *,
        post_export_tag: str = "",
        compute_content_hash: bool = False,
        resolver: NamingResolver | None = None,
        stats: ExportStats | None = None,
    ) -> None:
        # pylint: disable=too-many-arguments
        """Initialise the processor with export destination and tag policy."""
        if not archive_tag.strip():
            raise ValueError("archive_tag must not be blank")
        self._export_root = Path(export_root)
        self._archive_tag = archive_tag
        self._post_export_tag = post_export_tag.strip()
        self._compute_content_hash = compute_content_hash
        self._resolver = resolver or NamingResolver()
        self.stats = stats or ExportStats()

    @classmethod
    def from_settings(
        cls, settings: ExportSettings, *, resolver: NamingResolver | None = None
    ) -> FolderProcessor:
        """Build a processor configured from :class:`ExportSettings`."""
        return cls(
            settings.export_root,
            settings.archive_tag,
            post_export_tag=settings.post_export_tag,
            compute_content_hash=settings.compute_content_hash,
            resolver=resolver,
        )

    def process(self, folder: MailFolder, query: ItemQuery, index: ExportIndex) -> int:
        """Export every matching item of ``folder`` not yet in ``index``.

        Returns the number of items exported and recorded. Failures never
        escape: a failed query yields 0 and a failed item is logged and skipped.
        """
        try:
            view = folder.query(query)
            total = len(view)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning("Query failed for folder %s: %s", folder.name, exc)
            self.stats.folders_failed += 1
            return 0

        LOGGER.debug("Folder %s has %s matching item(s)", folder.name, total)
        exported = 0
        # Exporting or re-tagging can drop an item out of the live view, so walk
        # it from the end to keep earlier positions stable.
        for position in range(total - 1, -1, -1):
            try:
                if self._process_item(view[position], index):
                    exported += 1
            except Exception as exc:  # pylint: disable=broad-except
                LOGGER.error(
                    "Failed to process item %s in folder %s: %s",
                    position,
                    folder.name,
                    exc,
                    exc_info=True,
                )

        if exported:
            LOGGER.info("Exported %s item(s) from folder %s", exported, folder.name)
        return exported

    def _process_item(self, item: MailItem, index: ExportIndex) -> bool:
        message_class = item.message_class or ""
        if not message_class.startswith(MAIL_MESSAGE_CLASS):
            LOGGER.debug("Skipping non-mail item of class %s", message_class)
            self.stats.skipped_non_mail += 1
            return False

        identity = item_identity(item)
        if index.contains(identity):
            self.stats.already_exported += 1
            return False

        subject = item.subject
        destination: Path | None = None
        try:
            destination = self._resolver.resolve(
                self._export_root,
                ensure_aware(item.received_at).date(),
                item.sender_name,
                subject,
            )
            item.save_as(destination)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error(
                "Export failed for '%s' -> %s (identity %s): %s",
                subject,
                destination,
                identity,
                exc,
            )
            self.stats.export_failures += 1
            if destination is not None:
                _discard_partial(destination)
            return False

        index.record(
            identity,
            ExportRecord(
                identity=identity,
                exported_at=datetime.now().astimezone(),
                file_path=destination,
                content_hash=self._digest(destination),
            ),
        )
        self.stats.exported += 1
        LOGGER.info("Exported '%s' -> %s", subject, destination)

        if self._post_export_tag:
            self._retag(item, identity)
        return True

    def _digest(self, path: Path) -> str | None:
        if not self._compute_content_hash:
            return None
        try:
            return file_digest(path)
        except OSError as exc:
            LOGGER.warning("Could not hash %s: %s", path, exc)
            return None

    def _retag(self, item: MailItem, identity: str) -> None:
        try:
            item.categories = rewrite_tags(
                item.categories, self._archive_tag, self._post_export_tag
            )
            item.save()
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning(
                "Exported '%s' (identity %s) but could not re-tag it: %s",
                item.subject,
                identity,
                exc,
            )
            self.stats.retag_failures += 1


def _discard_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.warning("Could not remove partial export %s: %s", path, exc)


__all__ = [
    "FolderProcessor",
    "MAIL_MESSAGE_CLASS",
    "file_digest",
    "rewrite_tags",
    "split_tags",
]
