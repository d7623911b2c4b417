"""Resolve configured folder path strings against the store's folder tree."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from ..core.interfaces import DefaultFolder, MailFolder, MailStore

LOGGER = logging.getLogger(__name__)

DEFAULT_FOLDER_ALIASES: dict[str, DefaultFolder] = {
    "inbox": DefaultFolder.INBOX,
    "sent items": DefaultFolder.SENT_ITEMS,
    "sent": DefaultFolder.SENT_ITEMS,
    "deleted items": DefaultFolder.DELETED_ITEMS,
    "trash": DefaultFolder.DELETED_ITEMS,
}

_SEPARATORS = re.compile(r"[/\\]")


def split_folder_path(path_string: str) -> list[str]:
    """Split ``Inbox/Projects/2024`` (or backslash separated) into segments."""
    return [segment for segment in _SEPARATORS.split(path_string) if segment]


def _child_named(folders: Iterable[MailFolder], name: str) -> MailFolder | None:
    for folder in folders:
        if folder.name == name:
            return folder
    return None


class FolderLocator:
    """Find folders by path, returning ``None`` instead of raising on a miss."""

    def locate(self, store: MailStore, path_string: str) -> MailFolder | None:
        """Return the folder at ``path_string`` or ``None`` if it cannot be reached.

        Store errors raised while listing folders are logged and treated as a miss.
        """
        segments = split_folder_path(path_string)
        if not segments:
            LOGGER.debug("Empty folder path '%s'", path_string)
            return None

        try:
            return self._walk_segments(store, segments, path_string)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning("Could not resolve folder '%s': %s", path_string, exc)
            return None

    def _walk_segments(
        self, store: MailStore, segments: list[str], path_string: str
    ) -> MailFolder | None:
        head, *rest = segments
        role = DEFAULT_FOLDER_ALIASES.get(head.lower())
        current = store.default_folder(role) if role is not None else None
        if current is None:
            current = _child_named(store.top_level_folders(), head)
        if current is None:
            LOGGER.debug("No default or top-level folder named '%s'", head)
            return None

        for segment in rest:
            current = _child_named(current.children(), segment)
            if current is None:
                LOGGER.debug("Segment '%s' of '%s' not found", segment, path_string)
                return None
        return current


__all__ = ["DEFAULT_FOLDER_ALIASES", "FolderLocator", "split_folder_path"]
