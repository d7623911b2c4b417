"""Protocol interfaces for decoupling the engine from the mail client."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..archive.filters import ItemQuery


class MailStoreError(RuntimeError):
    """Raised when the mail store rejects an operation."""


class MailClientUnavailableError(MailStoreError):
    """Raised when no mail client session can be opened."""


class ExportRootError(RuntimeError):
    """Raised when the export root cannot be created or written."""


class DefaultFolder(Enum):
    """Well-known folder roles, valued by their Outlook ``OlDefaultFolders`` id."""

    DELETED_ITEMS = 3
    SENT_ITEMS = 5
    INBOX = 6


class MailItem(Protocol):
    """A single item in the mail store."""

    @property
    def message_id(self) -> str | None:
        """Internet message identifier, when the item carries one."""
        raise NotImplementedError

    @property
    def entry_id(self) -> str:
        """Store-assigned identifier."""
        raise NotImplementedError

    @property
    def received_at(self) -> datetime:
        """Time the item was received."""
        raise NotImplementedError

    @property
    def subject(self) -> str | None:
        """Subject line."""
        raise NotImplementedError

    @property
    def sender_name(self) -> str | None:
        """Sender display name."""
        raise NotImplementedError

    @property
    def message_class(self) -> str:
        """Item classification such as ``IPM.Note``."""
        raise NotImplementedError

    categories: str
    """Delimited tag-set string; assignment takes effect after :meth:`save`."""

    def save_as(self, path: Path) -> None:
        """Write the item to ``path`` in the lossless single-message format."""
        raise NotImplementedError

    def save(self) -> None:
        """Persist mutations made to the item."""
        raise NotImplementedError


class ItemView(Protocol):
    """Live, positionally addressable result of a folder query."""

    def __len__(self) -> int:
        raise NotImplementedError

    def __getitem__(self, position: int) -> MailItem:
        raise NotImplementedError


class MailFolder(Protocol):
    """A folder node in the store tree."""

    @property
    def name(self) -> str:
        """Display name of the folder."""
        raise NotImplementedError

    def children(self) -> Sequence[MailFolder]:
        """Return the immediate sub-folders."""
        raise NotImplementedError

    def query(self, query: ItemQuery) -> ItemView:
        """Return the items matching ``query``."""
        raise NotImplementedError


class MailStore(Protocol):
    """Abstraction over a mail client's default store."""

    @property
    def root(self) -> MailFolder:
        """Top of the folder tree."""
        raise NotImplementedError

    def default_folder(self, role: DefaultFolder) -> MailFolder | None:
        """Return the folder playing ``role`` if the store has one."""
        raise NotImplementedError

    def top_level_folders(self) -> Sequence[MailFolder]:
        """Return the folders directly beneath the store root."""
        raise NotImplementedError


__all__ = [
    "DefaultFolder",
    "ExportRootError",
    "ItemView",
    "MailClientUnavailableError",
    "MailFolder",
    "MailItem",
    "MailStore",
    "MailStoreError",
]
