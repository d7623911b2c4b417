"""Outlook (MAPI over COM) adapter implementing the mail store protocols."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Any

from ..archive.filters import ItemQuery
from ..core.interfaces import (
    DefaultFolder,
    MailClientUnavailableError,
    MailStoreError,
)

LOGGER = logging.getLogger(__name__)

OUTLOOK_PROG_ID = "Outlook.Application"
OL_MSG_UNICODE = 9
PR_INTERNET_MESSAGE_ID = "http://schemas.microsoft.com/mapi/proptag/0x1035001F"


def _local_datetime(raw: datetime) -> datetime:
    """Return a local, timezone-aware copy of a COM date.

    pywin32 labels COM dates as UTC although they carry local wall-clock time.
    """
    return datetime(
        raw.year, raw.month, raw.day, raw.hour, raw.minute, raw.second
    ).astimezone()


class OutlookItem:
    """A mail item backed by a COM ``MailItem``."""

    def __init__(self, com_item: Any) -> None:
        """Wrap ``com_item``."""
        self._item = com_item

    @property
    def message_id(self) -> str | None:
        try:
            value = self._item.PropertyAccessor.GetProperty(PR_INTERNET_MESSAGE_ID)
        except Exception:  # pylint: disable=broad-except
            # Drafts and some store-local items have no internet message id.
            return None
        return str(value) if value else None

    @property
    def entry_id(self) -> str:
        return str(self._item.EntryID)

    @property
    def received_at(self) -> datetime:
        return _local_datetime(self._item.ReceivedTime)

    @property
    def subject(self) -> str | None:
        return self._item.Subject or None

    @property
    def sender_name(self) -> str | None:
        return self._item.SenderName or None

    @property
    def message_class(self) -> str:
        return str(self._item.MessageClass or "")

    @property
    def categories(self) -> str:
        return str(self._item.Categories or "")

    @categories.setter
    def categories(self, value: str) -> None:
        self._item.Categories = value

    def save_as(self, path: Path) -> None:
        """Save the item as a Unicode ``.msg`` file."""
        self._item.SaveAs(str(path), OL_MSG_UNICODE)

    def save(self) -> None:
        """Commit pending property changes to the store."""
        self._item.Save()


class OutlookItemView:
    """Zero-based view over a restricted COM ``Items`` collection."""

    def __init__(self, com_items: Any) -> None:
        """Wrap a restricted ``Items`` collection."""
        self._items = com_items

    def __len__(self) -> int:
        return int(self._items.Count)

    def __getitem__(self, position: int) -> OutlookItem:
        if position < 0 or position >= len(self):
            raise IndexError(position)
        # COM collections are one-based.
        return OutlookItem(self._items.Item(position + 1))


class OutlookFolder:
    """A folder backed by a COM ``MAPIFolder``."""

    def __init__(self, com_folder: Any) -> None:
        """Wrap ``com_folder``."""
        self._folder = com_folder

    @property
    def name(self) -> str:
        return str(self._folder.Name)

    def children(self) -> Sequence[OutlookFolder]:
        folders = self._folder.Folders
        return [OutlookFolder(folders.Item(i)) for i in range(1, folders.Count + 1)]

    def query(self, query: ItemQuery) -> OutlookItemView:
        restriction = query.to_dasl()
        LOGGER.debug("Restricting %s with %s", self.name, restriction)
        try:
            restricted = self._folder.Items.Restrict(restriction)
        except Exception as exc:  # pragma: no cover - COM specific
            raise MailStoreError(f"Folder '{self.name}' rejected the query") from exc
        return OutlookItemView(restricted)


class OutlookStore:
    """The default Outlook store exposed through a MAPI namespace."""

    def __init__(self, namespace: Any) -> None:
        """Wrap a MAPI ``NameSpace``."""
        self._namespace = namespace

    @property
    def root(self) -> OutlookFolder:
        inbox = self._namespace.GetDefaultFolder(DefaultFolder.INBOX.value)
        return OutlookFolder(inbox.Parent)

    def default_folder(self, role: DefaultFolder) -> OutlookFolder | None:
        try:
            return OutlookFolder(self._namespace.GetDefaultFolder(role.value))
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.debug("Default folder %s unavailable: %s", role.name, exc)
            return None

    def top_level_folders(self) -> Sequence[OutlookFolder]:
        return self.root.children()


class OutlookSession:
    """Scoped connection to a running Outlook instance.

    COM is initialised on entry and every reference is dropped, and COM
    uninitialised, on exit regardless of how the block ends.
    """

    def __init__(self) -> None:
        """Prepare an unconnected session."""
        self._pythoncom: Any = None
        self._application: Any = None
        self._namespace: Any = None

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> OutlookStore:
        """Connect on entering a context manager scope."""
        return self.connect()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure resources are released on context exit."""
        self.close()

    # Public API ---------------------------------------------------------------
    def connect(self) -> OutlookStore:
        """Attach to the running Outlook application and return its store."""
        if self._namespace is not None:
            return OutlookStore(self._namespace)

        try:
            import pythoncom  # pylint: disable=import-outside-toplevel
            from win32com import client  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            raise MailClientUnavailableError("pywin32 is not installed") from exc

        pythoncom.CoInitialize()
        self._pythoncom = pythoncom
        try:
            self._application = client.GetActiveObject(OUTLOOK_PROG_ID)
            self._namespace = self._application.GetNamespace("MAPI")
        except Exception as exc:  # pylint: disable=broad-except
            self.close()
            raise MailClientUnavailableError("Outlook is not running") from exc
        LOGGER.debug("Attached to running Outlook instance")
        return OutlookStore(self._namespace)

    def close(self) -> None:
        """Release COM references and uninitialise COM for this thread."""
        self._namespace = None
        self._application = None
        if self._pythoncom is not None:
            LOGGER.debug("Releasing Outlook session")
            self._pythoncom.CoUninitialize()
            self._pythoncom = None


__all__ = [
    "OL_MSG_UNICODE",
    "OutlookFolder",
    "OutlookItem",
    "OutlookItemView",
    "OutlookSession",
    "OutlookStore",
    "PR_INTERNET_MESSAGE_ID",
]
