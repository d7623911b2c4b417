"""Stable identity keys used to deduplicate exports across runs."""

from __future__ import annotations

from ..core.interfaces import MailItem

MESSAGE_ID_PREFIX = "imid:"
ENTRY_ID_PREFIX = "eid:"


def identity_key(message_id: str | None, entry_id: str) -> str:
    """Return the dedup key for an item.

    Internet message identifiers survive moves and copies between folders, so
    they win whenever present. Entry identifiers are store-local and only used
    as a fallback.
    """
    if message_id is not None and message_id.strip():
        return MESSAGE_ID_PREFIX + message_id.strip().lower()
    return ENTRY_ID_PREFIX + entry_id


def item_identity(item: MailItem) -> str:
    """Return the dedup key for ``item``."""
    return identity_key(item.message_id, item.entry_id)


__all__ = ["ENTRY_ID_PREFIX", "MESSAGE_ID_PREFIX", "identity_key", "item_identity"]
