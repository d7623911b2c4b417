"""Transport adapters for external mail clients."""

from .outlook import OutlookFolder, OutlookItem, OutlookSession, OutlookStore

__all__ = ["OutlookFolder", "OutlookItem", "OutlookSession", "OutlookStore"]
