"""Incremental export engine components."""

from .filters import ItemFilterBuilder, ItemQuery
from .identity import identity_key, item_identity
from .index import DuplicateExportError, ExportIndex, JsonExportIndexStore
from .locator import FolderLocator
from .naming import NamingResolver
from .processor import FolderProcessor, rewrite_tags
from .service import ArchiveService, ensure_export_root
from .traversal import TraversalController

__all__ = [
    "ArchiveService",
    "DuplicateExportError",
    "ExportIndex",
    "FolderLocator",
    "FolderProcessor",
    "ItemFilterBuilder",
    "ItemQuery",
    "JsonExportIndexStore",
    "NamingResolver",
    "TraversalController",
    "ensure_export_root",
    "identity_key",
    "item_identity",
    "rewrite_tags",
]
