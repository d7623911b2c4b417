"""Tests for walking configured folders or the whole store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fakes import FakeFolder, FakeItem, FakeStore

from mail_archiver.archive.filters import ItemQuery
from mail_archiver.archive.index import ExportIndex
from mail_archiver.archive.processor import FolderProcessor
from mail_archiver.archive.traversal import TraversalController
from mail_archiver.core.interfaces import DefaultFolder, MailStoreError

RECEIVED = datetime(2026, 8, 20, 8, 0, tzinfo=timezone.utc)
QUERY = ItemQuery(tag="Archive")


def _tree() -> tuple[FakeStore, dict[str, FakeFolder]]:
    nested = FakeFolder("2025", [FakeItem("n1", received_at=RECEIVED)])
    archive = FakeFolder(
        "Archive", [FakeItem("a1", received_at=RECEIVED)], subfolders=[nested]
    )
    inbox = FakeFolder(
        "Inbox",
        [
            FakeItem("i1", received_at=RECEIVED, subject="One"),
            FakeItem("i2", received_at=RECEIVED, subject="Two"),
        ],
    )
    store = FakeStore(
        top_level=[inbox, archive], defaults={DefaultFolder.INBOX: inbox}
    )
    return store, {"inbox": inbox, "archive": archive, "nested": nested}


def _controller(root: Path) -> TraversalController:
    return TraversalController(FolderProcessor(root, "Archive"))


def test_empty_specs_walk_the_entire_store(tmp_path: Path) -> None:
    store, folders = _tree()
    index = ExportIndex()

    total = _controller(tmp_path).run(store, [], QUERY, index)

    assert total == 4
    assert set(index) == {"eid:i1", "eid:i2", "eid:a1", "eid:n1"}
    assert len(store.root.queries) == 1
    assert len(folders["nested"].queries) == 1


def test_configured_paths_only_scan_those_folders(tmp_path: Path) -> None:
    store, folders = _tree()
    index = ExportIndex()

    total = _controller(tmp_path).run(store, ["Inbox"], QUERY, index)

    assert total == 2
    assert folders["archive"].queries == []
    assert folders["nested"].queries == []


def test_unresolved_path_is_logged_and_skipped(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    store, _ = _tree()
    index = ExportIndex()

    with caplog.at_level(logging.WARNING):
        total = _controller(tmp_path).run(
            store, ["Missing/Folder", "Archive/2025"], QUERY, index
        )

    assert total == 1
    assert list(index) == ["eid:n1"]
    assert any("'Missing/Folder' not found" in m for m in caplog.messages)


def test_failing_folder_does_not_stop_the_walk(tmp_path: Path) -> None:
    store, folders = _tree()
    folders["archive"].fail_query = True
    index = ExportIndex()

    total = _controller(tmp_path).run(store, [], QUERY, index)

    assert total == 3
    assert "eid:a1" not in index
    assert "eid:n1" in index


def test_same_message_in_two_folders_exported_once(tmp_path: Path) -> None:
    shared_id = "<shared@example.com>"
    inbox = FakeFolder(
        "Inbox", [FakeItem("inbox-copy", received_at=RECEIVED, message_id=shared_id)]
    )
    archive = FakeFolder(
        "Archive",
        [
            FakeItem(
                "archive-copy",
                received_at=RECEIVED,
                message_id=f" {shared_id.upper()} ",
            )
        ],
    )
    store = FakeStore(top_level=[inbox, archive])

    for specs in ([], ["Archive", "Inbox"]):
        index = ExportIndex()
        root = tmp_path / ("all" if not specs else "listed")
        total = _controller(root).run(store, specs, QUERY, index)

        assert total == 1
        assert list(index) == ["imid:<shared@example.com>"]
        assert len(list(root.rglob("*.msg"))) == 1


def test_folder_listing_error_skips_only_that_path(tmp_path: Path) -> None:
    store, folders = _tree()
    folders["archive"].fail_children = True
    processor = FolderProcessor(tmp_path, "Archive")
    index = ExportIndex()

    total = TraversalController(processor).run(
        store, ["Inbox", "Archive/2025"], QUERY, index
    )

    assert total == 2
    assert set(index) == {"eid:i1", "eid:i2"}
    assert processor.stats.folders_failed == 1


def test_unreachable_store_root_counts_as_failed_folder(tmp_path: Path) -> None:
    class RootlessStore(FakeStore):
        @property
        def root(self) -> FakeFolder:
            raise MailStoreError("store offline")

        @root.setter
        def root(self, value: FakeFolder) -> None:
            del value

    processor = FolderProcessor(tmp_path, "Archive")

    total = TraversalController(processor).run(
        RootlessStore(), [], QUERY, ExportIndex()
    )

    assert total == 0
    assert processor.stats.folders_failed == 1
