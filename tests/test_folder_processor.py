"""Tests for per-folder export and re-tagging."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fakes import FakeFolder, FakeItem

from mail_archiver.archive.filters import ItemQuery
from mail_archiver.archive.index import ExportIndex
from mail_archiver.archive.processor import FolderProcessor, file_digest, rewrite_tags

RECEIVED = datetime(2026, 9, 1, 10, 15, tzinfo=timezone.utc).astimezone()
QUERY = ItemQuery(tag="Archive")


def _processor(root: Path, **kwargs) -> FolderProcessor:
    kwargs.setdefault("post_export_tag", "Archived")
    return FolderProcessor(root, "Archive", **kwargs)


def _item(entry_id: str, **kwargs) -> FakeItem:
    kwargs.setdefault("received_at", RECEIVED)
    return FakeItem(entry_id, **kwargs)


def test_exports_tagged_items_and_moves_tag(tmp_path: Path) -> None:
    items = [
        _item("e1", subject="First", categories="Archive"),
        _item("e2", subject="Second", categories="Red, Archive"),
    ]
    folder = FakeFolder("Inbox", items)
    index = ExportIndex()

    exported = _processor(tmp_path).process(folder, QUERY, index)

    assert exported == 2
    assert len(index) == 2
    day_dir = tmp_path / RECEIVED.strftime("%Y-%m-%d")
    names = sorted(path.name for path in day_dir.iterdir())
    assert names == [
        f"{day_dir.name} - Alice Example - First.msg",
        f"{day_dir.name} - Alice Example - Second.msg",
    ]
    assert items[0].saved_categories == "Archived"
    assert items[1].saved_categories == "Red, Archived"


def test_items_processed_last_to_first(tmp_path: Path) -> None:
    items = [_item(f"e{n}", subject=f"Item {n}") for n in range(1, 4)]
    folder = FakeFolder("Inbox", items)
    index = ExportIndex()

    _processor(tmp_path).process(folder, QUERY, index)

    assert list(index) == ["eid:e3", "eid:e2", "eid:e1"]


def test_already_indexed_items_are_skipped(tmp_path: Path) -> None:
    item = _item("e1", message_id="<Same@Example.com>")
    folder = FakeFolder("Inbox", [item])
    processor = _processor(tmp_path, post_export_tag="")
    index = ExportIndex()

    assert processor.process(folder, QUERY, index) == 1
    assert processor.process(folder, QUERY, index) == 0
    assert len(item.exports) == 1
    assert index.contains("imid:<same@example.com>")
    assert processor.stats.already_exported == 1


def test_non_mail_items_are_ignored(tmp_path: Path) -> None:
    folder = FakeFolder(
        "Inbox",
        [
            _item("meeting", message_class="IPM.Schedule.Meeting.Request"),
            _item("receipt", message_class="REPORT.IPM.Note.IPNRN"),
            _item("signed", message_class="IPM.Note.SMIME"),
        ],
    )
    index = ExportIndex()
    processor = _processor(tmp_path)

    assert processor.process(folder, QUERY, index) == 1
    assert list(index) == ["eid:signed"]
    assert processor.stats.skipped_non_mail == 2


def test_export_failure_is_isolated_and_not_indexed(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    items = [
        _item("e1", subject="One"),
        _item("e2", subject="Two", fail_export=True),
        _item("e3", subject="Three"),
    ]
    folder = FakeFolder("A", items)
    index = ExportIndex()
    processor = _processor(tmp_path)

    with caplog.at_level(logging.ERROR):
        exported = processor.process(folder, QUERY, index)

    assert exported == 2
    assert index.contains("eid:e1")
    assert not index.contains("eid:e2")
    assert index.contains("eid:e3")
    assert items[1].saved_categories == "Archive"
    assert processor.stats.export_failures == 1
    assert any("Export failed for 'Two'" in message for message in caplog.messages)
    assert not any("Two" in path.name for path in tmp_path.rglob("*.msg"))


def test_retag_failure_keeps_export_and_logs_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    item = _item("e1", categories="Archive", fail_save=True)
    folder = FakeFolder("Inbox", [item])
    index = ExportIndex()
    processor = _processor(tmp_path)

    with caplog.at_level(logging.WARNING):
        exported = processor.process(folder, QUERY, index)

    assert exported == 1
    assert index.contains("eid:e1")
    assert item.saved_categories == "Archive"
    assert processor.stats.retag_failures == 1
    assert any("could not re-tag" in message for message in caplog.messages)

    # Still tagged, so it matches again, but the index prevents a second export.
    assert processor.process(folder, QUERY, index) == 0
    assert len(item.exports) == 1


def test_query_failure_returns_zero(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    folder = FakeFolder("Calendar", [_item("e1")], fail_query=True)
    processor = _processor(tmp_path)

    with caplog.at_level(logging.WARNING):
        assert processor.process(folder, QUERY, ExportIndex()) == 0

    assert processor.stats.folders_failed == 1
    assert any("Query failed for folder Calendar" in m for m in caplog.messages)


def test_content_hash_recorded_when_enabled(tmp_path: Path) -> None:
    folder = FakeFolder("Inbox", [_item("e1")])
    index = ExportIndex()

    _processor(tmp_path, compute_content_hash=True).process(folder, QUERY, index)

    record = index.get("eid:e1")
    assert record is not None
    assert record.content_hash == file_digest(record.file_path)
    assert len(record.content_hash) == 64


def test_content_hash_off_by_default(tmp_path: Path) -> None:
    folder = FakeFolder("Inbox", [_item("e1")])
    index = ExportIndex()

    _processor(tmp_path).process(folder, QUERY, index)

    record = index.get("eid:e1")
    assert record is not None
    assert record.content_hash is None


def test_age_restricted_query_skips_recent_items(tmp_path: Path) -> None:
    now = datetime.now().astimezone()
    folder = FakeFolder(
        "Inbox",
        [
            _item("recent", received_at=now - timedelta(days=3)),
            _item("old", received_at=now - timedelta(days=10)),
        ],
    )
    index = ExportIndex()
    query = ItemQuery(tag="Archive", received_before=now - timedelta(days=7))

    assert _processor(tmp_path).process(folder, query, index) == 1
    assert list(index) == ["eid:old"]


def test_rewrite_tags_removes_archive_tag_and_deduplicates() -> None:
    assert rewrite_tags("Archive", "Archive", "Archived") == "Archived"
    assert rewrite_tags("Red; Archive, Archived", "Archive", "Archived") == (
        "Red, Archived"
    )
    assert rewrite_tags("", "Archive", "Done") == "Done"


def test_items_leaving_the_live_view_are_not_skipped(tmp_path: Path) -> None:
    items = [_item(f"e{n}", subject=f"Item {n}") for n in range(1, 5)]
    folder = FakeFolder("Inbox", items)
    index = ExportIndex()

    exported = _processor(tmp_path, post_export_tag="Done").process(
        folder, QUERY, index
    )

    assert exported == 4
    assert all(item.saved_categories == "Done" for item in items)
