"""SqlRecordStore 테스트."""

from datetime import UTC, datetime, timedelta

import pytest

from core.exceptions import StoreError
from model.image import ImageRecord


def _record(name: str, uploaded_at: datetime | None = None) -> ImageRecord:
    record = ImageRecord(
        original_name=f"{name}.png",
        stored_name=f"{name}_stored.png",
        extension=".png",
        size_bytes=10,
        content_type="image/png",
        original_path=f"uploads/{name}_stored.png",
    )
    if uploaded_at:
        record.uploaded_at = uploaded_at
    return record


def test_insert_assigns_id_and_defaults(records):
    record = records.insert(_record("a"))

    assert record.id is not None
    assert record.is_compressed is False
    assert record.compressed_path is None
    assert record.uploaded_at is not None


def test_find_missing_returns_none(records):
    assert records.find(12345) is None


def test_update_persists(records):
    record = records.insert(_record("a"))
    record.mark_compressed("compressed/compressed_a_stored.png", 5)

    records.update(record)

    stored = records.find(record.id)
    assert stored.is_compressed is True
    assert stored.compressed_size_bytes == 5
    assert stored.compressed_at is not None


def test_mark_compressed_requires_path():
    with pytest.raises(ValueError):
        _record("a").mark_compressed("", 5)


def test_duplicate_stored_name_rejected(records):
    records.insert(_record("a"))

    with pytest.raises(StoreError):
        records.insert(_record("a"))

    # 롤백 후에도 세션은 계속 쓸 수 있다
    assert records.insert(_record("b")).id is not None


def test_delete(records):
    record = records.insert(_record("a"))

    records.delete(record.id)

    assert records.find(record.id) is None


def test_delete_missing_is_noop(records):
    records.delete(999)


def test_list_recent_newest_first(records):
    base = datetime(2025, 1, 1, tzinfo=UTC)
    for i, name in enumerate(["old", "mid", "new"]):
        records.insert(_record(name, uploaded_at=base + timedelta(minutes=i)))

    names = [r.original_name for r in records.list_recent(10)]

    assert names == ["new.png", "mid.png", "old.png"]


def test_list_recent_limit(records):
    for i in range(5):
        records.insert(_record(f"img{i}"))

    assert len(records.list_recent(3)) == 3
