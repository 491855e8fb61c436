"""Change Log Unit Tests.

インメモリ・JSON Lines 変更ログのテスト。
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sitemapkit.core.types import ChangeType, SitemapChange, SitemapEntry
from sitemapkit.errors import ChangeLogError, ValidationError
from sitemapkit.tracking import FileChangeTracker, MemoryChangeTracker

T0 = datetime(2024, 1, 15, tzinfo=timezone.utc)


def make_change(url: str, minutes: int, change_type: ChangeType = ChangeType.ADD):
    entry = None if change_type is ChangeType.REMOVE else SitemapEntry(url=url)
    return SitemapChange(change_type, url, entry, timestamp=T0 + timedelta(minutes=minutes))


@pytest.fixture(params=["memory", "file"])
def tracker(request, tmp_path):
    """両方の実装で同じ契約を検証"""
    if request.param == "memory":
        return MemoryChangeTracker()
    return FileChangeTracker(tmp_path / "log" / "changes.jsonl")


class TestChangeTrackerContract:
    """変更ログ契約のテスト"""

    @pytest.mark.asyncio
    async def test_empty(self, tracker):
        assert await tracker.get_changes() == []

    @pytest.mark.asyncio
    async def test_track_and_get_in_order(self, tracker):
        await tracker.track(make_change("/a", 0))
        await tracker.track(make_change("/b", 1, ChangeType.REMOVE))

        changes = await tracker.get_changes()
        assert [c.url for c in changes] == ["/a", "/b"]
        assert changes[1].change_type is ChangeType.REMOVE

    @pytest.mark.asyncio
    async def test_since_inclusive(self, tracker):
        """since と同時刻の変更も含む"""
        for i, url in enumerate(["/a", "/b", "/c"]):
            await tracker.track(make_change(url, i))

        changes = await tracker.get_changes(T0 + timedelta(minutes=1))
        assert [c.url for c in changes] == ["/b", "/c"]

    @pytest.mark.asyncio
    async def test_since_naive_datetime(self, tracker):
        await tracker.track(make_change("/a", 0))
        changes = await tracker.get_changes(datetime(2024, 1, 15))
        assert [c.url for c in changes] == ["/a"]

    @pytest.mark.asyncio
    async def test_get_changes_by_url(self, tracker):
        await tracker.track(make_change("/a", 0))
        await tracker.track(make_change("/b", 1))
        await tracker.track(make_change("/a", 2, ChangeType.UPDATE))

        history = await tracker.get_changes_by_url("/a")
        assert [c.change_type for c in history] == [ChangeType.ADD, ChangeType.UPDATE]

    @pytest.mark.asyncio
    async def test_clear_all(self, tracker):
        await tracker.track(make_change("/a", 0))
        await tracker.clear()
        assert await tracker.get_changes() == []

    @pytest.mark.asyncio
    async def test_clear_since(self, tracker):
        """since 以降の変更のみ削除"""
        for i, url in enumerate(["/a", "/b", "/c"]):
            await tracker.track(make_change(url, i))

        await tracker.clear(T0 + timedelta(minutes=1))
        assert [c.url for c in await tracker.get_changes()] == ["/a"]


class TestMemoryChangeTracker:
    """MemoryChangeTracker 固有のテスト"""

    @pytest.mark.asyncio
    async def test_max_changes_drops_oldest(self):
        tracker = MemoryChangeTracker(max_changes=2)
        for i, url in enumerate(["/a", "/b", "/c"]):
            await tracker.track(make_change(url, i))

        assert len(tracker) == 2
        assert [c.url for c in await tracker.get_changes()] == ["/b", "/c"]

    def test_default_limit(self):
        assert MemoryChangeTracker().max_changes == 100000

    @pytest.mark.parametrize("limit", [0, -1])
    def test_rejects_non_positive_limit(self, limit):
        with pytest.raises(ValidationError):
            MemoryChangeTracker(max_changes=limit)


class TestFileChangeTracker:
    """FileChangeTracker 固有のテスト"""

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "changes.jsonl"
        await FileChangeTracker(path).track(make_change("/a", 0))

        changes = await FileChangeTracker(path).get_changes()
        assert [c.url for c in changes] == ["/a"]
        assert changes[0].timestamp == T0

    @pytest.mark.asyncio
    async def test_one_record_per_line(self, tmp_path):
        path = tmp_path / "changes.jsonl"
        tracker = FileChangeTracker(path)
        await tracker.track(make_change("/a", 0))
        await tracker.track(make_change("/b", 1))
        assert len(path.read_text(encoding="utf-8").splitlines()) == 2

    @pytest.mark.asyncio
    async def test_malformed_line(self, tmp_path):
        path = tmp_path / "changes.jsonl"
        path.write_text('{"type": "remove", "url": "/a", "timestamp": "2024-01-15T00:00:00Z"}\n{oops\n')

        with pytest.raises(ChangeLogError, match="line 2"):
            await FileChangeTracker(path).get_changes()

    @pytest.mark.asyncio
    async def test_unknown_change_type(self, tmp_path):
        path = tmp_path / "changes.jsonl"
        path.write_text('{"type": "rename", "url": "/a"}\n')

        with pytest.raises(ChangeLogError):
            await FileChangeTracker(path).get_changes()

    @pytest.mark.asyncio
    async def test_non_object_record(self, tmp_path):
        path = tmp_path / "changes.jsonl"
        path.write_text('"/a"\n')

        with pytest.raises(ChangeLogError, match="line 1"):
            await FileChangeTracker(path).get_changes()
