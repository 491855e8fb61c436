"""Provider Adapter Unit Tests.

プロバイダの各出力形式の取り込みテスト。
"""

from __future__ import annotations

import pytest

from sitemapkit.core.providers import (
    CallableProvider,
    JsonLinesProvider,
    SitemapProvider,
    StaticProvider,
    UrlListProvider,
    collect_entries,
    iterate_entries,
)
from sitemapkit.core.types import SitemapEntry
from sitemapkit.errors import ValidationError


async def drain(provider):
    return [entry.url async for entry in iterate_entries(provider)]


class TestIterateEntries:
    """iterate_entries のテスト"""

    @pytest.mark.asyncio
    async def test_list(self):
        provider = CallableProvider(lambda: ["/a", {"url": "/b"}, SitemapEntry(url="/c")])
        assert await drain(provider) == ["/a", "/b", "/c"]

    @pytest.mark.asyncio
    async def test_awaitable_list(self):
        async def fetch():
            return ["/a", "/b"]

        assert await drain(CallableProvider(fetch)) == ["/a", "/b"]

    @pytest.mark.asyncio
    async def test_async_generator(self):
        async def stream():
            for i in range(3):
                yield f"/p/{i}"

        assert await drain(CallableProvider(stream)) == ["/p/0", "/p/1", "/p/2"]

    @pytest.mark.asyncio
    async def test_sync_generator_is_lazy(self):
        """同期ジェネレータは1件ずつ消費される"""
        consumed = []

        def stream():
            for url in ["/a", "/b"]:
                consumed.append(url)
                yield url

        entries = iterate_entries(CallableProvider(stream))
        first = await entries.__anext__()
        assert first.url == "/a"
        assert consumed == ["/a"]
        await entries.aclose()

    @pytest.mark.asyncio
    async def test_none_is_empty(self):
        assert await drain(CallableProvider(lambda: None)) == []

    @pytest.mark.asyncio
    async def test_string_rejected(self):
        with pytest.raises(ValidationError):
            await drain(CallableProvider(lambda: "/a"))

    @pytest.mark.asyncio
    async def test_missing_url_rejected(self):
        with pytest.raises(ValidationError):
            await drain(CallableProvider(lambda: [{"priority": 0.1}]))

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self):
        """プロバイダの例外はそのまま伝播する"""
        def broken():
            raise RuntimeError("database down")

        with pytest.raises(RuntimeError, match="database down"):
            await drain(CallableProvider(broken))


class TestProviders:
    """組み込みプロバイダのテスト"""

    def test_protocol(self):
        assert isinstance(StaticProvider(["/a"]), SitemapProvider)

    @pytest.mark.asyncio
    async def test_static_provider(self):
        provider = StaticProvider(["/a", "/b"])
        assert await drain(provider) == ["/a", "/b"]
        # 繰り返し読める
        assert await drain(provider) == ["/a", "/b"]

    @pytest.mark.asyncio
    async def test_url_list_provider(self, tmp_path):
        path = tmp_path / "urls.txt"
        path.write_text("# comment\n/a\n\n  /b  \nhttps://other.example/c\n", encoding="utf-8")
        assert await drain(UrlListProvider(path)) == ["/a", "/b", "https://other.example/c"]

    @pytest.mark.asyncio
    async def test_jsonl_provider(self, tmp_path):
        path = tmp_path / "entries.jsonl"
        path.write_text(
            '{"url": "/a", "priority": 0.7}\n\n{"url": "/b", "changefreq": "daily"}\n',
            encoding="utf-8",
        )
        entries = [e async for e in iterate_entries(JsonLinesProvider(path))]
        assert [e.url for e in entries] == ["/a", "/b"]
        assert entries[0].priority == 0.7

    @pytest.mark.asyncio
    async def test_jsonl_invalid_line(self, tmp_path):
        path = tmp_path / "entries.jsonl"
        path.write_text('{"url": "/a"}\nnot json\n', encoding="utf-8")
        with pytest.raises(ValidationError, match="line 2"):
            await drain(JsonLinesProvider(path))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("line", ['"/a"', "1", "[1, 2]", "null"])
    async def test_jsonl_non_object_line(self, tmp_path, line):
        path = tmp_path / "entries.jsonl"
        path.write_text(f'{{"url": "/a"}}\n{line}\n', encoding="utf-8")
        with pytest.raises(ValidationError, match="JSON object on line 2"):
            await drain(JsonLinesProvider(path))

    @pytest.mark.asyncio
    async def test_collect_entries_in_order(self):
        entries = await collect_entries([StaticProvider(["/a"]), StaticProvider(["/b", "/c"])])
        assert [e.url for e in entries] == ["/a", "/b", "/c"]
