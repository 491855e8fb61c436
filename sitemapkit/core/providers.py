"""Sitemap Providers.

プロバイダ（エントリの供給源）と、その出力形式を吸収するアダプタ。

プロバイダの ``get_entries()`` は次のいずれかを返せる:
    - エントリのリスト（即時評価）
    - エントリのリストを返す awaitable
    - エントリの非同期イテラブル（遅延評価）
    - エントリの同期イテラブル／ジェネレータ（遅延評価）

生成処理は ``iterate_entries()`` だけを通してプロバイダを消費する。
"""

from __future__ import annotations

import inspect
import json
import logging
from pathlib import Path
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Protocol,
    runtime_checkable,
)

from sitemapkit.core.types import EntryLike, SitemapEntry, coerce_entry
from sitemapkit.errors import ValidationError

logger = logging.getLogger(__name__)


@runtime_checkable
class SitemapProvider(Protocol):
    """プロバイダプロトコル"""

    def get_entries(self) -> Any: ...


async def iterate_entries(provider: SitemapProvider) -> AsyncIterator[SitemapEntry]:
    """プロバイダのエントリを1件ずつ非同期に取り出す

    遅延シーケンスは逐次消費し、全体をメモリに展開しない。

    Args:
        provider: プロバイダ

    Yields:
        SitemapEntry
    """
    source = provider.get_entries()
    if inspect.isawaitable(source):
        source = await source

    if source is None:
        return

    if hasattr(source, "__aiter__"):
        async for item in source:
            yield coerce_entry(item)
        return

    if isinstance(source, (str, bytes, dict)):
        raise ValidationError(
            f"Provider returned {type(source).__name__}, expected a sequence of entries",
            field="entries",
        )

    for item in source:
        yield coerce_entry(item)


async def collect_entries(providers: Iterable[SitemapProvider]) -> List[SitemapEntry]:
    """全プロバイダのエントリをリストに集める（差分計算用）"""
    entries: List[SitemapEntry] = []
    for provider in providers:
        async for entry in iterate_entries(provider):
            entries.append(entry)
    return entries


class StaticProvider:
    """固定エントリのプロバイダ"""

    def __init__(self, entries: Iterable[EntryLike]) -> None:
        self._entries = [coerce_entry(e) for e in entries]

    def get_entries(self) -> List[SitemapEntry]:
        return list(self._entries)


class CallableProvider:
    """関数をプロバイダとして扱うアダプタ

    関数は同期関数・コルーチン関数・ジェネレータ・非同期ジェネレータの
    いずれでもよい。
    """

    def __init__(self, func: Callable[[], Any]) -> None:
        self.func = func

    def get_entries(self) -> Any:
        return self.func()


class UrlListProvider:
    """1行1URLのテキストファイルを読むプロバイダ

    空行と ``#`` で始まる行は無視する。
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get_entries(self) -> Iterator[SitemapEntry]:
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                url = line.strip()
                if not url or url.startswith("#"):
                    continue
                yield SitemapEntry(url=url)


class JsonLinesProvider:
    """1行1エントリの JSON Lines ファイルを読むプロバイダ"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get_entries(self) -> Iterator[SitemapEntry]:
        with open(self.path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data: Dict[str, Any] = json.loads(line)
                except json.JSONDecodeError as e:
                    raise ValidationError(
                        f"Invalid JSON on line {line_no} of {self.path}: {e.msg}",
                        field="entry",
                    ) from e
                if not isinstance(data, dict):
                    raise ValidationError(
                        f"Expected a JSON object on line {line_no} of {self.path}, "
                        f"got {type(data).__name__}",
                        field="entry",
                        value=data,
                    )
                yield SitemapEntry.from_dict(data)
