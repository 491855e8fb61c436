"""Sitemap Diff Calculator.

2つのカタログ状態、または基準状態と変更ログから差分を計算する。
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterable, Dict, Iterable, List, Union

from sitemapkit.core.types import (
    ChangeType,
    DiffResult,
    EntryLike,
    SitemapChange,
    SitemapEntry,
    coerce_entry,
    to_utc,
)

logger = logging.getLogger(__name__)

EntrySource = Union[Iterable[EntryLike], AsyncIterable[EntryLike]]


class DiffCalculator:
    """差分計算器

    比較対象は last_modified / change_frequency / priority と
    alternates の文字列表現（順序あり）のみ。
    images / videos / news は比較しない。

    Example:
        >>> calculator = DiffCalculator()
        >>> diff = calculator.calculate(old_entries, new_entries)
        >>> print(len(diff.added), len(diff.updated), len(diff.removed))
    """

    def __init__(self, batch_size: int = 10000) -> None:
        """初期化

        Args:
            batch_size: バッチ読み込み時の進捗ログ間隔
        """
        self.batch_size = batch_size

    def calculate(
        self,
        old_entries: Iterable[EntryLike],
        new_entries: Iterable[EntryLike],
    ) -> DiffResult:
        """2つの状態の差分を計算

        Args:
            old_entries: 変更前のエントリ
            new_entries: 変更後のエントリ

        Returns:
            差分結果
        """
        old_map = _to_map(old_entries)
        new_map = _to_map(new_entries)
        return self._diff_maps(old_map, new_map)

    async def calculate_batch(
        self,
        old_entries: EntrySource,
        new_entries: EntrySource,
    ) -> DiffResult:
        """遅延シーケンス同士の差分を計算

        両側をいったん辞書に展開してから比較する（ストリーミング比較はしない）。
        """
        old_map = await self._materialize(old_entries)
        new_map = await self._materialize(new_entries)
        return self._diff_maps(old_map, new_map)

    def calculate_from_changes(
        self,
        base_entries: Iterable[EntryLike],
        changes: Iterable[SitemapChange],
    ) -> DiffResult:
        """基準状態に変更ログを適用した状態との差分を計算

        add/update はそのURLのエントリを置き換え、remove は削除する。
        存在しないURLへの remove は何もしない。

        Args:
            base_entries: 基準状態
            changes: 変更レコード（ログ順）

        Returns:
            差分結果
        """
        base_map = _to_map(base_entries)
        derived = dict(base_map)

        for change in changes:
            if change.change_type in (ChangeType.ADD, ChangeType.UPDATE):
                if change.entry is not None:
                    derived[change.url] = change.entry
            elif change.change_type == ChangeType.REMOVE:
                derived.pop(change.url, None)

        return self._diff_maps(base_map, derived)

    def has_changed(self, old_entry: SitemapEntry, new_entry: SitemapEntry) -> bool:
        """エントリが変更されたか判定"""
        if _timestamp_key(old_entry.last_modified) != _timestamp_key(new_entry.last_modified):
            return True
        if old_entry.change_frequency != new_entry.change_frequency:
            return True
        if old_entry.priority != new_entry.priority:
            return True
        return _alternates_key(old_entry) != _alternates_key(new_entry)

    def _diff_maps(
        self,
        old_map: Dict[str, SitemapEntry],
        new_map: Dict[str, SitemapEntry],
    ) -> DiffResult:
        result = DiffResult()

        for url, new_entry in new_map.items():
            old_entry = old_map.get(url)
            if old_entry is None:
                result.added.append(new_entry)
            elif self.has_changed(old_entry, new_entry):
                result.updated.append(new_entry)

        for url in old_map:
            if url not in new_map:
                result.removed.append(url)

        logger.debug(
            f"Calculated diff: "
            f"added={len(result.added)}, "
            f"updated={len(result.updated)}, "
            f"removed={len(result.removed)}"
        )
        return result

    async def _materialize(self, entries: EntrySource) -> Dict[str, SitemapEntry]:
        entry_map: Dict[str, SitemapEntry] = {}
        count = 0
        if hasattr(entries, "__aiter__"):
            async for item in entries:  # type: ignore[union-attr]
                entry = coerce_entry(item)
                entry_map[entry.url] = entry
                count += 1
                if count % self.batch_size == 0:
                    logger.debug(f"Materialized {count} entries")
        else:
            for item in entries:  # type: ignore[union-attr]
                entry = coerce_entry(item)
                entry_map[entry.url] = entry
        return entry_map


def _to_map(entries: Iterable[EntryLike]) -> Dict[str, SitemapEntry]:
    entry_map: Dict[str, SitemapEntry] = {}
    for item in entries:
        entry = coerce_entry(item)
        entry_map[entry.url] = entry
    return entry_map


def _timestamp_key(value: Any) -> str | None:
    # タイムゾーン無しは UTC とみなし、マイクロ秒まで比較する
    if value is None:
        return None
    return to_utc(value).isoformat()


def _alternates_key(entry: SitemapEntry) -> str:
    return json.dumps([a.to_dict() for a in entry.alternates])
