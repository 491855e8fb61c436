"""Incremental Sitemap Generator.

変更ログに基づくサイトマップの再生成を管理する。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sitemapkit.core.diff import DiffCalculator
from sitemapkit.core.generator import SitemapGenerator
from sitemapkit.core.providers import collect_entries, iterate_entries
from sitemapkit.core.types import (
    ChangeType,
    DiffResult,
    GenerationResult,
    SitemapChange,
)

if TYPE_CHECKING:
    from sitemapkit.tracking.base import ChangeTracker

logger = logging.getLogger(__name__)


@dataclass
class IncrementalResult:
    """インクリメンタル生成の結果

    Attributes:
        diff: 変更ログから計算した差分
        generation: 再生成の結果
        change_count: 適用した変更レコード数
    """
    diff: DiffResult
    generation: GenerationResult
    change_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """辞書に変換"""
        return {
            "change_count": self.change_count,
            "diff": self.diff.to_dict(),
            "generation": self.generation.to_dict(),
        }


class IncrementalGenerator:
    """インクリメンタルサイトマップ生成器

    差分は計算して公開するが、シャード単位の部分更新は行わず
    変更がある場合は常に全体を再生成する。

    Example:
        >>> incremental = IncrementalGenerator(generator, MemoryChangeTracker())
        >>> await incremental.generate_full()
        >>>
        >>> await incremental.track_change(
        ...     SitemapChange(ChangeType.ADD, "/new", SitemapEntry("/new"))
        ... )
        >>> result = await incremental.generate_incremental(since)
        >>> print(result.diff.total_changes)
    """

    def __init__(
        self,
        generator: SitemapGenerator,
        change_tracker: "ChangeTracker",
        diff_calculator: DiffCalculator | None = None,
        auto_track: bool = False,
    ) -> None:
        """初期化

        Args:
            generator: 生成器
            change_tracker: 変更ログ
            diff_calculator: 差分計算器
            auto_track: 全体生成後に全エントリを add として記録するか
        """
        self.generator = generator
        self.change_tracker = change_tracker
        self.diff_calculator = diff_calculator or DiffCalculator()
        self.auto_track = auto_track
        self.last_diff: DiffResult | None = None

    async def generate_full(self) -> GenerationResult:
        """全体生成

        Returns:
            生成結果
        """
        result = await self.generator.run()

        if self.auto_track:
            tracked = 0
            for provider in self.generator.providers:
                async for entry in iterate_entries(provider):
                    await self.change_tracker.track(
                        SitemapChange(
                            change_type=ChangeType.ADD,
                            url=entry.url,
                            entry=entry,
                        )
                    )
                    tracked += 1
            logger.info(f"Tracked {tracked} entries after full generation")

        return result

    async def generate_incremental(
        self,
        since: Optional[datetime] = None,
    ) -> IncrementalResult | None:
        """変更ログに基づく生成

        Args:
            since: この時刻以降の変更のみ対象（None で全件）

        Returns:
            生成結果（変更が無ければ None）
        """
        changes = await self.change_tracker.get_changes(since)
        if not changes:
            logger.info("No changes since last generation, skipping")
            return None

        # 基準状態はプロバイダから再構築する
        base_entries = await collect_entries(self.generator.providers)
        diff = self.diff_calculator.calculate_from_changes(base_entries, changes)
        self.last_diff = diff

        logger.info(
            f"Applying {len(changes)} changes: "
            f"added={len(diff.added)}, "
            f"updated={len(diff.updated)}, "
            f"removed={len(diff.removed)}"
        )

        generation = await self.generator.run()
        return IncrementalResult(
            diff=diff,
            generation=generation,
            change_count=len(changes),
        )

    async def track_change(self, change: SitemapChange) -> None:
        """変更を記録"""
        await self.change_tracker.track(change)

    async def get_changes(self, since: Optional[datetime] = None) -> List[SitemapChange]:
        """変更を取得"""
        return await self.change_tracker.get_changes(since)
