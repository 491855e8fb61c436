"""Change Log Protocol."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from sitemapkit.core.types import SitemapChange


class ChangeTracker(ABC):
    """変更ログプロトコル

    追記専用かつ時刻順であることを前提とする。
    """

    @abstractmethod
    async def track(self, change: SitemapChange) -> None:
        """変更を記録"""
        ...

    @abstractmethod
    async def get_changes(self, since: Optional[datetime] = None) -> List[SitemapChange]:
        """変更を取得

        Args:
            since: この時刻以降（境界を含む）の変更のみ。None で全件

        Returns:
            記録順の変更レコード
        """
        ...

    @abstractmethod
    async def get_changes_by_url(self, url: str) -> List[SitemapChange]:
        """URL の変更履歴を取得"""
        ...

    @abstractmethod
    async def clear(self, since: Optional[datetime] = None) -> None:
        """変更を削除

        Args:
            since: この時刻以降の変更のみ削除。None で全件
        """
        ...
