"""In-memory Change Log."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sitemapkit.core.types import SitemapChange, to_utc
from sitemapkit.errors import ValidationError
from sitemapkit.tracking.base import ChangeTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHANGES = 100000


class MemoryChangeTracker(ChangeTracker):
    """インメモリ変更ログ（単一プロセス・開発用）

    ``max_changes`` を超えた場合は古い変更から破棄する。
    """

    def __init__(self, max_changes: int = DEFAULT_MAX_CHANGES) -> None:
        if max_changes < 1:
            raise ValidationError(
                "max_changes must be at least 1",
                field="max_changes",
                value=max_changes,
            )
        self.max_changes = max_changes
        self._changes: List[SitemapChange] = []

    def __len__(self) -> int:
        return len(self._changes)

    async def track(self, change: SitemapChange) -> None:
        self._changes.append(change)
        if len(self._changes) > self.max_changes:
            dropped = len(self._changes) - self.max_changes
            self._changes = self._changes[-self.max_changes:]
            logger.debug(f"Dropped {dropped} oldest changes")

    async def get_changes(self, since: Optional[datetime] = None) -> List[SitemapChange]:
        if since is None:
            return list(self._changes)
        threshold = to_utc(since)
        return [c for c in self._changes if c.timestamp >= threshold]

    async def get_changes_by_url(self, url: str) -> List[SitemapChange]:
        return [c for c in self._changes if c.url == url]

    async def clear(self, since: Optional[datetime] = None) -> None:
        if since is None:
            self._changes = []
            return
        threshold = to_utc(since)
        self._changes = [c for c in self._changes if c.timestamp < threshold]
