"""JSON Lines Change Log.

1行1変更レコードの追記専用ファイル。
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sitemapkit.core.types import SitemapChange, to_utc
from sitemapkit.errors import ChangeLogError, ValidationError
from sitemapkit.tracking.base import ChangeTracker

logger = logging.getLogger(__name__)


class FileChangeTracker(ChangeTracker):
    """ファイル変更ログ

    Example:
        >>> tracker = FileChangeTracker("./.sitemap/changes.jsonl")
        >>> await tracker.track(SitemapChange("remove", "/old"))
        >>> changes = await tracker.get_changes()
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def track(self, change: SitemapChange) -> None:
        line = json.dumps(change.to_dict(), ensure_ascii=False)
        await self._run(self._append, line)
        logger.debug(f"Tracked {change.change_type.value} {change.url}")

    async def get_changes(self, since: Optional[datetime] = None) -> List[SitemapChange]:
        changes = await self._run(self._load)
        if since is None:
            return changes
        threshold = to_utc(since)
        return [c for c in changes if c.timestamp >= threshold]

    async def get_changes_by_url(self, url: str) -> List[SitemapChange]:
        changes = await self._run(self._load)
        return [c for c in changes if c.url == url]

    async def clear(self, since: Optional[datetime] = None) -> None:
        if since is None:
            await self._run(self._rewrite, [])
            logger.info(f"Cleared change log {self.path}")
            return
        threshold = to_utc(since)
        changes = await self._run(self._load)
        kept = [c for c in changes if c.timestamp < threshold]
        await self._run(self._rewrite, kept)
        logger.info(f"Cleared {len(changes) - len(kept)} changes from {self.path}")

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func, *args)
        except OSError as e:
            raise ChangeLogError(
                f"Change log I/O failed for {self.path}: {e}",
                cause=e,
                path=str(self.path),
            ) from e

    def _append(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _load(self) -> List[SitemapChange]:
        if not self.path.exists():
            return []
        changes: List[SitemapChange] = []
        with open(self.path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    if not isinstance(data, dict):
                        raise ValidationError("Change record must be a JSON object")
                    changes.append(SitemapChange.from_dict(data))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ChangeLogError(
                        f"Malformed change record on line {line_no} of {self.path}",
                        cause=e,
                        path=str(self.path),
                    ) from e
        return changes

    def _rewrite(self, changes: List[SitemapChange]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            for change in changes:
                f.write(json.dumps(change.to_dict(), ensure_ascii=False) + "\n")
