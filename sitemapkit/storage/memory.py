"""In-memory Sitemap Storage."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sitemapkit.storage.base import SitemapStorage

logger = logging.getLogger(__name__)


class MemorySitemapStorage(SitemapStorage):
    """インメモリストレージ（開発・テスト用）

    Example:
        >>> storage = MemorySitemapStorage("https://example.com")
        >>> await storage.write("sitemap.xml", xml)
        >>> storage.get_url("sitemap.xml")
        'https://example.com/sitemap.xml'
    """

    def __init__(self, base_url: str) -> None:
        super().__init__(base_url)
        self._files: Dict[str, str] = {}

    async def write(self, filename: str, content: str) -> None:
        self._files[filename] = content
        logger.debug(f"Stored {filename} ({len(content)} chars)")

    async def read(self, filename: str) -> Optional[str]:
        return self._files.get(filename)

    async def exists(self, filename: str) -> bool:
        return filename in self._files

    @property
    def filenames(self) -> List[str]:
        """保存済みのファイル名（書き込み順）"""
        return list(self._files)

    def clear(self) -> None:
        """全ファイルを削除"""
        self._files.clear()
