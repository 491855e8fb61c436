"""Sitemap Storage Module.

生成されたサイトマップ文書の保存先。
"""

from sitemapkit.storage.base import SitemapStorage
from sitemapkit.storage.disk import DiskSitemapStorage
from sitemapkit.storage.memory import MemorySitemapStorage

__all__ = [
    "SitemapStorage",
    "DiskSitemapStorage",
    "MemorySitemapStorage",
]
