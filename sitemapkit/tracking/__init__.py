"""Change Log Module.

カタログ変更レコードの記録と取得。
"""

from sitemapkit.tracking.base import ChangeTracker
from sitemapkit.tracking.file import FileChangeTracker
from sitemapkit.tracking.memory import DEFAULT_MAX_CHANGES, MemoryChangeTracker

__all__ = [
    "ChangeTracker",
    "FileChangeTracker",
    "MemoryChangeTracker",
    "DEFAULT_MAX_CHANGES",
]
