# sitemapkit API
"""
sitemapkit.api - 合成レイヤ

Facade、設定、ライブ配信エンドポイント、生成ロック。
"""

from sitemapkit.api.base import RedirectConfig, SitemapConfig, SitemapMode, SitemapResponse
from sitemapkit.api.config import (
    ConfigManager,
    build_provider,
    build_providers,
    load_config,
)
from sitemapkit.api.endpoint import SitemapEndpoint
from sitemapkit.api.lock import MemorySitemapLock, SitemapLock
from sitemapkit.api.sitemap import SitemapKit

__all__ = [
    # Facade
    "SitemapKit",
    # Types
    "RedirectConfig",
    "SitemapConfig",
    "SitemapMode",
    "SitemapResponse",
    # Config
    "ConfigManager",
    "build_provider",
    "build_providers",
    "load_config",
    # Endpoint
    "SitemapEndpoint",
    "SitemapLock",
    "MemorySitemapLock",
]
