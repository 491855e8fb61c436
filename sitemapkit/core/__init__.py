"""Sitemap Core Module.

エントリモデル、XMLシリアライザ、差分計算、生成パイプラインを提供する。

Features:
    - 任意数のプロバイダからのストリーミング生成
    - エントリ数上限によるシャード分割とインデックス生成
    - 追加・更新・削除の差分計算
    - 変更ログ駆動の再生成
"""

from sitemapkit.core.types import (
    AlternateUrl,
    ChangeFrequency,
    ChangeType,
    DiffResult,
    EntryRedirect,
    GenerationResult,
    RedirectRule,
    SitemapChange,
    SitemapEntry,
    SitemapImage,
    SitemapIndexEntry,
    SitemapNews,
    SitemapVideo,
    coerce_entry,
    parse_timestamp,
    to_date_string,
)
from sitemapkit.core.serializer import (
    SitemapIndex,
    SitemapStream,
    escape_xml,
    resolve_url,
)
from sitemapkit.core.providers import (
    CallableProvider,
    JsonLinesProvider,
    SitemapProvider,
    StaticProvider,
    UrlListProvider,
    collect_entries,
    iterate_entries,
)
from sitemapkit.core.diff import DiffCalculator
from sitemapkit.core.generator import SitemapGenerator, shard_filename
from sitemapkit.core.incremental import IncrementalGenerator, IncrementalResult

__all__ = [
    # Types
    "AlternateUrl",
    "ChangeFrequency",
    "ChangeType",
    "DiffResult",
    "EntryRedirect",
    "GenerationResult",
    "RedirectRule",
    "SitemapChange",
    "SitemapEntry",
    "SitemapImage",
    "SitemapIndexEntry",
    "SitemapNews",
    "SitemapVideo",
    "coerce_entry",
    "parse_timestamp",
    "to_date_string",
    # Serializer
    "SitemapIndex",
    "SitemapStream",
    "escape_xml",
    "resolve_url",
    # Providers
    "CallableProvider",
    "JsonLinesProvider",
    "SitemapProvider",
    "StaticProvider",
    "UrlListProvider",
    "collect_entries",
    "iterate_entries",
    # Diff
    "DiffCalculator",
    # Generator
    "SitemapGenerator",
    "shard_filename",
    "IncrementalGenerator",
    "IncrementalResult",
]
