"""Sitemap Catalog Generator.

プロバイダのエントリをシャードに分割してストレージに書き込み、
最後にインデックスを書き込む。
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from sitemapkit.core.providers import SitemapProvider, iterate_entries
from sitemapkit.core.serializer import SitemapIndex, SitemapStream
from sitemapkit.core.types import GenerationResult, SitemapIndexEntry
from sitemapkit.errors import ValidationError

if TYPE_CHECKING:
    from sitemapkit.observability import GenerationSpan, Observability
    from sitemapkit.storage.base import SitemapStorage

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES_PER_FILE = 50000
DEFAULT_FILENAME = "sitemap.xml"

ProgressCallback = Callable[[int, int], None]


def shard_filename(filename: str, shard_index: int) -> str:
    """シャードのファイル名を返す

    >>> shard_filename("sitemap.xml", 2)
    'sitemap-2.xml'
    """
    base = filename[:-4] if filename.endswith(".xml") else filename
    return f"{base}-{shard_index}.xml"


class SitemapGenerator:
    """サイトマップ生成器

    エントリは1件ずつ現在のシャードに追加され、シャードが
    ``max_entries_per_file`` に達した時点で書き出される。
    メモリ上に保持されるのは常に1シャード分のみ。

    Example:
        >>> generator = SitemapGenerator(
        ...     storage=MemorySitemapStorage("https://example.com"),
        ...     providers=[StaticProvider(["/a", "/b"])],
        ...     base_url="https://example.com",
        ... )
        >>> result = await generator.run()
        >>> result.shard_filenames
        ['sitemap-1.xml']
    """

    def __init__(
        self,
        storage: "SitemapStorage",
        providers: Sequence[SitemapProvider],
        base_url: str,
        max_entries_per_file: int = DEFAULT_MAX_ENTRIES_PER_FILE,
        filename: str = DEFAULT_FILENAME,
        pretty: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        observability: Optional["Observability"] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """初期化

        Args:
            storage: 書き込み先ストレージ
            providers: プロバイダ（この順に消費する）
            base_url: サイトのベースURL
            max_entries_per_file: 1シャードあたりの最大エントリ数
            filename: インデックスのファイル名
            pretty: インデント付きで出力するか
            on_progress: 進捗コールバック (処理済みエントリ数, 書き込み済みシャード数)
            observability: トレース・メトリクスの記録先
            clock: インデックスの lastmod に使う現在時刻関数
        """
        if max_entries_per_file <= 0:
            raise ValidationError(
                "max_entries_per_file must be a positive integer",
                field="max_entries_per_file",
                value=max_entries_per_file,
            )

        self.storage = storage
        self.providers = list(providers)
        self.base_url = base_url
        self.max_entries_per_file = max_entries_per_file
        self.filename = filename
        self.pretty = pretty
        self.on_progress = on_progress
        self.observability = observability
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def run(self) -> GenerationResult:
        """生成パスを1回実行

        プロバイダ・ストレージの例外はそのまま伝播する。
        シャードの書き込みに失敗した場合、インデックスは書き込まれない。

        Returns:
            生成結果
        """
        if self.observability is None:
            return await self._run()

        with self.observability.generation(self.filename, len(self.providers)) as span:
            return await self._run(span)

    async def _run(self, span: Optional["GenerationSpan"] = None) -> GenerationResult:
        start_time = time.time()
        logger.info(
            f"Generating sitemap {self.filename} from {len(self.providers)} providers"
        )

        index = SitemapIndex(self.base_url, pretty=self.pretty)
        shard_filenames: List[str] = []
        stream = SitemapStream(self.base_url, pretty=self.pretty)
        processed = 0

        for provider in self.providers:
            async for entry in iterate_entries(provider):
                stream.add(entry)
                processed += 1

                if len(stream) >= self.max_entries_per_file:
                    await self._flush(stream, index, shard_filenames, span)
                    stream = SitemapStream(self.base_url, pretty=self.pretty)
                    self._report_progress(processed, len(shard_filenames))

        if len(stream) > 0:
            await self._flush(stream, index, shard_filenames, span)
            self._report_progress(processed, len(shard_filenames))

        await self.storage.write(self.filename, index.to_xml())

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Generated {self.filename}: {processed} entries in "
            f"{len(shard_filenames)} shards ({duration_ms:.1f}ms)"
        )

        return GenerationResult(
            index_filename=self.filename,
            shard_filenames=shard_filenames,
            entry_count=processed,
            duration_ms=duration_ms,
        )

    async def _flush(
        self,
        stream: SitemapStream,
        index: SitemapIndex,
        shard_filenames: List[str],
        span: Optional["GenerationSpan"] = None,
    ) -> None:
        filename = shard_filename(self.filename, len(shard_filenames) + 1)
        await self.storage.write(filename, stream.to_xml())
        index.add(
            SitemapIndexEntry(
                url=self.storage.get_url(filename),
                last_modified=self.clock(),
            )
        )
        shard_filenames.append(filename)
        if span is not None:
            span.record_shard(filename, len(stream))
        logger.debug(f"Wrote shard {filename} ({len(stream)} entries)")

    def _report_progress(self, processed: int, shards: int) -> None:
        if self.on_progress is not None:
            self.on_progress(processed, shards)
