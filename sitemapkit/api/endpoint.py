# sitemapkit Live Endpoint
"""
sitemapkit.api.endpoint - ライブ配信エンドポイント

フレームワーク非依存のハンドラ。ホストアプリケーションのルーティングから
``handle(path)`` を呼び出し、返された SitemapResponse をそのまま応答する。
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from sitemapkit.api.base import SitemapResponse
from sitemapkit.api.lock import SitemapLock
from sitemapkit.core.generator import SitemapGenerator
from sitemapkit.errors import ErrorHandler
from sitemapkit.storage.base import SitemapStorage

logger = logging.getLogger(__name__)

LOCK_TTL_SECONDS = 60
RETRY_AFTER_SECONDS = 5


class SitemapEndpoint:
    """ライブ配信エンドポイント

    インデックスがストレージに無ければその場で生成する。
    シャードは生成済みのもののみ配信する。

    Example:
        >>> endpoint = SitemapKit.dynamic(
        ...     base_url="https://example.com",
        ...     providers=[provider],
        ... ).endpoint()
        >>> response = await endpoint.handle("/sitemap.xml")
        >>> response.status
        200
    """

    def __init__(
        self,
        storage: SitemapStorage,
        generator_factory: Callable[[str], SitemapGenerator],
        path: str = "/sitemap.xml",
        cache_seconds: int | None = None,
        lock: SitemapLock | None = None,
        error_handler: ErrorHandler | None = None,
    ):
        """初期化

        Args:
            storage: 配信元ストレージ
            generator_factory: インデックスファイル名から生成器を作る関数
            path: インデックスの公開パス
            cache_seconds: Cache-Control の max-age（None/0 で no-cache）
            lock: 同時生成を防ぐロック
            error_handler: 生成失敗時のエラーハンドラ
        """
        self.storage = storage
        self.generator_factory = generator_factory
        self.path = path
        self.cache_seconds = cache_seconds
        self.lock = lock
        self.error_handler = error_handler or ErrorHandler()

        base_dir, _, self.index_filename = path.rpartition("/")
        basename = self.index_filename[:-4] if self.index_filename.endswith(".xml") else self.index_filename
        self.base_dir = base_dir
        self._shard_pattern = re.compile(
            re.escape(f"{base_dir}/{basename}-") + r"[^/]+\.xml"
        )

    def matches(self, path: str) -> bool:
        """このエンドポイントが扱うパスか"""
        return path == self.path or self._shard_pattern.fullmatch(path) is not None

    async def handle(self, path: str) -> SitemapResponse:
        """リクエストパスを処理

        Args:
            path: リクエストパス（クエリ文字列を除く）

        Returns:
            応答
        """
        if not self.matches(path):
            return SitemapResponse(404, "Not Found", {"Content-Type": "text/plain"})

        filename = path.rsplit("/", 1)[-1] or self.index_filename
        is_index = filename == self.index_filename

        try:
            content = await self.storage.read(filename)

            if content is None and is_index:
                if self.lock is not None:
                    locked = await self.lock.acquire(filename, LOCK_TTL_SECONDS)
                    if not locked:
                        logger.info(f"Generation of {filename} already in progress")
                        return SitemapResponse(
                            503,
                            "Generating...",
                            {
                                "Content-Type": "text/plain",
                                "Retry-After": str(RETRY_AFTER_SECONDS),
                            },
                        )

                try:
                    logger.info(f"Generating {filename} on demand")
                    await self.generator_factory(filename).run()
                finally:
                    if self.lock is not None:
                        await self.lock.release(filename)

                content = await self.storage.read(filename)
        except Exception as e:
            self.error_handler.handle(
                e,
                component="endpoint",
                operation="handle",
                reraise=False,
                path=path,
            )
            return SitemapResponse(
                500,
                "Internal Server Error",
                {"Content-Type": "text/plain"},
            )

        if content is None:
            return SitemapResponse(404, "Not Found", {"Content-Type": "text/plain"})

        return SitemapResponse(
            200,
            content,
            {
                "Content-Type": "application/xml",
                "Cache-Control": self.cache_control,
            },
        )

    @property
    def cache_control(self) -> str:
        """Cache-Control ヘッダ値"""
        if self.cache_seconds:
            return f"public, max-age={self.cache_seconds}"
        return "no-cache"
