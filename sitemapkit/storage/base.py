"""Sitemap Storage Protocol."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from sitemapkit.core.serializer import normalize_base_url


class SitemapStorage(ABC):
    """サイトマップストレージプロトコル

    ``write`` と ``get_url`` は生成器が、``read`` と ``exists`` は
    ライブエンドポイントが使用する。
    """

    def __init__(self, base_url: str) -> None:
        self.base_url = normalize_base_url(base_url)

    @abstractmethod
    async def write(self, filename: str, content: str) -> None:
        """ファイルを書き込み（同名は上書き）

        Args:
            filename: ファイル名
            content: XML文書
        """
        ...

    @abstractmethod
    async def read(self, filename: str) -> Optional[str]:
        """ファイルを読み込み

        Returns:
            XML文書（存在しなければ None）
        """
        ...

    @abstractmethod
    async def exists(self, filename: str) -> bool:
        """ファイルの存在確認"""
        ...

    def get_url(self, filename: str) -> str:
        """ファイルの公開URLを取得"""
        return f"{self.base_url}/{filename}"
