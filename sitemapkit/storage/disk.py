"""Disk Sitemap Storage."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from sitemapkit.errors import StorageError
from sitemapkit.storage.base import SitemapStorage

logger = logging.getLogger(__name__)


class DiskSitemapStorage(SitemapStorage):
    """ローカルディレクトリへのストレージ

    ファイルI/Oはスレッドプールで実行し、イベントループを塞がない。

    Example:
        >>> storage = DiskSitemapStorage("./public", "https://example.com")
        >>> await storage.write("sitemap.xml", xml)
    """

    def __init__(self, output_dir: str | Path, base_url: str) -> None:
        """初期化

        Args:
            output_dir: 出力ディレクトリ（無ければ作成）
            base_url: 公開URLのベース
        """
        super().__init__(base_url)
        self.output_dir = Path(output_dir)

    def _path(self, filename: str) -> Path:
        path = (self.output_dir / filename).resolve()
        if self.output_dir.resolve() not in path.parents:
            raise StorageError(
                f"Refusing to access path outside output directory: {filename}",
                path=str(path),
            )
        return path

    async def write(self, filename: str, content: str) -> None:
        path = self._path(filename)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._write_file, path, content)
        except OSError as e:
            raise StorageError(
                f"Failed to write {filename}: {e}",
                path=str(path),
                cause=e,
            ) from e
        logger.debug(f"Wrote {path}")

    async def read(self, filename: str) -> Optional[str]:
        path = self._path(filename)
        if not path.exists():
            return None
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._read_file, path)
        except OSError as e:
            raise StorageError(
                f"Failed to read {filename}: {e}",
                path=str(path),
                cause=e,
            ) from e

    async def exists(self, filename: str) -> bool:
        return self._path(filename).is_file()

    @staticmethod
    def _write_file(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    @staticmethod
    def _read_file(path: Path) -> str:
        return path.read_text(encoding="utf-8")
