# sitemapkit Generation Lock
"""
sitemapkit.api.lock - オンデマンド生成の排他制御
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod


class SitemapLock(ABC):
    """生成ロックプロトコル"""

    @abstractmethod
    async def acquire(self, key: str, ttl_seconds: int) -> bool:
        """ロックを取得

        Args:
            key: ロックキー
            ttl_seconds: ロックの有効期限（秒）

        Returns:
            取得できたか
        """
        ...

    @abstractmethod
    async def release(self, key: str) -> None:
        """ロックを解放"""
        ...


class MemorySitemapLock(SitemapLock):
    """プロセス内ロック

    期限切れのロックは次の acquire で取得し直せる。
    """

    def __init__(self) -> None:
        self._locks: dict[str, float] = {}

    async def acquire(self, key: str, ttl_seconds: int) -> bool:
        now = time.monotonic()
        expires_at = self._locks.get(key)
        if expires_at is not None and expires_at > now:
            return False
        self._locks[key] = now + ttl_seconds
        return True

    async def release(self, key: str) -> None:
        self._locks.pop(key, None)

    def is_locked(self, key: str) -> bool:
        """ロック中か"""
        expires_at = self._locks.get(key)
        return expires_at is not None and expires_at > time.monotonic()
