"""Redirect Manager Protocol."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from sitemapkit.core.types import RedirectRule

DEFAULT_MAX_CHAIN_LENGTH = 5


class RedirectManager(ABC):
    """リダイレクト規則ストアのプロトコル

    転送元URLごとに規則は1件。同じ転送元を再登録すると上書きする。
    """

    @abstractmethod
    async def register(self, rule: RedirectRule) -> None:
        """規則を登録"""
        ...

    async def register_batch(self, rules: Iterable[RedirectRule]) -> None:
        """複数の規則を登録"""
        for rule in rules:
            await self.register(rule)

    @abstractmethod
    async def get(self, from_url: str) -> Optional[RedirectRule]:
        """転送元URLの規則を取得"""
        ...

    @abstractmethod
    async def get_all(self) -> List[RedirectRule]:
        """全規則を登録順に取得"""
        ...

    async def resolve(
        self,
        url: str,
        follow_chains: bool = False,
        max_chain_length: int = DEFAULT_MAX_CHAIN_LENGTH,
    ) -> str:
        """URL の最終転送先を求める

        Args:
            url: 対象URL
            follow_chains: A -> B -> C を C まで辿るか
            max_chain_length: 辿る最大ホップ数（循環はここで打ち切る）

        Returns:
            転送先URL（規則が無ければ url そのもの）
        """
        current = url
        for _ in range(max_chain_length):
            rule = await self.get(current)
            if rule is None:
                return current
            current = rule.to_url
            if not follow_chains:
                return current
        return current
