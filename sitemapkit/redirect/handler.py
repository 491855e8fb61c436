"""Redirect Handler.

生成前にエントリのURLをリダイレクト規則で解決し、戦略に従って書き換える。

Strategies:
    - remove_old_add_new: 転送元を転送先に置き換える（既定）
    - keep_relation: 転送元を残し ``<xhtml:link rel="canonical">`` で転送先を示す
    - update_url: URL だけを転送先に置き換える
    - dual_mark: 転送元と転送先の両方を出力する
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Set

from sitemapkit.core.providers import SitemapProvider, iterate_entries
from sitemapkit.core.types import EntryRedirect, SitemapEntry, coerce_entry
from sitemapkit.redirect.base import DEFAULT_MAX_CHAIN_LENGTH, RedirectManager

logger = logging.getLogger(__name__)


class RedirectStrategy(str, Enum):
    """リダイレクトの扱い方"""
    REMOVE_OLD_ADD_NEW = "remove_old_add_new"
    KEEP_RELATION = "keep_relation"
    UPDATE_URL = "update_url"
    DUAL_MARK = "dual_mark"


class RedirectHandler:
    """エントリ列にリダイレクト規則を適用する

    Example:
        >>> manager = MemoryRedirectManager()
        >>> await manager.register(RedirectRule("/old", "/new"))
        >>> handler = RedirectHandler(manager)
        >>> [e.url for e in await handler.process_entries(["/old", "/about"])]
        ['/new', '/about']
    """

    def __init__(
        self,
        manager: RedirectManager,
        strategy: RedirectStrategy | str = RedirectStrategy.REMOVE_OLD_ADD_NEW,
        follow_chains: bool = False,
        max_chain_length: int = DEFAULT_MAX_CHAIN_LENGTH,
    ):
        self.manager = manager
        self.strategy = RedirectStrategy(strategy)
        self.follow_chains = follow_chains
        self.max_chain_length = max_chain_length

    async def process_entries(self, entries: Iterable[Any]) -> List[SitemapEntry]:
        """エントリ列を処理

        Args:
            entries: SitemapEntry（または辞書・文字列）の列

        Returns:
            戦略適用後のエントリ列（入力順を保つ）
        """
        items = [coerce_entry(e) for e in entries]
        redirects = await self._resolve_all(items)
        if redirects:
            logger.debug(
                f"Applying {len(redirects)} redirects with strategy {self.strategy.value}"
            )

        if self.strategy is RedirectStrategy.REMOVE_OLD_ADD_NEW:
            return self._remove_old_add_new(items, redirects)
        if self.strategy is RedirectStrategy.KEEP_RELATION:
            return self._keep_relation(items, redirects)
        if self.strategy is RedirectStrategy.UPDATE_URL:
            return self._update_url(items, redirects)
        return self._dual_mark(items, redirects)

    async def _resolve_all(self, items: List[SitemapEntry]) -> Dict[str, EntryRedirect]:
        redirects: Dict[str, EntryRedirect] = {}
        for entry in items:
            if entry.url in redirects:
                continue
            target = await self.manager.resolve(
                entry.url, self.follow_chains, self.max_chain_length
            )
            if target and target != entry.url:
                # ステータスは最初のホップの規則に従う
                first_hop = await self.manager.get(entry.url)
                redirects[entry.url] = EntryRedirect(
                    from_url=entry.url,
                    to_url=target,
                    status=first_hop.status if first_hop else 301,
                )
        return redirects

    # === Strategies ===

    def _remove_old_add_new(
        self,
        items: List[SitemapEntry],
        redirects: Dict[str, EntryRedirect],
    ) -> List[SitemapEntry]:
        # 転送先が既にカタログにある場合は転送元を捨てるだけ
        present: Set[str] = {e.url for e in items if e.url not in redirects}
        emitted: Set[str] = set()
        processed = []
        for entry in items:
            redirect = redirects.get(entry.url)
            if redirect is None:
                processed.append(entry)
                continue
            if redirect.to_url in present or redirect.to_url in emitted:
                continue
            emitted.add(redirect.to_url)
            processed.append(replace(entry, url=redirect.to_url, redirect=redirect))
        return processed

    def _keep_relation(
        self,
        items: List[SitemapEntry],
        redirects: Dict[str, EntryRedirect],
    ) -> List[SitemapEntry]:
        processed = []
        for entry in items:
            redirect = redirects.get(entry.url)
            if redirect is None:
                processed.append(entry)
            else:
                processed.append(
                    replace(entry, redirect=replace(redirect, canonical=redirect.to_url))
                )
        return processed

    def _update_url(
        self,
        items: List[SitemapEntry],
        redirects: Dict[str, EntryRedirect],
    ) -> List[SitemapEntry]:
        processed = []
        for entry in items:
            redirect = redirects.get(entry.url)
            if redirect is None:
                processed.append(entry)
            else:
                processed.append(replace(entry, url=redirect.to_url, redirect=redirect))
        return processed

    def _dual_mark(
        self,
        items: List[SitemapEntry],
        redirects: Dict[str, EntryRedirect],
    ) -> List[SitemapEntry]:
        processed = []
        added: Set[str] = set()
        for entry in items:
            redirect = redirects.get(entry.url)
            if redirect is None:
                processed.append(entry)
                continue
            processed.append(replace(entry, redirect=redirect))
            if redirect.to_url not in added:
                added.add(redirect.to_url)
                processed.append(replace(entry, url=redirect.to_url, redirect=redirect))
        return processed


class RedirectingProvider:
    """プロバイダの出力にリダイレクト処理を挟むラッパー

    戦略の適用にはプロバイダ全体が必要なため、ラップしたプロバイダの
    エントリはリストに展開される。
    """

    def __init__(self, provider: SitemapProvider, handler: RedirectHandler):
        self.provider = provider
        self.handler = handler

    async def get_entries(self) -> List[SitemapEntry]:
        entries = [entry async for entry in iterate_entries(self.provider)]
        return await self.handler.process_entries(entries)
