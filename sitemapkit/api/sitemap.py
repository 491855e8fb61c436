# sitemapkit Main Facade
"""
sitemapkit.api.sitemap - メインFacade API

生成器・ストレージ・変更ログを組み合わせる合成ルート。
グローバル状態は持たない。
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from sitemapkit.api.base import SitemapConfig, SitemapMode
from sitemapkit.api.config import ConfigManager, build_providers
from sitemapkit.api.endpoint import SitemapEndpoint
from sitemapkit.api.lock import SitemapLock
from sitemapkit.core.generator import ProgressCallback, SitemapGenerator
from sitemapkit.core.incremental import IncrementalGenerator
from sitemapkit.core.providers import SitemapProvider
from sitemapkit.core.types import GenerationResult
from sitemapkit.errors import ConfigurationError
from sitemapkit.observability import Observability
from sitemapkit.redirect import (
    MemoryRedirectManager,
    RedirectHandler,
    RedirectingProvider,
    RedirectManager,
)
from sitemapkit.storage import DiskSitemapStorage, MemorySitemapStorage, SitemapStorage
from sitemapkit.tracking import ChangeTracker, FileChangeTracker, MemoryChangeTracker

logger = logging.getLogger(__name__)


class SitemapKit:
    """sitemapkit メインAPI (Facade)

    Example:
        >>> # ビルド時にファイルへ出力
        >>> kit = SitemapKit.static(
        ...     base_url="https://example.com",
        ...     providers=[provider],
        ...     output_path="./public",
        ... )
        >>> result = await kit.generate()
        >>>
        >>> # リクエスト時に生成して配信
        >>> endpoint = SitemapKit.dynamic(
        ...     base_url="https://example.com",
        ...     providers=[provider],
        ...     cache_seconds=3600,
        ... ).endpoint()
    """

    def __init__(
        self,
        mode: SitemapMode,
        config: SitemapConfig,
        providers: Sequence[SitemapProvider],
        storage: SitemapStorage | None = None,
        lock: SitemapLock | None = None,
        change_tracker: ChangeTracker | None = None,
        observability: Observability | None = None,
        on_progress: ProgressCallback | None = None,
        redirect_manager: RedirectManager | None = None,
    ):
        config.validate()
        self.mode = mode
        self.config = config
        self.providers = list(providers)
        self.lock = lock
        self.observability = observability
        self.on_progress = on_progress
        self._storage = storage
        self._change_tracker = change_tracker
        self._redirect_manager = redirect_manager

    # ========== 生成 ==========

    @classmethod
    def dynamic(
        cls,
        base_url: str,
        providers: Sequence[SitemapProvider],
        path: str = "/sitemap.xml",
        cache_seconds: int | None = None,
        storage: SitemapStorage | None = None,
        lock: SitemapLock | None = None,
        **options: Any,
    ) -> SitemapKit:
        """ライブ配信モードで作成"""
        config = SitemapConfig(
            base_url=base_url,
            path=path,
            cache_seconds=cache_seconds,
            **_config_options(options),
        )
        return cls(
            SitemapMode.DYNAMIC,
            config,
            providers,
            storage=storage,
            lock=lock,
            **options,
        )

    @classmethod
    def static(
        cls,
        base_url: str,
        providers: Sequence[SitemapProvider],
        output_path: str | Path = "./public",
        filename: str = "sitemap.xml",
        storage: SitemapStorage | None = None,
        **options: Any,
    ) -> SitemapKit:
        """ビルド時生成モードで作成"""
        config = SitemapConfig(
            base_url=base_url,
            output_path=Path(output_path),
            filename=filename,
            **_config_options(options),
        )
        return cls(
            SitemapMode.STATIC,
            config,
            providers,
            storage=storage,
            **options,
        )

    @classmethod
    def from_config(
        cls,
        config: str | Path | dict[str, Any] | SitemapConfig,
        mode: SitemapMode = SitemapMode.STATIC,
        providers: Sequence[SitemapProvider] | None = None,
        **options: Any,
    ) -> SitemapKit:
        """設定から作成

        Args:
            config: 設定ファイルパス、辞書、またはSitemapConfigオブジェクト
            mode: 動作モード
            providers: プロバイダ（None の場合は設定のプロバイダ定義から作成）
        """
        base_dir: Path | None = None
        if isinstance(config, (str, Path)):
            manager = ConfigManager.from_yaml(config)
            base_dir = Path(config).resolve().parent
        elif isinstance(config, dict):
            manager = ConfigManager.from_dict(config)
        elif isinstance(config, SitemapConfig):
            manager = ConfigManager.from_config(config)
        else:
            raise ConfigurationError(f"Invalid config type: {type(config)}")

        cfg = manager.config
        if base_dir is not None:
            # 相対パスは設定ファイルの場所を基準にする
            if not cfg.output_path.is_absolute():
                cfg = replace(cfg, output_path=base_dir / cfg.output_path)
            if cfg.change_log is not None and not cfg.change_log.is_absolute():
                cfg = replace(cfg, change_log=base_dir / cfg.change_log)
            redirects = cfg.redirects
            if redirects is not None and redirects.rules and not redirects.rules.is_absolute():
                cfg = replace(cfg, redirects=replace(redirects, rules=base_dir / redirects.rules))

        if providers is None:
            providers = build_providers(cfg.providers, base_dir)

        return cls(mode, cfg, providers, **options)

    @property
    def storage(self) -> SitemapStorage:
        """ストレージを取得（未指定ならモードに応じて作成）"""
        if self._storage is None:
            if self.mode == SitemapMode.STATIC:
                self._storage = DiskSitemapStorage(self.config.output_path, self.config.base_url)
            else:
                self._storage = MemorySitemapStorage(self.config.base_url)
        return self._storage

    @property
    def change_tracker(self) -> ChangeTracker:
        """変更ログを取得（未指定なら設定に応じて作成）"""
        if self._change_tracker is None:
            if self.config.change_log is not None:
                self._change_tracker = FileChangeTracker(self.config.change_log)
            else:
                self._change_tracker = MemoryChangeTracker()
        return self._change_tracker

    @property
    def redirect_manager(self) -> RedirectManager | None:
        """リダイレクト規則ストアを取得（規則ファイルがあれば読み込む）"""
        if self._redirect_manager is None:
            redirects = self.config.redirects
            if redirects is not None and redirects.rules is not None:
                self._redirect_manager = MemoryRedirectManager.from_file(redirects.rules)
        return self._redirect_manager

    def effective_providers(self) -> list[SitemapProvider]:
        """生成に使うプロバイダ

        リダイレクト規則ストアがある場合は各プロバイダを
        ``RedirectingProvider`` で包む。
        """
        manager = self.redirect_manager
        if manager is None:
            return list(self.providers)

        redirects = self.config.redirects
        if redirects is None:
            handler = RedirectHandler(manager)
        else:
            handler = RedirectHandler(
                manager,
                strategy=redirects.strategy,
                follow_chains=redirects.follow_chains,
                max_chain_length=redirects.max_chain_length,
            )
        return [RedirectingProvider(provider, handler) for provider in self.providers]

    def create_generator(self, filename: str | None = None) -> SitemapGenerator:
        """生成器を作成"""
        return SitemapGenerator(
            storage=self.storage,
            providers=self.effective_providers(),
            base_url=self.config.base_url,
            max_entries_per_file=self.config.max_entries_per_file,
            filename=filename or self.config.filename,
            pretty=self.config.pretty,
            on_progress=self.on_progress,
            observability=self.observability,
        )

    async def generate(self) -> GenerationResult:
        """サイトマップを生成（static モードのみ）

        Raises:
            ConfigurationError: dynamic モードで呼び出した場合
        """
        if self.mode != SitemapMode.STATIC:
            raise ConfigurationError(
                "generate() can only be called in static mode",
                component="facade",
                operation="generate",
            )

        result = await self.create_generator().run()
        logger.info(f"Generated sitemap in {self.config.output_path}")
        return result

    def endpoint(self) -> SitemapEndpoint:
        """ライブ配信エンドポイントを作成（dynamic モードのみ）

        Raises:
            ConfigurationError: static モードで呼び出した場合
        """
        if self.mode != SitemapMode.DYNAMIC:
            raise ConfigurationError(
                "endpoint() can only be called in dynamic mode",
                component="facade",
                operation="endpoint",
            )

        return SitemapEndpoint(
            storage=self.storage,
            generator_factory=self.create_generator,
            path=self.config.path,
            cache_seconds=self.config.cache_seconds,
            lock=self.lock,
        )

    def incremental(self, change_tracker: ChangeTracker | None = None) -> IncrementalGenerator:
        """インクリメンタル生成器を作成"""
        return IncrementalGenerator(
            generator=self.create_generator(),
            change_tracker=change_tracker or self.change_tracker,
            auto_track=self.config.auto_track,
        )


_CONFIG_FIELDS = (
    "max_entries_per_file",
    "pretty",
    "change_log",
    "auto_track",
    "redirects",
)


def _config_options(options: dict[str, Any]) -> dict[str, Any]:
    # 設定項目はオプションから取り除いて SitemapConfig に渡す
    return {key: options.pop(key) for key in _CONFIG_FIELDS if key in options}
