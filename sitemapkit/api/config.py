# sitemapkit Config Manager
"""
sitemapkit.api.config - 設定マネージャー

YAML 設定の読み書きと、プロバイダ定義からのプロバイダ構築。
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

import yaml

from sitemapkit.api.base import RedirectConfig, SitemapConfig
from sitemapkit.core.generator import DEFAULT_FILENAME, DEFAULT_MAX_ENTRIES_PER_FILE
from sitemapkit.core.providers import (
    CallableProvider,
    JsonLinesProvider,
    SitemapProvider,
    UrlListProvider,
)
from sitemapkit.errors import ConfigurationError

PROVIDER_TYPES = ("urls", "jsonl", "python")


class ConfigManager:
    """設定マネージャー"""

    def __init__(self, config_path: str | Path | None = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: SitemapConfig | None = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> ConfigManager:
        """YAMLファイルから読み込み"""
        manager = cls(path)
        manager.load()
        return manager

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> ConfigManager:
        """辞書から作成"""
        manager = cls()
        manager._config = cls._parse_config(config_dict)
        return manager

    @classmethod
    def from_config(cls, config: SitemapConfig) -> ConfigManager:
        """SitemapConfigから作成"""
        manager = cls()
        manager._config = config
        return manager

    def load(self) -> SitemapConfig:
        """設定を読み込み"""
        if not self.config_path or not self.config_path.exists():
            self._config = SitemapConfig()
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.config_path}: {e}",
                cause=e,
                path=str(self.config_path),
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping: {self.config_path}",
                path=str(self.config_path),
            )

        self._config = self._parse_config(data)
        return self._config

    def save(self, path: str | Path | None = None) -> None:
        """設定を保存"""
        if self._config is None:
            return

        save_path = Path(path) if path else self.config_path
        if save_path is None:
            raise ConfigurationError("No path specified for saving config")

        save_path.parent.mkdir(parents=True, exist_ok=True)

        data = self._config_to_dict(self._config)
        with open(save_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    @staticmethod
    def _parse_config(data: dict[str, Any]) -> SitemapConfig:
        """設定をパース"""
        providers = data.get("providers") or []
        if not isinstance(providers, list):
            raise ConfigurationError("providers must be a list", field="providers")

        cache_seconds = data.get("cache_seconds")
        change_log = data.get("change_log")
        redirects = data.get("redirects")
        if redirects is not None and not isinstance(redirects, dict):
            raise ConfigurationError("redirects must be a mapping", field="redirects")

        config = SitemapConfig(
            base_url=data.get("base_url", "http://localhost"),
            output_path=Path(data.get("output_path", "./public")),
            filename=data.get("filename", DEFAULT_FILENAME),
            max_entries_per_file=data.get("max_entries_per_file", DEFAULT_MAX_ENTRIES_PER_FILE),
            pretty=bool(data.get("pretty", False)),
            path=data.get("path", "/sitemap.xml"),
            cache_seconds=int(cache_seconds) if cache_seconds is not None else None,
            change_log=Path(change_log) if change_log else None,
            auto_track=bool(data.get("auto_track", False)),
            redirects=RedirectConfig.from_dict(redirects) if redirects else None,
            providers=[dict(spec) for spec in providers],
        )
        config.validate()
        return config

    @staticmethod
    def _config_to_dict(config: SitemapConfig) -> dict[str, Any]:
        """SitemapConfigを辞書に変換"""
        return {
            "base_url": config.base_url,
            "output_path": str(config.output_path),
            "filename": config.filename,
            "max_entries_per_file": config.max_entries_per_file,
            "pretty": config.pretty,
            "path": config.path,
            "cache_seconds": config.cache_seconds,
            "change_log": str(config.change_log) if config.change_log else None,
            "auto_track": config.auto_track,
            "redirects": config.redirects.to_dict() if config.redirects else None,
            "providers": [dict(spec) for spec in config.providers],
        }

    @property
    def config(self) -> SitemapConfig:
        """設定を取得"""
        if self._config is None:
            self._config = self.load()
        return self._config


def load_config(path: str | Path | None = None) -> SitemapConfig:
    """設定を読み込むヘルパー関数"""
    manager = ConfigManager(path)
    return manager.load()


def build_provider(spec: dict[str, Any], base_dir: Path | None = None) -> SitemapProvider:
    """プロバイダ定義からプロバイダを作成

    Args:
        spec: ``{type: urls|jsonl, path}`` または ``{type: python, target: "module:attr"}``
        base_dir: 相対パスの基準ディレクトリ（通常は設定ファイルの場所）

    Returns:
        プロバイダ
    """
    provider_type = spec.get("type")
    if provider_type not in PROVIDER_TYPES:
        raise ConfigurationError(
            f"Unknown provider type: {provider_type!r} "
            f"(expected one of {', '.join(PROVIDER_TYPES)})",
            field="providers",
        )

    if provider_type == "python":
        return _load_python_provider(spec.get("target", ""))

    raw_path = spec.get("path")
    if not raw_path:
        raise ConfigurationError(
            f"Provider of type '{provider_type}' requires a 'path'",
            field="providers",
        )
    path = Path(raw_path)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path

    if provider_type == "urls":
        return UrlListProvider(path)
    return JsonLinesProvider(path)


def build_providers(
    specs: list[dict[str, Any]],
    base_dir: Path | None = None,
) -> list[SitemapProvider]:
    """プロバイダ定義のリストからプロバイダを作成"""
    return [build_provider(spec, base_dir) for spec in specs]


def _load_python_provider(target: str) -> SitemapProvider:
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(
            f"Python provider target must look like 'module:attr', got {target!r}",
            field="providers",
        )

    try:
        module = importlib.import_module(module_name)
        obj = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Cannot load provider {target!r}: {e}",
            cause=e,
            field="providers",
        ) from e

    if isinstance(obj, type):
        obj = obj()
    if hasattr(obj, "get_entries"):
        return obj
    if callable(obj):
        return CallableProvider(obj)

    raise ConfigurationError(
        f"Provider {target!r} is neither a provider nor a callable",
        field="providers",
    )
