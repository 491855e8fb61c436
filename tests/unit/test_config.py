"""Config Manager Unit Tests.

YAML 設定とプロバイダ定義のテスト。
"""

from pathlib import Path

import pytest
import yaml

from sitemapkit.api.base import RedirectConfig, SitemapConfig
from sitemapkit.api.config import ConfigManager, build_provider, build_providers, load_config
from sitemapkit.core.providers import CallableProvider, JsonLinesProvider, UrlListProvider
from sitemapkit.errors import ConfigurationError


def catalog_entries():
    """テスト用の python プロバイダ"""
    return ["/from-python"]


class CatalogProvider:
    """テスト用のプロバイダクラス"""

    def get_entries(self):
        return ["/from-class"]


class TestSitemapConfig:
    """SitemapConfig tests."""

    def test_defaults(self):
        config = SitemapConfig()
        assert config.filename == "sitemap.xml"
        assert config.max_entries_per_file == 50000
        assert config.path == "/sitemap.xml"
        assert config.cache_seconds is None
        assert config.index_filename == "sitemap.xml"

    def test_path_conversion(self):
        config = SitemapConfig(output_path="./out", change_log="./log.jsonl")
        assert config.output_path == Path("./out")
        assert config.change_log == Path("./log.jsonl")

    def test_redirects_from_dict(self):
        config = SitemapConfig(redirects={"rules": "redirects.yaml", "follow_chains": True})
        assert config.redirects == RedirectConfig(
            rules=Path("redirects.yaml"),
            follow_chains=True,
        )
        assert config.redirects.strategy == "remove_old_add_new"
        config.validate()

    def test_index_filename_from_path(self):
        assert SitemapConfig(path="/maps/pages.xml").index_filename == "pages.xml"

    @pytest.mark.parametrize("kwargs", [
        {"base_url": ""},
        {"max_entries_per_file": 0},
        {"max_entries_per_file": "10"},
        {"filename": "sitemap.txt"},
        {"path": "sitemap.xml"},
        {"cache_seconds": -1},
        {"redirects": {"strategy": "drop_everything"}},
        {"redirects": {"max_chain_length": 0}},
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ConfigurationError):
            SitemapConfig(**kwargs).validate()


class TestConfigManager:
    """ConfigManager tests."""

    def test_missing_file_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config == SitemapConfig()

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "sitemapkit.yaml"
        path.write_text(yaml.dump({
            "base_url": "https://example.com",
            "max_entries_per_file": 1000,
            "cache_seconds": 600,
            "change_log": ".sitemap/changes.jsonl",
            "providers": [{"type": "urls", "path": "urls.txt"}],
        }))

        config = ConfigManager.from_yaml(path).config
        assert config.base_url == "https://example.com"
        assert config.max_entries_per_file == 1000
        assert config.cache_seconds == 600
        assert config.change_log == Path(".sitemap/changes.jsonl")
        assert config.providers == [{"type": "urls", "path": "urls.txt"}]

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("base_url: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ConfigManager.from_yaml(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            ConfigManager.from_yaml(path)

    def test_invalid_values(self):
        with pytest.raises(ConfigurationError):
            ConfigManager.from_dict({"max_entries_per_file": -5})

    def test_save_and_reload(self, tmp_path):
        manager = ConfigManager.from_dict({
            "base_url": "https://example.com",
            "pretty": True,
            "providers": [{"type": "jsonl", "path": "entries.jsonl"}],
        })
        path = tmp_path / "nested" / "sitemapkit.yaml"
        manager.save(path)

        reloaded = ConfigManager.from_yaml(path).config
        assert reloaded == manager.config

    def test_redirects_save_and_reload(self, tmp_path):
        manager = ConfigManager.from_dict({
            "redirects": {"rules": "redirects.yaml", "strategy": "keep_relation"},
        })
        path = tmp_path / "sitemapkit.yaml"
        manager.save(path)

        reloaded = ConfigManager.from_yaml(path).config
        assert reloaded.redirects.strategy == "keep_relation"
        assert reloaded == manager.config

    def test_redirects_not_mapping(self):
        with pytest.raises(ConfigurationError, match="redirects"):
            ConfigManager.from_dict({"redirects": ["/old"]})

    def test_save_without_path(self):
        manager = ConfigManager.from_dict({})
        with pytest.raises(ConfigurationError):
            manager.save()


class TestBuildProviders:
    """build_provider tests."""

    def test_urls(self, tmp_path):
        provider = build_provider({"type": "urls", "path": "urls.txt"}, base_dir=tmp_path)
        assert isinstance(provider, UrlListProvider)
        assert provider.path == tmp_path / "urls.txt"

    def test_jsonl(self):
        provider = build_provider({"type": "jsonl", "path": "/data/entries.jsonl"})
        assert isinstance(provider, JsonLinesProvider)
        assert provider.path == Path("/data/entries.jsonl")

    def test_python_callable(self):
        provider = build_provider({"type": "python", "target": f"{__name__}:catalog_entries"})
        assert isinstance(provider, CallableProvider)
        assert provider.get_entries() == ["/from-python"]

    def test_python_class(self):
        provider = build_provider({"type": "python", "target": f"{__name__}:CatalogProvider"})
        assert isinstance(provider, CatalogProvider)

    @pytest.mark.parametrize("spec", [
        {"type": "sql"},
        {"type": "urls"},
        {"type": "python", "target": "no_colon"},
        {"type": "python", "target": "sitemapkit_missing_module:x"},
        {"type": "python", "target": "sitemapkit.core.types:NOT_THERE"},
    ])
    def test_invalid_specs(self, spec):
        with pytest.raises(ConfigurationError):
            build_provider(spec)

    def test_build_providers_order(self, tmp_path):
        providers = build_providers([
            {"type": "urls", "path": "a.txt"},
            {"type": "jsonl", "path": "b.jsonl"},
        ], base_dir=tmp_path)
        assert [type(p) for p in providers] == [UrlListProvider, JsonLinesProvider]
