# sitemapkit API Base Types
"""
sitemapkit.api.base - API 基本型定義
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from sitemapkit.core.generator import DEFAULT_FILENAME, DEFAULT_MAX_ENTRIES_PER_FILE
from sitemapkit.errors import ConfigurationError
from sitemapkit.redirect import RedirectStrategy
from sitemapkit.redirect.base import DEFAULT_MAX_CHAIN_LENGTH


class SitemapMode(Enum):
    """動作モード"""

    DYNAMIC = "dynamic"  # リクエスト時に生成して配信
    STATIC = "static"  # ビルド時にファイルへ出力


@dataclass
class RedirectConfig:
    """リダイレクト設定

    Attributes:
        rules: 規則ファイル（YAML/JSON）のパス
        strategy: 適用戦略
        follow_chains: 規則の連鎖を最終転送先まで辿るか
        max_chain_length: 辿る最大ホップ数
    """

    rules: Path | None = None
    strategy: str = RedirectStrategy.REMOVE_OLD_ADD_NEW.value
    follow_chains: bool = False
    max_chain_length: int = DEFAULT_MAX_CHAIN_LENGTH

    def __post_init__(self):
        if isinstance(self.rules, str):
            self.rules = Path(self.rules)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RedirectConfig:
        """辞書から作成"""
        rules = data.get("rules")
        return cls(
            rules=Path(rules) if rules else None,
            strategy=data.get("strategy", RedirectStrategy.REMOVE_OLD_ADD_NEW.value),
            follow_chains=bool(data.get("follow_chains", False)),
            max_chain_length=data.get("max_chain_length", DEFAULT_MAX_CHAIN_LENGTH),
        )

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "rules": str(self.rules) if self.rules else None,
            "strategy": self.strategy,
            "follow_chains": self.follow_chains,
            "max_chain_length": self.max_chain_length,
        }

    def validate(self) -> None:
        """設定値を検証"""
        valid = [s.value for s in RedirectStrategy]
        if self.strategy not in valid:
            raise ConfigurationError(
                f"Unknown redirect strategy: {self.strategy!r} "
                f"(expected one of {', '.join(valid)})",
                field="redirects.strategy",
            )
        if (
            not isinstance(self.max_chain_length, int)
            or isinstance(self.max_chain_length, bool)
            or self.max_chain_length < 1
        ):
            raise ConfigurationError(
                f"max_chain_length must be a positive integer, got {self.max_chain_length!r}",
                field="redirects.max_chain_length",
            )


@dataclass
class SitemapConfig:
    """sitemapkit 設定"""

    # 基本設定
    base_url: str = "http://localhost"
    output_path: Path = field(default_factory=lambda: Path("./public"))
    filename: str = DEFAULT_FILENAME

    # 生成設定
    max_entries_per_file: int = DEFAULT_MAX_ENTRIES_PER_FILE
    pretty: bool = False

    # ライブ配信設定
    path: str = "/sitemap.xml"
    cache_seconds: int | None = None

    # 変更ログ設定
    change_log: Path | None = None
    auto_track: bool = False

    # リダイレクト設定
    redirects: RedirectConfig | None = None

    # プロバイダ定義（{type: urls|jsonl|python, ...}）
    providers: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        """パス変換"""
        if isinstance(self.output_path, str):
            self.output_path = Path(self.output_path)
        if isinstance(self.change_log, str):
            self.change_log = Path(self.change_log)
        if isinstance(self.redirects, dict):
            self.redirects = RedirectConfig.from_dict(self.redirects)

    def validate(self) -> None:
        """設定値を検証

        Raises:
            ConfigurationError: 不正な値がある場合
        """
        if not self.base_url:
            raise ConfigurationError("base_url must not be empty", field="base_url")
        if (
            not isinstance(self.max_entries_per_file, int)
            or isinstance(self.max_entries_per_file, bool)
            or self.max_entries_per_file <= 0
        ):
            raise ConfigurationError(
                f"max_entries_per_file must be a positive integer, "
                f"got {self.max_entries_per_file!r}",
                field="max_entries_per_file",
            )
        if not self.filename.endswith(".xml"):
            raise ConfigurationError(
                f"filename must end with .xml, got {self.filename!r}",
                field="filename",
            )
        if not self.path.startswith("/"):
            raise ConfigurationError(
                f"path must start with '/', got {self.path!r}",
                field="path",
            )
        if self.cache_seconds is not None and self.cache_seconds < 0:
            raise ConfigurationError(
                "cache_seconds must not be negative",
                field="cache_seconds",
            )
        if self.redirects is not None:
            self.redirects.validate()

    @property
    def index_filename(self) -> str:
        """ライブ配信時のインデックスファイル名"""
        return self.path.rsplit("/", 1)[-1] or DEFAULT_FILENAME


@dataclass
class SitemapResponse:
    """ライブエンドポイントの応答"""

    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """成功応答か"""
        return 200 <= self.status < 300
