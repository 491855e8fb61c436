# sitemapkit Observability Module
"""
sitemapkit.observability - 生成パスの計測とロギング設定

生成パスごとに ``GenerationSpan`` を1つ記録し、エクスポーターに渡す。
カウンタとタイマーは ``MetricsCollector`` に集計される。

Example:
    >>> obs, exporter = Observability.create_for_testing()
    >>> generator = SitemapGenerator(..., observability=obs)
    >>> await generator.run()
    >>> exporter.spans[0].shards
    ['sitemap-1.xml', 'sitemap-2.xml']
    >>> obs.metrics.get_counter("entries")
    75000.0
"""

from __future__ import annotations

import logging
import sys
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generator

__all__ = [
    "LogLevel",
    "ObservabilityConfig",
    "GenerationSpan",
    "SpanExporter",
    "LoggingExporter",
    "InMemoryExporter",
    "MetricsCollector",
    "Observability",
    "configure_logging",
]

logger = logging.getLogger(__name__)


# ============================================================
# Config
# ============================================================


class LogLevel(Enum):
    """ログレベル"""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    def to_logging_level(self) -> int:
        """Python logging レベルに変換"""
        return getattr(logging, self.name)


@dataclass
class ObservabilityConfig:
    """Observability設定

    Attributes:
        log_level: パッケージロガーのレベル
        log_format: ログフォーマット
        log_to_file: ログ出力先ファイル（None で stderr のみ）
        metrics_enabled: カウンタ・タイマーを集計するか
        metrics_prefix: メトリクス名のプレフィックス
    """

    log_level: LogLevel = LogLevel.INFO
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_to_file: str | None = None
    metrics_enabled: bool = True
    metrics_prefix: str = "sitemapkit"


# ============================================================
# Generation Span
# ============================================================


@dataclass
class GenerationSpan:
    """1回の生成パスの記録"""

    filename: str
    providers: int = 0
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None
    entries: int = 0
    shards: list[str] = field(default_factory=list)
    shard_sizes: list[int] = field(default_factory=list)
    error: str | None = None

    @property
    def duration_ms(self) -> float:
        """経過時間(ms)"""
        end = self.finished_at or time.time()
        return (end - self.started_at) * 1000

    @property
    def succeeded(self) -> bool:
        """インデックスまで書き込めたか"""
        return self.finished_at is not None and self.error is None

    def record_shard(self, filename: str, entry_count: int) -> None:
        """書き出したシャードを記録"""
        self.shards.append(filename)
        self.shard_sizes.append(entry_count)
        self.entries += entry_count

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "filename": self.filename,
            "providers": self.providers,
            "entries": self.entries,
            "shards": list(self.shards),
            "shard_sizes": list(self.shard_sizes),
            "duration_ms": self.duration_ms,
            "succeeded": self.succeeded,
            "error": self.error,
        }


# ============================================================
# Exporters
# ============================================================


class SpanExporter(ABC):
    """生成スパンのエクスポーター"""

    @abstractmethod
    def export(self, span: GenerationSpan) -> None:
        """完了したスパンを受け取る"""
        ...


class LoggingExporter(SpanExporter):
    """スパンの要約をロガーに出力"""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def export(self, span: GenerationSpan) -> None:
        if span.succeeded:
            self.log.info(
                f"Generation of {span.filename} finished: {span.entries} entries, "
                f"{len(span.shards)} shards ({span.duration_ms:.1f}ms)"
            )
        else:
            self.log.warning(
                f"Generation of {span.filename} failed after {len(span.shards)} shards: "
                f"{span.error}"
            )


class InMemoryExporter(SpanExporter):
    """インメモリエクスポーター（テスト用）"""

    def __init__(self):
        self.spans: list[GenerationSpan] = []

    def export(self, span: GenerationSpan) -> None:
        self.spans.append(span)


# ============================================================
# Metrics
# ============================================================


class MetricsCollector:
    """カウンタとタイマーの集計

    名前には ``metrics_prefix`` が付く（``entries`` -> ``sitemapkit.entries``）。
    """

    def __init__(self, config: ObservabilityConfig | None = None):
        self.config = config or ObservabilityConfig()
        self._counters: dict[str, float] = {}
        self._timings: dict[str, list[float]] = {}

    def _metric_name(self, name: str) -> str:
        return f"{self.config.metrics_prefix}.{name}"

    def increment(self, name: str, value: float = 1.0) -> None:
        """カウンタをインクリメント"""
        if not self.config.metrics_enabled:
            return
        full_name = self._metric_name(name)
        self._counters[full_name] = self._counters.get(full_name, 0.0) + value

    def timer(self, name: str, value_ms: float) -> None:
        """所要時間(ms)を記録"""
        if not self.config.metrics_enabled:
            return
        self._timings.setdefault(self._metric_name(name), []).append(value_ms)

    def get_counter(self, name: str) -> float:
        """カウンタ値を取得"""
        return self._counters.get(self._metric_name(name), 0.0)

    def get_timings(self, name: str) -> list[float]:
        """記録済みの所要時間を取得"""
        return list(self._timings.get(self._metric_name(name), []))

    def snapshot(self) -> dict[str, Any]:
        """全メトリクスのスナップショット"""
        return {
            "counters": dict(self._counters),
            "timings": {k: list(v) for k, v in self._timings.items()},
        }


# ============================================================
# Observability Manager
# ============================================================


class Observability:
    """生成パスの計測

    ``generation()`` のブロックを抜けた時点でスパンを閉じ、
    エクスポートとメトリクス集計を行う。

    記録するメトリクス:
        - ``generations`` / ``generations.failed``
        - ``entries`` / ``shards``（成功したパスのみ）
        - ``generate.duration_ms``（タイマー）
    """

    def __init__(
        self,
        config: ObservabilityConfig | None = None,
        exporter: SpanExporter | None = None,
    ):
        self.config = config or ObservabilityConfig()
        self.exporter = exporter or LoggingExporter()
        self.metrics = MetricsCollector(self.config)

    @classmethod
    def create_for_testing(cls) -> tuple["Observability", InMemoryExporter]:
        """テスト用Observabilityを作成"""
        exporter = InMemoryExporter()
        return cls(exporter=exporter), exporter

    @contextmanager
    def generation(
        self,
        filename: str,
        providers: int = 0,
    ) -> Generator[GenerationSpan, None, None]:
        """生成パスを計測（コンテキストマネージャ）

        Args:
            filename: インデックスのファイル名
            providers: プロバイダ数

        Yields:
            GenerationSpan
        """
        span = GenerationSpan(filename=filename, providers=providers)
        try:
            yield span
        except Exception as e:
            span.error = f"{type(e).__name__}: {e}"
            raise
        finally:
            span.finished_at = time.time()
            self._record(span)
            self.exporter.export(span)

    def _record(self, span: GenerationSpan) -> None:
        self.metrics.increment("generations")
        if not span.succeeded:
            self.metrics.increment("generations.failed")
            return
        self.metrics.increment("entries", span.entries)
        self.metrics.increment("shards", len(span.shards))
        self.metrics.timer("generate.duration_ms", span.duration_ms)


# ============================================================
# Logging setup
# ============================================================


def configure_logging(
    config: ObservabilityConfig | None = None,
    name: str = "sitemapkit",
) -> logging.Logger:
    """パッケージロガーにハンドラを設定

    ハンドラが未設定の場合のみ追加する。

    Args:
        config: Observability設定
        name: ロガー名

    Returns:
        設定済みロガー
    """
    config = config or ObservabilityConfig()
    package_logger = logging.getLogger(name)
    package_logger.setLevel(config.log_level.to_logging_level())

    if not package_logger.handlers:
        formatter = logging.Formatter(config.log_format)

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

        if config.log_to_file:
            file_handler = logging.FileHandler(config.log_to_file)
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

    return package_logger
