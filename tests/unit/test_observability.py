"""Tests for Observability module.

Generation spans, metrics and logging setup tests.
"""

import logging

import pytest

from sitemapkit.observability import (
    GenerationSpan,
    InMemoryExporter,
    LoggingExporter,
    LogLevel,
    MetricsCollector,
    Observability,
    ObservabilityConfig,
    configure_logging,
)


# ============================================================
# GenerationSpan Tests
# ============================================================


class TestGenerationSpan:
    """GenerationSpan tests."""

    def test_record_shard(self):
        span = GenerationSpan(filename="sitemap.xml")
        span.record_shard("sitemap-1.xml", 50000)
        span.record_shard("sitemap-2.xml", 12)

        assert span.entries == 50012
        assert span.shards == ["sitemap-1.xml", "sitemap-2.xml"]
        assert span.shard_sizes == [50000, 12]

    def test_not_succeeded_until_finished(self):
        span = GenerationSpan(filename="sitemap.xml")
        assert not span.succeeded
        span.finished_at = span.started_at + 0.5
        assert span.succeeded
        assert span.duration_ms == pytest.approx(500)

    def test_to_dict(self):
        span = GenerationSpan(filename="pages.xml", providers=2)
        span.record_shard("pages-1.xml", 3)
        data = span.to_dict()
        assert data["filename"] == "pages.xml"
        assert data["shards"] == ["pages-1.xml"]
        assert data["succeeded"] is False


# ============================================================
# Observability Tests
# ============================================================


class TestObservability:
    """Observability tests."""

    def test_generation_success(self):
        obs, exporter = Observability.create_for_testing()

        with obs.generation("sitemap.xml", providers=1) as span:
            span.record_shard("sitemap-1.xml", 2)

        assert exporter.spans == [span]
        assert span.succeeded
        assert obs.metrics.get_counter("generations") == 1
        assert obs.metrics.get_counter("entries") == 2
        assert obs.metrics.get_counter("shards") == 1

    def test_generation_failure(self):
        obs, exporter = Observability.create_for_testing()

        with pytest.raises(OSError):
            with obs.generation("sitemap.xml"):
                raise OSError("bucket unreachable")

        span = exporter.spans[0]
        assert span.error == "OSError: bucket unreachable"
        assert obs.metrics.get_counter("generations.failed") == 1
        assert obs.metrics.get_timings("generate.duration_ms") == []

    def test_default_exporter_logs(self, caplog):
        obs = Observability()
        assert isinstance(obs.exporter, LoggingExporter)

        with caplog.at_level(logging.INFO, logger="sitemapkit.observability"):
            with obs.generation("sitemap.xml") as span:
                span.record_shard("sitemap-1.xml", 4)

        assert any("4 entries, 1 shards" in r.getMessage() for r in caplog.records)


class TestMetricsCollector:
    """MetricsCollector tests."""

    def test_prefixed_names(self):
        metrics = MetricsCollector(ObservabilityConfig(metrics_prefix="site"))
        metrics.increment("entries", 5)
        metrics.timer("generate.duration_ms", 12.5)

        snapshot = metrics.snapshot()
        assert snapshot["counters"] == {"site.entries": 5.0}
        assert snapshot["timings"] == {"site.generate.duration_ms": [12.5]}

    def test_disabled(self):
        metrics = MetricsCollector(ObservabilityConfig(metrics_enabled=False))
        metrics.increment("entries")
        metrics.timer("generate.duration_ms", 1.0)
        assert metrics.get_counter("entries") == 0.0
        assert metrics.get_timings("generate.duration_ms") == []


def test_in_memory_exporter():
    exporter = InMemoryExporter()
    span = GenerationSpan(filename="sitemap.xml")
    exporter.export(span)
    assert exporter.spans == [span]


# ============================================================
# Logging setup Tests
# ============================================================


class TestConfigureLogging:
    """configure_logging tests."""

    def test_sets_level_and_single_handler(self):
        name = "sitemapkit.tests.logging"
        log = configure_logging(ObservabilityConfig(log_level=LogLevel.DEBUG), name=name)
        configure_logging(ObservabilityConfig(log_level=LogLevel.WARNING), name=name)

        assert log.level == logging.WARNING
        assert len(log.handlers) == 1
        log.handlers.clear()

    def test_log_to_file(self, tmp_path):
        name = "sitemapkit.tests.file"
        path = tmp_path / "sitemapkit.log"
        log = configure_logging(ObservabilityConfig(log_to_file=str(path)), name=name)

        log.info("Generated sitemap.xml")
        for handler in log.handlers:
            handler.flush()

        assert "Generated sitemap.xml" in path.read_text()
        for handler in list(log.handlers):
            handler.close()
            log.removeHandler(handler)
