"""Tests for sitemapkit errors.

Exception classes and ErrorHandler tests.
"""

import logging

import pytest

from sitemapkit.errors import (
    ChangeLogError,
    ConfigurationError,
    ErrorHandler,
    ErrorSeverity,
    SitemapError,
    StorageError,
    ValidationError,
)


# ============================================================
# Exception Tests
# ============================================================


class TestSitemapError:
    """SitemapError tests."""

    def test_defaults(self):
        error = SitemapError("boom")
        assert error.code == "SITEMAP_ERROR"
        assert error.severity == ErrorSeverity.ERROR
        assert error.details == {}

    def test_str_includes_location(self):
        error = SitemapError("boom", component="endpoint", operation="handle")
        assert str(error) == "[SITEMAP_ERROR] boom (in endpoint.handle)"

    def test_details_from_kwargs(self):
        error = SitemapError("boom", shard="sitemap-2.xml")
        assert error.details == {"shard": "sitemap-2.xml"}

    def test_wrap(self):
        cause = OSError("disk full")
        error = StorageError.wrap(cause, path="/out/sitemap-1.xml")
        assert isinstance(error, StorageError)
        assert error.cause is cause
        assert error.details["path"] == "/out/sitemap-1.xml"
        assert "caused by: disk full" in str(error)

    def test_to_dict(self):
        data = ConfigurationError("bad", component="facade").to_dict()
        assert data["error_type"] == "ConfigurationError"
        assert data["code"] == "CONFIG_ERROR"
        assert data["component"] == "facade"


class TestSpecificErrors:
    """Subclass tests."""

    def test_validation_error(self):
        error = ValidationError("missing url", field="url", value={"priority": 1})
        assert error.severity == ErrorSeverity.WARNING
        assert error.details["field"] == "url"
        assert "priority" in error.details["value"]

    def test_storage_error_path(self):
        error = StorageError("write failed", path="/tmp/sitemap.xml")
        assert error.code == "STORAGE_ERROR"
        assert error.details["path"] == "/tmp/sitemap.xml"

    def test_change_log_error(self):
        assert ChangeLogError("x").code == "CHANGE_LOG_ERROR"

    def test_hierarchy(self):
        for cls in (ConfigurationError, ValidationError, StorageError, ChangeLogError):
            assert issubclass(cls, SitemapError)


# ============================================================
# ErrorHandler Tests
# ============================================================


class TestErrorHandler:
    """ErrorHandler tests."""

    def test_reraise_chains_cause(self):
        handler = ErrorHandler(log_errors=False)
        with pytest.raises(SitemapError) as exc_info:
            handler.handle(RuntimeError("boom"), component="endpoint")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_wraps_plain_exception(self):
        handler = ErrorHandler(log_errors=False)
        error = handler.handle(RuntimeError("boom"), component="endpoint", reraise=False)
        assert isinstance(error, SitemapError)
        assert error.component == "endpoint"
        assert isinstance(error.cause, RuntimeError)

    def test_keeps_sitemap_error(self):
        handler = ErrorHandler(log_errors=False)
        original = StorageError("write failed", component="storage")
        error = handler.handle(original, operation="generate", reraise=False, path="/x")
        assert error is original
        assert error.component == "storage"
        assert error.operation == "generate"
        assert error.details["path"] == "/x"

    def test_stats_by_code(self):
        handler = ErrorHandler(log_errors=False)
        handler.handle(StorageError("a"), reraise=False)
        handler.handle(StorageError("b"), reraise=False)
        handler.handle(ValidationError("c"), reraise=False)

        stats = handler.get_stats()
        assert stats["by_code"] == {"STORAGE_ERROR": 2, "VALIDATION_ERROR": 1}
        assert stats["total_errors"] == 3
        assert stats["last_error"]["message"] == "c"

    def test_empty_stats(self):
        assert ErrorHandler().get_stats() == {
            "total_errors": 0,
            "by_code": {},
            "last_error": None,
        }

    def test_logs_at_severity(self, caplog):
        handler = ErrorHandler()
        with caplog.at_level(logging.WARNING, logger="sitemapkit.errors"):
            handler.handle(ValidationError("bad entry"), reraise=False)
        assert any(
            r.levelno == logging.WARNING and "bad entry" in r.getMessage()
            for r in caplog.records
        )
