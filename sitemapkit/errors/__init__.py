"""sitemapkit errors.

生成処理はコラボレータ（プロバイダ、ストレージ、変更ログ）の例外を
そのまま呼び出し元に伝播する。ここで定義する例外は入力検証と
参照実装アダプタ（ディスク、JSON Lines 変更ログ、リダイレクト規則）で送出する。

ライブエンドポイントは ``ErrorHandler`` で失敗を記録してから 500 を返す。

Example:
    >>> from sitemapkit.errors import ErrorHandler, ValidationError
    >>>
    >>> raise ValidationError("Sitemap entry is missing 'url'", field="url")
    >>>
    >>> handler = ErrorHandler()
    >>> try:
    ...     await generator.run()
    ... except Exception as e:
    ...     handler.handle(e, component="endpoint", operation="handle", reraise=False)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

__all__ = [
    "ErrorSeverity",
    "SitemapError",
    "ConfigurationError",
    "ValidationError",
    "StorageError",
    "ChangeLogError",
    "ErrorHandler",
]


# ============================================================
# Severity
# ============================================================


class ErrorSeverity(str, Enum):
    """エラー重要度"""

    WARNING = "warning"
    ERROR = "error"

    def to_logging_level(self) -> int:
        """ロギングレベルに変換"""
        if self is ErrorSeverity.WARNING:
            return logging.WARNING
        return logging.ERROR


# ============================================================
# Exceptions
# ============================================================


class SitemapError(Exception):
    """sitemapkit 基底例外

    Attributes:
        message: エラーメッセージ
        code: エラーコード
        severity: 重要度
        cause: 原因となった例外
        component: 発生箇所（generator, endpoint, storage ...）
        operation: 実行中の操作
        details: シャード名やパスなどの補足情報
    """

    default_code: str = "SITEMAP_ERROR"
    default_severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        severity: ErrorSeverity | None = None,
        cause: Exception | None = None,
        component: str | None = None,
        operation: str | None = None,
        **details: Any,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.severity = severity or self.default_severity
        self.cause = cause
        self.component = component
        self.operation = operation
        self.details: dict[str, Any] = dict(details)

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.component:
            where = self.component
            if self.operation:
                where += f".{self.operation}"
            text += f" (in {where})"
        if self.cause:
            text += f" caused by: {self.cause}"
        return text

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "severity": self.severity.value,
            "component": self.component,
            "operation": self.operation,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }

    @classmethod
    def wrap(cls, exc: Exception, message: str | None = None, **kwargs: Any) -> "SitemapError":
        """既存の例外を包む"""
        return cls(message or str(exc), cause=exc, **kwargs)


class ConfigurationError(SitemapError):
    """設定ファイルの不備、または Facade のモード違いの呼び出し"""

    default_code = "CONFIG_ERROR"


class ValidationError(SitemapError):
    """エントリ・変更レコード・リダイレクト規則の検証失敗"""

    default_code = "VALIDATION_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = repr(value)[:100]


class StorageError(SitemapError):
    """サイトマップファイルの読み書き失敗"""

    default_code = "STORAGE_ERROR"

    def __init__(self, message: str, path: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        if path:
            self.details["path"] = path


class ChangeLogError(SitemapError):
    """変更ログの保存・読み込み失敗"""

    default_code = "CHANGE_LOG_ERROR"


# ============================================================
# Error Handler
# ============================================================


class ErrorHandler:
    """エラーのログ記録と集計

    SitemapError 以外の例外は ``SitemapError`` に包んでから扱う。

    Example:
        >>> handler = ErrorHandler()
        >>> handler.handle(OSError("disk full"), component="endpoint", reraise=False)
        >>> handler.get_stats()["by_code"]
        {'SITEMAP_ERROR': 1}
    """

    def __init__(self, logger: logging.Logger | None = None, log_errors: bool = True):
        self.logger = logger or logging.getLogger("sitemapkit.errors")
        self.log_errors = log_errors
        self._counts: dict[str, int] = {}
        self._last_error: SitemapError | None = None

    def handle(
        self,
        error: Exception,
        component: str | None = None,
        operation: str | None = None,
        reraise: bool = True,
        **context: Any,
    ) -> SitemapError:
        """エラーを処理

        Args:
            error: 処理するエラー
            component: 発生箇所
            operation: 操作名
            reraise: 変換後のエラーを送出するか
            **context: 補足情報（リクエストパスなど）

        Returns:
            変換された SitemapError

        Raises:
            SitemapError: reraise=True の場合
        """
        if isinstance(error, SitemapError):
            sitemap_error = error
            sitemap_error.component = component or sitemap_error.component
            sitemap_error.operation = operation or sitemap_error.operation
            sitemap_error.details.update(context)
        else:
            sitemap_error = SitemapError.wrap(
                error,
                component=component,
                operation=operation,
                **context,
            )

        if self.log_errors:
            self.logger.log(
                sitemap_error.severity.to_logging_level(),
                str(sitemap_error),
                exc_info=sitemap_error.cause or sitemap_error,
            )

        self._counts[sitemap_error.code] = self._counts.get(sitemap_error.code, 0) + 1
        self._last_error = sitemap_error

        if reraise:
            if sitemap_error is error:
                raise sitemap_error
            raise sitemap_error from error
        return sitemap_error

    def get_stats(self) -> dict[str, Any]:
        """集計を取得"""
        return {
            "total_errors": sum(self._counts.values()),
            "by_code": dict(self._counts),
            "last_error": self._last_error.to_dict() if self._last_error else None,
        }
