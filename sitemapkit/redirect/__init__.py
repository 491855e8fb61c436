"""Redirect Module.

リダイレクト規則の管理と、生成前のエントリへの適用。
"""

from sitemapkit.redirect.base import RedirectManager
from sitemapkit.redirect.handler import (
    RedirectHandler,
    RedirectingProvider,
    RedirectStrategy,
)
from sitemapkit.redirect.memory import (
    DEFAULT_MAX_RULES,
    MemoryRedirectManager,
    load_redirect_rules,
)

__all__ = [
    "RedirectManager",
    "MemoryRedirectManager",
    "RedirectHandler",
    "RedirectingProvider",
    "RedirectStrategy",
    "load_redirect_rules",
    "DEFAULT_MAX_RULES",
]
