# sitemapkit - Sharded Sitemap Generator
"""
sitemapkit: sharded sitemap generation with incremental change tracking

Turns any number of URL providers into size-bounded sitemap documents plus
a sitemap index, and keeps them current from an append-only change log.
"""

__version__ = "0.1.0"

from sitemapkit.core import (
    ChangeFrequency,
    ChangeType,
    DiffCalculator,
    DiffResult,
    GenerationResult,
    IncrementalGenerator,
    SitemapChange,
    SitemapEntry,
    SitemapGenerator,
    SitemapIndex,
    SitemapIndexEntry,
    SitemapStream,
)
from sitemapkit.errors import (
    ChangeLogError,
    ConfigurationError,
    SitemapError,
    StorageError,
    ValidationError,
)

__all__ = [
    "__version__",
    # Core
    "ChangeFrequency",
    "ChangeType",
    "DiffCalculator",
    "DiffResult",
    "GenerationResult",
    "IncrementalGenerator",
    "SitemapChange",
    "SitemapEntry",
    "SitemapGenerator",
    "SitemapIndex",
    "SitemapIndexEntry",
    "SitemapStream",
    # Errors
    "SitemapError",
    "ChangeLogError",
    "ConfigurationError",
    "StorageError",
    "ValidationError",
    # Facade
    "SitemapKit",
    "SitemapConfig",
]


# Lazy imports for the composition layer
def __getattr__(name):
    """Lazy import for the facade and its config."""
    if name in ("SitemapKit", "SitemapConfig"):
        from sitemapkit.api import SitemapConfig, SitemapKit
        return SitemapKit if name == "SitemapKit" else SitemapConfig
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
