# Path: core/cache/__init__.py
# Purpose: Package initializer for embedding cache interfaces and implementations.
# Layer: core/cache.
# Details: Exposes the cache contract, its backends, and a factory that degrades to uncached operation.

from __future__ import annotations

from config.logging_config import get_logger
from config.settings import CacheSettings
from core.errors import StorageUnavailable

from .base import EmbeddingCache
from .memory_cache import MemoryEmbeddingCache, NullEmbeddingCache
from .sqlite_cache import SqliteEmbeddingCache

logger = get_logger(__name__)


def open_embedding_cache(settings: CacheSettings) -> EmbeddingCache:
    """Open the persistent cache described by ``settings``.

    Falls back to :class:`NullEmbeddingCache` when caching is disabled or the
    backend cannot be opened, so the session keeps working uncached.
    """

    if not settings.enabled:
        logger.info("Embedding cache disabled by configuration; running uncached")
        return NullEmbeddingCache()
    try:
        return SqliteEmbeddingCache(settings.path)
    except StorageUnavailable as exc:
        logger.warning("Embedding cache unavailable, continuing without it: %s", exc)
        return NullEmbeddingCache()


__all__ = [
    "EmbeddingCache",
    "MemoryEmbeddingCache",
    "NullEmbeddingCache",
    "SqliteEmbeddingCache",
    "open_embedding_cache",
]
