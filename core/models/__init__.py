# Path: core/models/__init__.py
# Purpose: Package initializer for domain model definitions.
# Layer: core/models.
# Details: Exposes dataclasses used across caching, embedding, indexing, and query layers.

from .domain import (
    BytesSource,
    CacheEntry,
    Cluster,
    FileSource,
    IndexingProgress,
    MediaItem,
    MediaKind,
    MediaSource,
    SessionEmbeddingIndex,
    SimilarityMatch,
)

__all__ = [
    "BytesSource",
    "CacheEntry",
    "Cluster",
    "FileSource",
    "IndexingProgress",
    "MediaItem",
    "MediaKind",
    "MediaSource",
    "SessionEmbeddingIndex",
    "SimilarityMatch",
]
