# Path: core/cache/memory_cache.py
# Purpose: Provide process-local EmbeddingCache implementations.
# Layer: core/cache.
# Details: MemoryEmbeddingCache keeps entries in a dict; NullEmbeddingCache is the uncached fallback.

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from core.models.domain import CacheEntry

from .base import EmbeddingCache


class MemoryEmbeddingCache(EmbeddingCache):
    """Thread-safe in-memory cache; contents live as long as the instance."""

    def __init__(self) -> None:
        self.name = "memory"
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(path)

    def put(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.path] = entry

    def delete(self, path: str) -> None:
        with self._lock:
            self._entries.pop(path, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_all(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._entries.values())


class NullEmbeddingCache(EmbeddingCache):
    """Cache that never hits and drops writes; used when storage is unavailable or disabled."""

    def __init__(self) -> None:
        self.name = "null"

    def get(self, path: str) -> Optional[CacheEntry]:
        return None

    def put(self, entry: CacheEntry) -> None:
        return None

    def delete(self, path: str) -> None:
        return None

    def clear(self) -> None:
        return None

    def get_all(self) -> List[CacheEntry]:
        return []
