# Path: core/cache/base.py
# Purpose: Define the EmbeddingCache interface for persisting embeddings keyed by media path.
# Layer: core/cache.
# Details: Lookups are by identity only; freshness against last_modified is the caller's decision.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from core.models.domain import CacheEntry


class EmbeddingCache(ABC):
    """Abstract base class for pluggable embedding cache backends.

    Writes replace the entry for a path wholesale; entries are removed only by
    :meth:`delete` or :meth:`clear`. Backends signal an inaccessible store with
    :class:`core.errors.StorageUnavailable`.
    """

    name: str

    @abstractmethod
    def get(self, path: str) -> Optional[CacheEntry]:
        """Return the cached entry for ``path`` if one exists."""

    @abstractmethod
    def put(self, entry: CacheEntry) -> None:
        """Insert or overwrite the entry keyed by ``entry.path``."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the entry for ``path``; missing entries are ignored."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every cached entry."""

    @abstractmethod
    def get_all(self) -> List[CacheEntry]:
        """Return every cached entry."""

    def get_many(self, paths: Iterable[str]) -> Dict[str, CacheEntry]:
        """Return entries for the given paths; paths without an entry are absent from the result."""

        found: Dict[str, CacheEntry] = {}
        for path in paths:
            entry = self.get(path)
            if entry is not None:
                found[path] = entry
        return found

    def count(self) -> int:
        """Return the number of cached entries."""

        return len(self.get_all())
