# Path: core/models/domain.py
# Purpose: Define domain models shared across caching, embedding, indexing, and query workflows.
# Layer: core/models.
# Details: Lightweight dataclasses keep the boundary with the UI collaborator plain and immutable.

from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import ContextManager, Dict, Iterator, List, Mapping, NamedTuple, Optional

import numpy as np


class MediaKind(str, Enum):
    """Kind of media an item holds."""

    IMAGE = "image"
    VIDEO = "video"


class MediaSource(ABC):
    """Opaque handle to the raw bytes of a media item.

    ``acquire`` yields a local file path that is only valid inside the ``with`` block.
    """

    @abstractmethod
    def acquire(self) -> ContextManager[Path]:
        """Return a context manager yielding a readable local path to the media bytes."""


class FileSource(MediaSource):
    """Media bytes that already live on the local filesystem."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @contextmanager
    def acquire(self) -> Iterator[Path]:
        yield self.path

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"


class BytesSource(MediaSource):
    """In-memory media bytes, spilled to a temporary file for the duration of an acquisition."""

    def __init__(self, data: bytes, suffix: str = "") -> None:
        self.data = data
        self.suffix = suffix

    @contextmanager
    def acquire(self) -> Iterator[Path]:
        fd, name = tempfile.mkstemp(suffix=self.suffix)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(self.data)
            yield Path(name)
        finally:
            try:
                os.unlink(name)
            except FileNotFoundError:
                pass

    def __repr__(self) -> str:
        return f"BytesSource({len(self.data)} bytes, suffix={self.suffix!r})"


@dataclass(frozen=True)
class MediaItem:
    """One image or video of the loaded collection; ``path`` is its identity."""

    path: str
    kind: MediaKind
    last_modified: int
    source: Optional[MediaSource] = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class CacheEntry:
    """Persisted embedding for one media path, valid while ``last_modified`` matches."""

    path: str
    last_modified: int
    embedding: np.ndarray = field(compare=False)
    representative_frame_ref: str = ""

    def is_fresh_for(self, item: MediaItem) -> bool:
        """Return True when this entry was produced from the item's current content."""

        return self.path == item.path and self.last_modified == item.last_modified


@dataclass
class IndexingProgress:
    """Counters for one indexing run."""

    total_count: int = 0
    processed_count: int = 0
    succeeded_count: int = 0
    failed_count: int = 0

    def record(self, succeeded: bool) -> None:
        self.processed_count += 1
        if succeeded:
            self.succeeded_count += 1
        else:
            self.failed_count += 1

    def snapshot(self) -> "IndexingProgress":
        return replace(self)

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total_count,
            "processed": self.processed_count,
            "succeeded": self.succeeded_count,
            "failed": self.failed_count,
        }


class SessionEmbeddingIndex(Mapping[str, np.ndarray]):
    """Read-only mapping from media path to embedding for one loaded collection.

    Besides the vectors it carries the outcome of the run that produced it.
    """

    def __init__(
        self,
        vectors: Optional[Mapping[str, np.ndarray]] = None,
        progress: Optional[IndexingProgress] = None,
        ai_disabled: bool = False,
        load_error: Optional[BaseException] = None,
        cancelled: bool = False,
        cache_available: bool = True,
    ) -> None:
        self._vectors: Dict[str, np.ndarray] = dict(vectors or {})
        self.progress = progress or IndexingProgress(
            total_count=len(self._vectors),
            processed_count=len(self._vectors),
            succeeded_count=len(self._vectors),
        )
        self.ai_disabled = ai_disabled
        self.load_error = load_error
        self.cancelled = cancelled
        self.cache_available = cache_available

    def __getitem__(self, path: str) -> np.ndarray:
        return self._vectors[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._vectors)

    def __len__(self) -> int:
        return len(self._vectors)

    @property
    def degraded(self) -> bool:
        """True when the run covered items but none of them produced an embedding."""

        return self.progress.total_count > 0 and len(self._vectors) == 0

    def __repr__(self) -> str:
        return (
            f"SessionEmbeddingIndex(size={len(self)}, progress={self.progress.to_dict()}, "
            f"ai_disabled={self.ai_disabled}, cancelled={self.cancelled})"
        )


@dataclass
class Cluster:
    """A group of thematically related items produced by one clustering run."""

    id: int
    label: str
    members: List[MediaItem] = field(default_factory=list)
    representative: Optional[MediaItem] = None
    centroid: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def size(self) -> int:
        return len(self.members)


class SimilarityMatch(NamedTuple):
    """A ranked candidate and its cosine similarity to the target."""

    item: MediaItem
    score: float
