# Path: core/session.py
# Purpose: Tie one loaded collection to its session embedding index and the query operations on it.
# Layer: core.
# Details: Loading a new collection discards the index; late results for an older collection are dropped.

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from config.logging_config import get_logger
from config.settings import AppSettings
from core.cache import EmbeddingCache, open_embedding_cache
from core.clustering.themes import cluster_by_theme
from core.embedders.engine import EmbeddingEngine, get_embedding_engine
from core.errors import AIUnavailable
from core.frames.extractor import FrameExtractor, MediaFrameExtractor
from core.indexing.batch_indexer import BatchIndexer, ItemErrorCallback, ProgressCallback
from core.indexing.scanner import MediaScanner
from core.models.domain import Cluster, MediaItem, SessionEmbeddingIndex, SimilarityMatch
from core.similarity.vectors import find_similar, rank_by_similarity

logger = get_logger(__name__)


class MediaSession:
    """High-level service bridging a UI collaborator with the indexing and query layers."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        cache: Optional[EmbeddingCache] = None,
        engine: Optional[EmbeddingEngine] = None,
        extractor: Optional[FrameExtractor] = None,
    ) -> None:
        self.settings = settings or AppSettings()
        self.cache = cache if cache is not None else open_embedding_cache(self.settings.cache)
        self.engine = engine if engine is not None else get_embedding_engine(self.settings.embedder)
        self.extractor = extractor or MediaFrameExtractor(self.settings.indexing.max_video_sample_seconds)
        self.indexer = BatchIndexer(self.cache, self.engine, self.extractor, workers=self.settings.indexing.workers)

        self._lock = threading.Lock()
        self._items: List[MediaItem] = []
        self._by_path: Dict[str, MediaItem] = {}
        self._index: Optional[SessionEmbeddingIndex] = None
        self._generation = 0
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def ai_enabled(self) -> bool:
        return self.settings.ai_enabled

    @property
    def items(self) -> List[MediaItem]:
        return list(self._items)

    @property
    def index(self) -> Optional[SessionEmbeddingIndex]:
        return self._index

    def load(self, items: Iterable[MediaItem]) -> None:
        """Replace the collection; the previous session index is discarded."""

        items = list(items)
        with self._lock:
            self._generation += 1
            self._items = items
            self._by_path = {item.path: item for item in items}
            self._index = None
        logger.info("Loaded collection with %d items", len(items))

    def load_folder(self, folder: Path | str, recursive: bool = True) -> List[MediaItem]:
        """Scan ``folder`` for media and load the result as the collection."""

        items = MediaScanner(Path(folder), recursive=recursive).scan()
        self.load(items)
        return items

    def get_item(self, path: str) -> MediaItem:
        try:
            return self._by_path[path]
        except KeyError:
            raise KeyError(f"Unknown media path: {path}") from None

    def build_index(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_item_error: Optional[ItemErrorCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SessionEmbeddingIndex:
        """Index the current collection and keep the result as the session index."""

        if not self.ai_enabled:
            raise AIUnavailable("AI features are turned off in settings; enable them to find similar items.")

        with self._lock:
            generation = self._generation
            items = list(self._items)

        index = self.indexer.run(items, on_progress=on_progress, on_item_error=on_item_error, cancel_event=cancel_event)

        with self._lock:
            if generation == self._generation:
                self._index = index
            else:
                logger.info("Discarding index built for a collection that is no longer loaded")
        return index

    def index_async(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_item_error: Optional[ItemErrorCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "Future[SessionEmbeddingIndex]":
        """Run :meth:`build_index` on the session's background worker."""

        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="session-index")
            executor = self._executor
        return executor.submit(self.build_index, on_progress, on_item_error, cancel_event)

    def _require_index(self) -> SessionEmbeddingIndex:
        if not self.ai_enabled:
            raise AIUnavailable("AI features are turned off in settings; enable them to find similar items.")
        index = self._index
        if index is None:
            raise AIUnavailable("The collection has not been indexed yet; run indexing first.")
        if len(index) == 0:
            if index.ai_disabled:
                raise AIUnavailable(
                    "The embedding model could not be loaded; similarity features are unavailable.",
                    cause=index.load_error,
                )
            raise AIUnavailable("No item in this collection could be analysed; similarity features are unavailable.")
        return index

    def rank_similar(self, path: str, top_k: Optional[int] = None) -> List[SimilarityMatch]:
        """Return items ranked by similarity to ``path``, the item itself excluded."""

        index = self._require_index()
        target = self.get_item(path)
        return rank_by_similarity(target, self._items, index, top_k=top_k)

    def find_similar(self, path: str, top_k: Optional[int] = None) -> List[MediaItem]:
        """Return the item at ``path`` followed by its most similar items."""

        index = self._require_index()
        target = self.get_item(path)
        return find_similar(target, self._items, index, top_k=top_k)

    def cluster(self, seed: Optional[int] = None) -> List[Cluster]:
        """Group the indexed collection into themes."""

        index = self._require_index()
        return cluster_by_theme(self._items, index, seed=seed, settings=self.settings.clustering)

    def clear_cache(self) -> None:
        """Drop every persisted embedding; the current session index is left untouched."""

        self.cache.clear()

    def close(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
