# Path: core/indexing/batch_indexer.py
# Purpose: Build the session embedding index for a collection, cache first.
# Layer: core/indexing.
# Details: Per-item failures are reported and skipped; model and storage failures degrade the whole run once.

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from config.logging_config import get_logger
from core.cache.base import EmbeddingCache
from core.embedders.engine import EmbeddingEngine
from core.errors import EmbedFailed, FrameExtractionFailed, MediaItemError, ModelLoadFailed, StorageUnavailable
from core.frames.extractor import FrameExtractor, Still
from core.models.domain import CacheEntry, IndexingProgress, MediaItem, SessionEmbeddingIndex

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, int, int], None]
ItemErrorCallback = Callable[[MediaItem, Exception], None]


class BatchIndexer:
    """Turn a list of media items into a :class:`SessionEmbeddingIndex`.

    For each item the cache is consulted first; only missing or stale entries
    go through frame extraction and the embedding engine. ``workers > 1``
    processes items on a thread pool while progress stays aggregated in one
    place.
    """

    def __init__(
        self,
        cache: EmbeddingCache,
        engine: EmbeddingEngine,
        extractor: FrameExtractor,
        workers: int = 1,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.cache = cache
        self.engine = engine
        self.extractor = extractor
        self.workers = workers

    def run(
        self,
        items: Iterable[MediaItem],
        on_progress: Optional[ProgressCallback] = None,
        on_item_error: Optional[ItemErrorCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SessionEmbeddingIndex:
        """Index ``items`` and return the embeddings of those that succeeded.

        External calls:
        - core/cache/base.py::EmbeddingCache.get / put - reuse and persist embeddings.
        - core/frames/extractor.py::FrameExtractor.extract - obtain a still on cache miss.
        - core/embedders/engine.py::EmbeddingEngine.embed - embed the still.
        """

        indexing_run = _IndexingRun(self, list(items), on_progress, on_item_error, cancel_event)
        return indexing_run.execute()


class _IndexingRun:
    """State of one :meth:`BatchIndexer.run` call."""

    def __init__(
        self,
        indexer: BatchIndexer,
        items: List[MediaItem],
        on_progress: Optional[ProgressCallback],
        on_item_error: Optional[ItemErrorCallback],
        cancel_event: Optional[threading.Event],
    ) -> None:
        self.indexer = indexer
        self.items = items
        self.on_progress = on_progress
        self.on_item_error = on_item_error
        self.cancel_event = cancel_event
        self.progress = IndexingProgress(total_count=len(items))
        self.vectors: Dict[str, np.ndarray] = {}
        self.cache_hits = 0
        self.cache_available = True
        self.model_error: Optional[ModelLoadFailed] = None
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def execute(self) -> SessionEmbeddingIndex:
        if self.indexer.workers == 1 or len(self.items) <= 1:
            for item in self.items:
                if self._should_stop():
                    break
                self._process(item)
        else:
            self._execute_parallel()

        ordered = {item.path: self.vectors[item.path] for item in self.items if item.path in self.vectors}
        cancelled = self.progress.processed_count < self.progress.total_count
        index = SessionEmbeddingIndex(
            ordered,
            progress=self.progress.snapshot(),
            ai_disabled=self.model_error is not None,
            load_error=self.model_error,
            cancelled=cancelled,
            cache_available=self.cache_available,
        )

        logger.info(
            "Indexed %d/%d items (%d succeeded, %d failed, %d from cache)%s",
            self.progress.processed_count,
            self.progress.total_count,
            self.progress.succeeded_count,
            self.progress.failed_count,
            self.cache_hits,
            " - cancelled" if cancelled else "",
        )
        if index.degraded:
            logger.warning("No embeddings were produced; similarity features are unavailable for this collection")
        return index

    def _execute_parallel(self) -> None:
        with ThreadPoolExecutor(max_workers=self.indexer.workers, thread_name_prefix="indexer") as pool:
            futures = [pool.submit(self._process, item) for item in self.items]
            try:
                for future in futures:
                    future.result()
            except BaseException:
                self._stop.set()
                for future in futures:
                    future.cancel()
                raise

    def _should_stop(self) -> bool:
        return self._stop.is_set() or (self.cancel_event is not None and self.cancel_event.is_set())

    def _process(self, item: MediaItem) -> None:
        if self._should_stop():
            return

        entry = self._lookup(item)
        if entry is not None and entry.is_fresh_for(item):
            logger.debug("Cache hit for %s", item.path)
            with self._lock:
                self.cache_hits += 1
            self._record(item, np.asarray(entry.embedding, dtype=np.float32))
            return

        if self.model_error is not None:
            self._finish(succeeded=False)
            return

        try:
            still = self._extract(item)
            vector = self._embed(item, still)
        except ModelLoadFailed as exc:
            self._disable_model(exc)
            self._finish(succeeded=False)
            return
        except MediaItemError as exc:
            logger.warning("Skipping %s: %s", item.path, exc)
            if self.on_item_error is not None:
                self.on_item_error(item, exc)
            self._finish(succeeded=False)
            return

        self._store(
            CacheEntry(
                path=item.path,
                last_modified=item.last_modified,
                embedding=vector,
                representative_frame_ref=still.frame_ref,
            )
        )
        self._record(item, vector)

    def _extract(self, item: MediaItem) -> Still:
        try:
            still = self.indexer.extractor.extract(item)
        except MediaItemError:
            raise
        except Exception as exc:  # noqa: BLE001 - any extractor failure is scoped to this item
            raise FrameExtractionFailed(item.path, str(exc) or type(exc).__name__) from exc
        if isinstance(still, Still):
            return still
        return Still(image=still, frame_ref=f"{item.kind.value}:{item.path}")

    def _embed(self, item: MediaItem, still: Still) -> np.ndarray:
        try:
            return self.indexer.engine.embed(still.image, path=item.path)
        except (ModelLoadFailed, MediaItemError):
            raise
        except Exception as exc:  # noqa: BLE001 - any inference failure is scoped to this item
            raise EmbedFailed(item.path, str(exc) or type(exc).__name__) from exc

    def _lookup(self, item: MediaItem) -> Optional[CacheEntry]:
        if not self.cache_available:
            return None
        try:
            return self.indexer.cache.get(item.path)
        except StorageUnavailable as exc:
            self._disable_cache(exc)
            return None

    def _store(self, entry: CacheEntry) -> None:
        if not self.cache_available:
            return
        try:
            self.indexer.cache.put(entry)
        except StorageUnavailable as exc:
            self._disable_cache(exc)

    def _disable_cache(self, exc: StorageUnavailable) -> None:
        with self._lock:
            if not self.cache_available:
                return
            self.cache_available = False
        logger.warning("Embedding cache unavailable, continuing uncached: %s", exc)

    def _disable_model(self, exc: ModelLoadFailed) -> None:
        with self._lock:
            if self.model_error is not None:
                return
            self.model_error = exc
        logger.error("AI features disabled for this session: %s", exc)

    def _record(self, item: MediaItem, vector: np.ndarray) -> None:
        with self._lock:
            self.vectors[item.path] = vector
        self._finish(succeeded=True)

    def _finish(self, succeeded: bool) -> None:
        # Callbacks run under the lock so observers see processed counts strictly increasing.
        with self._lock:
            self.progress.record(succeeded)
            if self.on_progress is not None:
                progress = self.progress
                self.on_progress(
                    progress.processed_count,
                    progress.total_count,
                    progress.succeeded_count,
                    progress.failed_count,
                )
