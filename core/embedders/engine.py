# Path: core/embedders/engine.py
# Purpose: Own the lazily-loaded embedding model and the single gate that serializes its load.
# Layer: core/embedders.
# Details: One in-flight load token is shared by all callers; a failed load clears it so a later call can retry.

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, Optional

import numpy as np
from PIL import Image

from config.logging_config import get_logger
from config.settings import EmbedderSettings
from core.errors import EmbedFailed, ModelLoadFailed

from .base import Embedder
from .clip_embedder import ClipEmbedder
from .pixel_embedder import PixelStatsEmbedder

logger = get_logger(__name__)


class ModelLoadGate:
    """Run a load callable at most once at a time and remember its success.

    The first caller performs the load; concurrent callers wait on the same
    future. On failure the in-flight future is discarded so the next call
    starts a fresh attempt.
    """

    def __init__(self, load: Callable[[], None]) -> None:
        self._load = load
        self._lock = threading.Lock()
        self._loaded = False
        self._in_flight: Optional[Future] = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    def ensure_loaded(self) -> None:
        if self._loaded:
            return

        with self._lock:
            if self._loaded:
                return
            owner = self._in_flight is None
            if owner:
                self._in_flight = Future()
            in_flight = self._in_flight

        if not owner:
            # Waiters see the same outcome as the loader.
            in_flight.result()
            return

        try:
            self._load()
        except Exception as exc:  # noqa: BLE001 - any loader failure disables the model
            error = exc if isinstance(exc, ModelLoadFailed) else ModelLoadFailed(f"Embedding model failed to load: {exc}")
            if error is not exc:
                error.__cause__ = exc
            with self._lock:
                self._in_flight = None
            in_flight.set_exception(error)
            raise error
        except BaseException:
            with self._lock:
                self._in_flight = None
            in_flight.set_exception(ModelLoadFailed("Embedding model load was interrupted"))
            raise

        with self._lock:
            self._loaded = True
            self._in_flight = None
        in_flight.set_result(None)


class EmbeddingEngine:
    """Convert still images into normalized embeddings with a lazily-loaded embedder."""

    def __init__(self, embedder: Embedder, max_image_dimension: Optional[int] = None) -> None:
        self._embedder = embedder
        self._max_image_dimension = max_image_dimension
        self._gate = ModelLoadGate(self._load_embedder)

    @property
    def name(self) -> str:
        return self._embedder.name

    @property
    def dim(self) -> int:
        return self._embedder.dim

    @property
    def is_loaded(self) -> bool:
        return self._gate.loaded

    def _load_embedder(self) -> None:
        logger.info("Loading embedder '%s'", self._embedder.name)
        self._embedder.load()
        logger.info("Embedder '%s' ready (dim=%d)", self._embedder.name, self._embedder.dim)

    def ensure_loaded(self) -> None:
        """Load the model if needed; raises :class:`ModelLoadFailed` when it cannot be initialized."""

        self._gate.ensure_loaded()

    def embed(self, image: Image.Image, path: str = "<image>") -> np.ndarray:
        """Return the L2-normalized float32 embedding of ``image``.

        Raises:
            ModelLoadFailed: the model never loaded successfully
            EmbedFailed: the image could not be embedded
        """

        self.ensure_loaded()

        try:
            still = image
            if self._max_image_dimension is not None:
                width, height = still.size
                if width > self._max_image_dimension or height > self._max_image_dimension:
                    still = still.copy()
                    still.thumbnail((self._max_image_dimension, self._max_image_dimension), Image.Resampling.LANCZOS)
            raw = self._embedder.embed_image(still)
        except Exception as exc:  # noqa: BLE001 - per-image failure
            raise EmbedFailed(path, f"embedding failed: {exc}") from exc

        vector = np.asarray(raw, dtype=np.float32).reshape(-1)
        if vector.size == 0 or not np.all(np.isfinite(vector)):
            raise EmbedFailed(path, "embedder returned an empty or non-finite vector")
        norm = float(np.linalg.norm(vector))
        if norm == 0.0:
            raise EmbedFailed(path, "embedder returned a zero vector")
        return (vector / norm).astype(np.float32)


def build_embedder(settings: EmbedderSettings) -> Embedder:
    """Instantiate the embedder named in ``settings``."""

    if settings.name == "clip":
        return ClipEmbedder(
            model_name=settings.model_name,
            device=settings.device,
            dim=settings.dim,
            cache_dir=settings.cache_dir,
        )
    if settings.name == "pixel":
        return PixelStatsEmbedder(dim=settings.dim)
    raise ValueError(f"Unknown embedder: {settings.name}")


_engine_lock = threading.Lock()
_engine: Optional[EmbeddingEngine] = None


def get_embedding_engine(settings: Optional[EmbedderSettings] = None) -> EmbeddingEngine:
    """Return the process-wide engine, creating it on first use.

    Settings only matter for the first call; the model is loaded at most once
    per process.
    """

    global _engine
    with _engine_lock:
        if _engine is None:
            settings = settings or EmbedderSettings()
            _engine = EmbeddingEngine(build_embedder(settings), max_image_dimension=settings.max_image_dimension)
        return _engine


def reset_embedding_engine() -> None:
    """Forget the process-wide engine (tests and embedder switches)."""

    global _engine
    with _engine_lock:
        _engine = None
