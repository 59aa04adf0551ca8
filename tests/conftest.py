# tests/conftest.py
# Pytest fixtures shared by the cache, embedding, indexing, and query tests

import shutil
import tempfile
import threading
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional

import numpy as np
import pytest
from PIL import Image

from core.cache.memory_cache import MemoryEmbeddingCache
from core.embedders.base import Embedder
from core.embedders.engine import EmbeddingEngine, reset_embedding_engine
from core.errors import FrameExtractionFailed
from core.frames.extractor import FrameExtractor, Still
from core.models.domain import FileSource, MediaItem, MediaKind


class CountingEmbedder(Embedder):
    """Embedder that encodes the mean colour of an image and counts its calls."""

    def __init__(self, dim: int = 3, load_error: Optional[Exception] = None) -> None:
        self.name = "counting"
        self.dim = dim
        self.load_error = load_error
        self.load_calls = 0
        self.embed_calls = 0
        self._lock = threading.Lock()

    def load(self) -> None:
        with self._lock:
            self.load_calls += 1
        if self.load_error is not None:
            raise self.load_error

    def embed_image(self, image: Image.Image) -> np.ndarray:
        with self._lock:
            self.embed_calls += 1
        pixels = np.asarray(image.convert("RGB"), dtype=np.float32)
        mean = pixels.mean(axis=(0, 1)) + 1.0
        vector = np.zeros(self.dim, dtype=np.float32)
        vector[: min(3, self.dim)] = mean[: min(3, self.dim)]
        return vector


class FakeExtractor(FrameExtractor):
    """Extractor returning a solid-colour still per item, optionally failing for some paths."""

    def __init__(self, colours: Optional[Dict[str, tuple]] = None, failing: Optional[set] = None) -> None:
        self.colours = colours or {}
        self.failing = failing or set()
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def extract(self, item: MediaItem) -> Still:
        with self._lock:
            self.calls.append(item.path)
        if item.path in self.failing:
            raise FrameExtractionFailed(item.path, "cannot decode")
        colour = self.colours.get(item.path, (120, 60, 30))
        return Still(image=Image.new("RGB", (8, 8), color=colour), frame_ref=f"image:{item.path}")


@pytest.fixture(autouse=True)
def reset_engine_singleton() -> Generator[None, None, None]:
    """Keep the process-wide engine from leaking between tests."""
    reset_embedding_engine()
    yield
    reset_embedding_engine()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test files."""
    tmpdir = tempfile.mkdtemp(prefix="vse_test_")
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def cache_db_path(temp_dir: Path) -> Path:
    """Create temporary cache database path."""
    return temp_dir / "cache" / "embeddings.sqlite3"


@pytest.fixture
def memory_cache() -> MemoryEmbeddingCache:
    return MemoryEmbeddingCache()


@pytest.fixture
def counting_embedder() -> CountingEmbedder:
    return CountingEmbedder()


@pytest.fixture
def engine(counting_embedder: CountingEmbedder) -> EmbeddingEngine:
    return EmbeddingEngine(counting_embedder)


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def make_items() -> Callable[..., List[MediaItem]]:
    """Factory for in-memory media items named item0..itemN."""

    def factory(count: int, last_modified: int = 1000, kind: MediaKind = MediaKind.IMAGE) -> List[MediaItem]:
        return [MediaItem(path=f"album/item{i}.jpg", kind=kind, last_modified=last_modified) for i in range(count)]

    return factory


@pytest.fixture
def media_folder(temp_dir: Path) -> Path:
    """
    Create a small media folder on disk.

    Contains three red-ish images, two blue-ish images in a subfolder,
    one unsupported text file and one corrupt JPEG.
    """
    folder = temp_dir / "holiday"
    (folder / "beach").mkdir(parents=True)

    for i, colour in enumerate([(250, 10, 10), (240, 20, 15), (245, 5, 20)]):
        Image.new("RGB", (64, 48), color=colour).save(folder / f"red_{i}.png", "PNG")
    for i, colour in enumerate([(10, 10, 250), (20, 15, 240)]):
        Image.new("RGB", (64, 48), color=colour).save(folder / "beach" / f"blue_{i}.jpg", "JPEG")

    (folder / "notes.txt").write_text("not media")
    (folder / "broken.jpg").write_bytes(b"definitely not a jpeg")
    return folder


@pytest.fixture
def image_item(temp_dir: Path) -> MediaItem:
    """A single on-disk PNG wrapped as a media item."""
    path = temp_dir / "solid.png"
    Image.new("RGB", (32, 16), color=(10, 200, 30)).save(path, "PNG")
    return MediaItem(path="tmp/solid.png", kind=MediaKind.IMAGE, last_modified=1, source=FileSource(path))
