# tests/test_embedding_cache.py
# Tests for the SQLite, in-memory, and null embedding caches

from pathlib import Path

import numpy as np
import pytest

from config.settings import CacheSettings
from core.cache import (
    MemoryEmbeddingCache,
    NullEmbeddingCache,
    SqliteEmbeddingCache,
    open_embedding_cache,
)
from core.errors import StorageUnavailable
from core.models.domain import CacheEntry, MediaItem, MediaKind


def _entry(path: str, last_modified: int = 10, values=(0.6, 0.8, 0.0)) -> CacheEntry:
    return CacheEntry(
        path=path,
        last_modified=last_modified,
        embedding=np.asarray(values, dtype=np.float32),
        representative_frame_ref=f"image:{path}",
    )


class TestSqliteEmbeddingCache:
    """Persistence behaviour of the SQLite backend."""

    def test_put_then_get(self, cache_db_path: Path):
        """Stored entries come back with the same fields."""
        cache = SqliteEmbeddingCache(cache_db_path)
        cache.put(_entry("a/1.jpg"))

        entry = cache.get("a/1.jpg")
        assert entry is not None
        assert entry.last_modified == 10
        assert entry.representative_frame_ref == "image:a/1.jpg"
        assert entry.embedding.dtype == np.float32
        np.testing.assert_allclose(entry.embedding, [0.6, 0.8, 0.0], rtol=1e-6)

    def test_missing_path_returns_none(self, cache_db_path: Path):
        cache = SqliteEmbeddingCache(cache_db_path)
        assert cache.get("nope.jpg") is None

    def test_put_overwrites_whole_entry(self, cache_db_path: Path):
        """A second put for the same path replaces the previous entry."""
        cache = SqliteEmbeddingCache(cache_db_path)
        cache.put(_entry("a/1.jpg", last_modified=10, values=(1.0, 0.0)))
        cache.put(_entry("a/1.jpg", last_modified=20, values=(0.0, 1.0, 0.0, 0.0)))

        entry = cache.get("a/1.jpg")
        assert entry.last_modified == 20
        assert entry.embedding.shape == (4,)
        assert cache.count() == 1

    def test_survives_reopen(self, cache_db_path: Path):
        """Entries persist across cache instances on the same file."""
        SqliteEmbeddingCache(cache_db_path).put(_entry("a/1.jpg"))

        reopened = SqliteEmbeddingCache(cache_db_path)
        assert reopened.get("a/1.jpg") is not None

    def test_get_many_and_get_all(self, cache_db_path: Path):
        cache = SqliteEmbeddingCache(cache_db_path)
        for name in ("b.jpg", "a.jpg", "c.jpg"):
            cache.put(_entry(name))

        found = cache.get_many(["a.jpg", "c.jpg", "missing.jpg", "a.jpg"])
        assert set(found) == {"a.jpg", "c.jpg"}
        assert [entry.path for entry in cache.get_all()] == ["a.jpg", "b.jpg", "c.jpg"]

    def test_get_many_handles_large_batches(self, cache_db_path: Path):
        cache = SqliteEmbeddingCache(cache_db_path)
        paths = [f"img/{i:04d}.jpg" for i in range(1200)]
        for path in paths[::100]:
            cache.put(_entry(path))

        found = cache.get_many(paths)
        assert len(found) == 12

    def test_delete_and_clear(self, cache_db_path: Path):
        cache = SqliteEmbeddingCache(cache_db_path)
        cache.put(_entry("a.jpg"))
        cache.put(_entry("b.jpg"))

        cache.delete("a.jpg")
        cache.delete("never-there.jpg")
        assert cache.get("a.jpg") is None
        assert cache.count() == 1

        cache.clear()
        assert cache.count() == 0

    def test_unopenable_store_raises_storage_unavailable(self, temp_dir: Path):
        """A directory in place of the database file is reported as unavailable storage."""
        blocked = temp_dir / "blocked.sqlite3"
        blocked.mkdir()
        with pytest.raises(StorageUnavailable):
            SqliteEmbeddingCache(blocked)


class TestCacheEntryFreshness:
    """An entry is valid only for the exact path and timestamp it was produced from."""

    def test_matching_item_is_fresh(self):
        item = MediaItem(path="a.jpg", kind=MediaKind.IMAGE, last_modified=10)
        assert _entry("a.jpg", last_modified=10).is_fresh_for(item)

    def test_changed_timestamp_is_stale(self):
        item = MediaItem(path="a.jpg", kind=MediaKind.IMAGE, last_modified=11)
        assert not _entry("a.jpg", last_modified=10).is_fresh_for(item)

    def test_other_path_is_stale(self):
        item = MediaItem(path="b.jpg", kind=MediaKind.IMAGE, last_modified=10)
        assert not _entry("a.jpg", last_modified=10).is_fresh_for(item)


class TestMemoryAndNullCaches:

    def test_memory_cache_round_trip(self):
        cache = MemoryEmbeddingCache()
        cache.put(_entry("a.jpg"))
        assert cache.get("a.jpg").path == "a.jpg"
        assert cache.get_many(["a.jpg", "b.jpg"]).keys() == {"a.jpg"}
        assert cache.count() == 1
        cache.clear()
        assert cache.get_all() == []

    def test_null_cache_never_hits(self):
        cache = NullEmbeddingCache()
        cache.put(_entry("a.jpg"))
        assert cache.get("a.jpg") is None
        assert cache.count() == 0


class TestOpenEmbeddingCache:
    """Factory selection and fallback."""

    def test_opens_sqlite_cache(self, cache_db_path: Path):
        cache = open_embedding_cache(CacheSettings(path=cache_db_path))
        assert isinstance(cache, SqliteEmbeddingCache)
        assert cache_db_path.exists()

    def test_disabled_cache_is_null(self, cache_db_path: Path):
        cache = open_embedding_cache(CacheSettings(enabled=False, path=cache_db_path))
        assert isinstance(cache, NullEmbeddingCache)
        assert not cache_db_path.exists()

    def test_unavailable_storage_falls_back_to_null(self, temp_dir: Path):
        blocked = temp_dir / "blocked.sqlite3"
        blocked.mkdir()
        cache = open_embedding_cache(CacheSettings(path=blocked))
        assert isinstance(cache, NullEmbeddingCache)
