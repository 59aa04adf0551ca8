# Path: core/cache/sqlite_cache.py
# Purpose: Persist embeddings in a single-table SQLite database.
# Layer: core/cache.
# Details: One row per media path; vectors are stored as little-endian float32 blobs.

from __future__ import annotations

import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np

from config.logging_config import get_logger
from core.errors import StorageUnavailable
from core.models.domain import CacheEntry

from .base import EmbeddingCache

logger = get_logger(__name__)

_VECTOR_DTYPE = np.dtype("<f4")
_COLUMNS = "path, last_modified, embedding, dim, representative_frame_ref"

# SQLite caps the number of bound parameters per statement.
_MAX_PARAMS = 500


class SqliteEmbeddingCache(EmbeddingCache):
    """EmbeddingCache backed by a SQLite file.

    Every operation opens a short-lived connection, so the cache can be shared
    between worker threads. Each write is its own transaction.
    """

    def __init__(self, db_path: Path | str, timeout: float = 30.0) -> None:
        self.name = "sqlite"
        self.db_path = Path(db_path)
        self.timeout = timeout
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Cannot create cache directory {self.db_path.parent}: {exc}") from exc
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction, translating backend errors."""

        try:
            with closing(sqlite3.connect(self.db_path, timeout=self.timeout)) as conn:
                with conn:
                    yield conn
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Embedding cache at {self.db_path} is unavailable: {exc}") from exc

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS embeddings (
                    path TEXT PRIMARY KEY,
                    last_modified INTEGER NOT NULL,
                    embedding BLOB NOT NULL,
                    dim INTEGER NOT NULL,
                    representative_frame_ref TEXT NOT NULL DEFAULT ''
                )
                """
            )

    @staticmethod
    def _row_to_entry(row) -> CacheEntry:
        path, last_modified, blob, dim, frame_ref = row
        vector = np.frombuffer(blob, dtype=_VECTOR_DTYPE, count=dim).astype(np.float32)
        return CacheEntry(
            path=path,
            last_modified=int(last_modified),
            embedding=vector,
            representative_frame_ref=frame_ref or "",
        )

    def get(self, path: str) -> Optional[CacheEntry]:
        with self._connect() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM embeddings WHERE path = ?", (path,)).fetchone()
        return self._row_to_entry(row) if row else None

    def get_many(self, paths: Iterable[str]) -> Dict[str, CacheEntry]:
        wanted = list(dict.fromkeys(paths))
        found: Dict[str, CacheEntry] = {}
        with self._connect() as conn:
            for start in range(0, len(wanted), _MAX_PARAMS):
                chunk = wanted[start : start + _MAX_PARAMS]
                placeholders = ", ".join("?" for _ in chunk)
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM embeddings WHERE path IN ({placeholders})",
                    chunk,
                ).fetchall()
                for row in rows:
                    entry = self._row_to_entry(row)
                    found[entry.path] = entry
        return found

    def put(self, entry: CacheEntry) -> None:
        vector = np.asarray(entry.embedding, dtype=_VECTOR_DTYPE).reshape(-1)
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO embeddings ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                    last_modified = excluded.last_modified,
                    embedding = excluded.embedding,
                    dim = excluded.dim,
                    representative_frame_ref = excluded.representative_frame_ref
                """,
                (
                    entry.path,
                    int(entry.last_modified),
                    vector.tobytes(),
                    int(vector.size),
                    entry.representative_frame_ref,
                ),
            )

    def delete(self, path: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM embeddings WHERE path = ?", (path,))

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM embeddings")
        logger.info("Cleared embedding cache at %s", self.db_path)

    def get_all(self) -> List[CacheEntry]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM embeddings ORDER BY path").fetchall()
        return [self._row_to_entry(row) for row in rows]

    def count(self) -> int:
        with self._connect() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM embeddings").fetchone()[0])
