# Path: core/indexing/__init__.py
# Purpose: Package initializer for indexing utilities.
# Layer: core/indexing.
# Details: Exposes media scanning and the cache-first batch indexer.

from .batch_indexer import BatchIndexer, ItemErrorCallback, ProgressCallback
from .scanner import MediaScanner, SUPPORTED_EXTENSIONS, media_item_from_file, media_kind_for

__all__ = [
    "BatchIndexer",
    "ItemErrorCallback",
    "MediaScanner",
    "ProgressCallback",
    "SUPPORTED_EXTENSIONS",
    "media_item_from_file",
    "media_kind_for",
]
