# Path: core/errors.py
# Purpose: Define the exception taxonomy shared by cache, embedding, indexing, and query layers.
# Layer: core.
# Details: Per-item errors carry the media path; batch-level errors are raised once per run.

from __future__ import annotations

from typing import Optional


class SimilarityEngineError(Exception):
    """Base exception for all engine errors."""


class StorageUnavailable(SimilarityEngineError):
    """Raised when the embedding cache backend cannot be read or written."""


class ModelLoadFailed(SimilarityEngineError):
    """Raised when the embedding model could not be initialized."""


class MediaItemError(SimilarityEngineError):
    """Raised for failures that concern one media item only."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class FrameExtractionFailed(MediaItemError):
    """Raised when no still image could be obtained from a media item."""


class EmbedFailed(MediaItemError):
    """Raised when the model could not embed a specific still image."""


class DimensionMismatch(SimilarityEngineError, ValueError):
    """Raised when vectors of different lengths are compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vector dimensions differ: {left} != {right}")
        self.left = left
        self.right = right


class AIUnavailable(SimilarityEngineError):
    """Raised when similarity features are requested but cannot be served."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


__all__ = [
    "AIUnavailable",
    "DimensionMismatch",
    "EmbedFailed",
    "FrameExtractionFailed",
    "MediaItemError",
    "ModelLoadFailed",
    "SimilarityEngineError",
    "StorageUnavailable",
]
