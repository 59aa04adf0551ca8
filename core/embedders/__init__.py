# Path: core/embedders/__init__.py
# Purpose: Package initializer for embedder implementations and the embedding engine.
# Layer: core/embedders.
# Details: Exposes the base interface, reference implementations, and the shared engine accessors.

from .base import Embedder
from .clip_embedder import ClipEmbedder
from .engine import EmbeddingEngine, ModelLoadGate, build_embedder, get_embedding_engine, reset_embedding_engine
from .pixel_embedder import PixelStatsEmbedder

__all__ = [
    "ClipEmbedder",
    "Embedder",
    "EmbeddingEngine",
    "ModelLoadGate",
    "PixelStatsEmbedder",
    "build_embedder",
    "get_embedding_engine",
    "reset_embedding_engine",
]
