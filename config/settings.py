# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for the embedder, embedding cache, indexing runs, clustering, and logging.

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "VSE_"


class EmbedderSettings(BaseModel):
    """Settings describing which embedder implementation to use and how to load it."""

    name: Literal["clip", "pixel"] = Field(default="clip", description="Identifier of the embedder implementation.")
    model_name: str = Field(default="openai/clip-vit-base-patch32", description="Model variant used by the embedder.")
    device: str = Field(default="auto", description="Target device for model execution (auto, cpu, cuda).")
    dim: int = Field(default=512, gt=0, description="Expected embedding dimensionality.")
    cache_dir: Optional[Path] = Field(default=None, description="Directory where downloaded model weights are kept.")
    max_image_dimension: Optional[int] = Field(
        default=1024,
        gt=0,
        description="Stills larger than this on either side are downscaled before embedding; None disables it.",
    )


class CacheSettings(BaseModel):
    """Settings controlling the persistent embedding cache."""

    enabled: bool = Field(default=True, description="Disable to run every session fully uncached.")
    path: Path = Field(default=Path("storage/cache/embeddings.sqlite3"), description="Path to the SQLite cache file.")


class IndexingSettings(BaseModel):
    """Settings for batch indexing runs."""

    workers: int = Field(default=1, ge=1, description="Number of items processed in parallel.")
    max_video_sample_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for the timestamp of the frame sampled from a video.",
    )


class ClusteringSettings(BaseModel):
    """Settings for theme clustering."""

    min_items: int = Field(default=3, ge=1, description="Below this many embedded items everything is one group.")
    items_per_cluster: int = Field(default=10, ge=1, description="Collection size divisor used to pick K.")
    min_clusters: int = Field(default=3, ge=1, description="Lower bound for K.")
    max_clusters: int = Field(default=10, ge=1, description="Upper bound for K.")
    max_iterations: int = Field(default=100, ge=1, description="Iteration cap for k-means.")
    seed_tolerance: float = Field(
        default=1e-4,
        ge=0,
        description="k-means++ stops adding seeds once the remaining potential falls to this fraction of the initial one.",
    )
    seed: Optional[int] = Field(default=None, description="Seed for k-means++; None draws a fresh seed per run.")


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    media_folder: Path = Field(default=Path("storage/media"), description="Root folder containing user media.")
    ai_enabled: bool = Field(default=True, description="Master switch for similarity and clustering features.")
    embedder: EmbedderSettings = Field(default_factory=EmbedderSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    clustering: ClusteringSettings = Field(default_factory=ClusteringSettings)
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file.")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "AppSettings":
        """Instantiate settings, applying ``VSE_*`` environment overrides when present."""

        env = os.environ if environ is None else environ
        settings = cls()

        def lookup(key: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + key)
            return value if value not in (None, "") else None

        updates: dict = {}
        if lookup("MEDIA_FOLDER"):
            updates["media_folder"] = Path(lookup("MEDIA_FOLDER"))
        if lookup("AI_ENABLED"):
            updates["ai_enabled"] = lookup("AI_ENABLED").strip().lower() in ("1", "true", "yes", "on")
        if lookup("LOG_LEVEL"):
            updates["log_level"] = lookup("LOG_LEVEL").upper()
        if lookup("LOG_FILE"):
            updates["log_file"] = Path(lookup("LOG_FILE"))

        embedder_updates: dict = {}
        if lookup("EMBEDDER"):
            embedder_updates["name"] = lookup("EMBEDDER")
        if lookup("MODEL_NAME"):
            embedder_updates["model_name"] = lookup("MODEL_NAME")
        if lookup("DEVICE"):
            embedder_updates["device"] = lookup("DEVICE")

        cache_updates: dict = {}
        if lookup("CACHE_PATH"):
            cache_updates["path"] = Path(lookup("CACHE_PATH"))

        indexing_updates: dict = {}
        if lookup("WORKERS"):
            indexing_updates["workers"] = int(lookup("WORKERS"))

        clustering_updates: dict = {}
        if lookup("CLUSTER_SEED"):
            clustering_updates["seed"] = int(lookup("CLUSTER_SEED"))

        # Round-trip through validation so bad overrides fail loudly.
        payload = settings.model_dump()
        payload.update(updates)
        payload["embedder"].update(embedder_updates)
        payload["cache"].update(cache_updates)
        payload["indexing"].update(indexing_updates)
        payload["clustering"].update(clustering_updates)
        return cls.model_validate(payload)


__all__ = [
    "AppSettings",
    "CacheSettings",
    "ClusteringSettings",
    "EmbedderSettings",
    "IndexingSettings",
]
