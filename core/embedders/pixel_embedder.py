# Path: core/embedders/pixel_embedder.py
# Purpose: Provide a lightweight, dependency-free image embedder.
# Layer: core/embedders.
# Details: Projects colour histograms and a coarse colour layout through a fixed random matrix.

from __future__ import annotations

import numpy as np
from PIL import Image

from .base import Embedder

_GRID = 8
_BINS = 16
_PROJECTION_SEED = 1234


class PixelStatsEmbedder(Embedder):
    """Deterministic embedder built from pixel statistics.

    Images with similar colour distribution and layout land close together,
    which is enough for offline use and tests where CLIP weights are not available.
    """

    def __init__(self, dim: int = 512) -> None:
        self.name = "pixel"
        self.dim = dim
        feature_size = 3 * _BINS + _GRID * _GRID * 3 + 6
        rng = np.random.default_rng(_PROJECTION_SEED)
        self._projection = rng.standard_normal((feature_size, dim)).astype(np.float32) / np.sqrt(feature_size)

    def embed_image(self, image: Image.Image) -> np.ndarray:
        """Generate a deterministic image embedding based on pixel statistics."""

        rgb = image.convert("RGB")
        pixels = np.asarray(rgb.resize((64, 64)), dtype=np.float32) / 255.0
        layout = np.asarray(rgb.resize((_GRID, _GRID)), dtype=np.float32).flatten() / 255.0

        histograms = [
            np.histogram(pixels[..., channel], bins=_BINS, range=(0.0, 1.0))[0].astype(np.float32) / pixels[..., 0].size
            for channel in range(3)
        ]
        stats = np.concatenate([pixels.mean(axis=(0, 1)), pixels.std(axis=(0, 1))])

        features = np.concatenate(histograms + [layout - 0.5, stats])
        return self._normalize(features @ self._projection)
