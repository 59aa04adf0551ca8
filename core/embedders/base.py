# Path: core/embedders/base.py
# Purpose: Define the Embedder interface that turns a still image into a fixed-length vector.
# Layer: core/embedders.
# Details: Implementations load their weights in load(); the engine decides when that happens.

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from PIL import Image


class Embedder(ABC):
    """Abstract base class for still-image embedders.

    ``dim`` may only change inside :meth:`load`, when the real model reports
    its output size.
    """

    name: str
    dim: int

    def load(self) -> None:
        """Prepare model weights; called at most once per successful load by the engine."""

    @abstractmethod
    def embed_image(self, image: Image.Image) -> np.ndarray:
        """Return a 1-D embedding of length ``dim`` for an RGB still."""

    @staticmethod
    def _normalize(vector: np.ndarray) -> np.ndarray:
        flat = np.asarray(vector, dtype=np.float32).reshape(-1)
        norm = float(np.linalg.norm(flat))
        return flat if norm == 0.0 else flat / norm
