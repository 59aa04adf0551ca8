# Path: core/embedders/clip_embedder.py
# Purpose: Embed images with the vision tower of a Hugging Face CLIP model.
# Layer: core/embedders.
# Details: torch/transformers are imported in load(); weights come from the Hugging Face cache after the first fetch.

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import numpy as np
from PIL import Image

from config.logging_config import get_logger

from .base import Embedder

logger = get_logger(__name__)


def resolve_device(requested: str, torch_module: Any) -> str:
    """Resolve ``auto``/``cpu``/``cuda``/``gpu`` into a torch device string."""

    choice = requested.lower()
    if choice == "cpu":
        return "cpu"
    if choice in ("cuda", "gpu"):
        if not torch_module.cuda.is_available():
            raise RuntimeError("CUDA requested but not available")
        return "cuda"
    return "cuda" if torch_module.cuda.is_available() else "cpu"


class ClipEmbedder(Embedder):
    """CLIP image embedder producing L2-normalized image features."""

    def __init__(
        self,
        model_name: str = "openai/clip-vit-base-patch32",
        device: str = "auto",
        dim: int = 512,
        cache_dir: Optional[Path] = None,
    ) -> None:
        self.name = "clip"
        self.model_name = model_name
        self.requested_device = device
        self.dim = dim
        self.cache_dir = cache_dir
        self._torch: Any = None
        self._model: Any = None
        self._processor: Any = None
        self._device: Optional[str] = None

    def load(self) -> None:
        """Import torch/transformers and fetch the model weights."""

        import torch
        from transformers import CLIPModel, CLIPProcessor

        device = resolve_device(self.requested_device, torch)
        cache_dir = str(self.cache_dir) if self.cache_dir is not None else None
        logger.info("Loading CLIP model %s on %s", self.model_name, device)

        processor = CLIPProcessor.from_pretrained(self.model_name, cache_dir=cache_dir)
        model = CLIPModel.from_pretrained(self.model_name, cache_dir=cache_dir).to(device).eval()

        projection_dim = int(model.config.projection_dim)
        if projection_dim != self.dim:
            logger.warning(
                "Model %s produces %d-d embeddings; configured dim %d is overridden",
                self.model_name,
                projection_dim,
                self.dim,
            )
            self.dim = projection_dim

        self._torch = torch
        self._processor = processor
        self._model = model
        self._device = device

    def embed_image(self, image: Image.Image) -> np.ndarray:
        if self._model is None:
            raise RuntimeError(f"CLIP model {self.model_name} is not loaded")

        inputs = self._processor(images=image.convert("RGB"), return_tensors="pt")
        inputs = {key: value.to(self._device) for key, value in inputs.items()}
        with self._torch.no_grad():
            features = self._model.get_image_features(**inputs)
        vector = features[0].detach().cpu().numpy().astype(np.float32)
        return self._normalize(vector)
