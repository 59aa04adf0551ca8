# Path: core/frames/extractor.py
# Purpose: Obtain one representative still image per media item.
# Layer: core/frames.
# Details: Images are decoded with Pillow; videos are sampled with OpenCV at min(duration / 2, cap) seconds.

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import NamedTuple

import cv2
from PIL import Image

from config.logging_config import get_logger
from core.errors import FrameExtractionFailed
from core.models.domain import MediaItem, MediaKind

logger = get_logger(__name__)

DEFAULT_MAX_SAMPLE_SECONDS = 5.0


class Still(NamedTuple):
    """A decoded RGB still and a reference describing where it came from."""

    image: Image.Image
    frame_ref: str


def sample_time(duration_seconds: float, max_seconds: float = DEFAULT_MAX_SAMPLE_SECONDS) -> float:
    """Return the timestamp to sample: the midpoint, capped at ``max_seconds``."""

    if duration_seconds <= 0:
        return 0.0
    return min(duration_seconds / 2.0, max_seconds)


class FrameExtractor(ABC):
    """Interface for turning a media item into a still image."""

    @abstractmethod
    def extract(self, item: MediaItem) -> Still:
        """Return the representative still of ``item`` or raise :class:`FrameExtractionFailed`."""


class MediaFrameExtractor(FrameExtractor):
    """Default extractor handling both images and videos."""

    def __init__(self, max_sample_seconds: float = DEFAULT_MAX_SAMPLE_SECONDS) -> None:
        self.max_sample_seconds = max_sample_seconds

    def extract(self, item: MediaItem) -> Still:
        if item.source is None:
            raise FrameExtractionFailed(item.path, "media item has no source to read from")

        with item.source.acquire() as local_path:
            if item.kind is MediaKind.VIDEO:
                return self._extract_video(item, local_path)
            return self._extract_image(item, local_path)

    def _extract_image(self, item: MediaItem, local_path: Path) -> Still:
        try:
            with Image.open(local_path) as img:
                img.load()
                rgb = img.convert("RGB")
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise FrameExtractionFailed(item.path, f"cannot decode image: {exc}") from exc
        return Still(image=rgb, frame_ref=f"image:{item.path}")

    def _extract_video(self, item: MediaItem, local_path: Path) -> Still:
        capture = cv2.VideoCapture(str(local_path))
        try:
            if not capture.isOpened():
                raise FrameExtractionFailed(item.path, "cannot open video")

            fps = capture.get(cv2.CAP_PROP_FPS)
            frame_count = capture.get(cv2.CAP_PROP_FRAME_COUNT)
            duration = frame_count / fps if fps > 0 and frame_count > 0 else 0.0
            target = sample_time(duration, self.max_sample_seconds)

            capture.set(cv2.CAP_PROP_POS_MSEC, target * 1000.0)
            ok, frame = capture.read()
            if (not ok or frame is None) and target > 0:
                # Some containers cannot seek; fall back to the first decodable frame.
                logger.debug("Seek to %.2fs failed for %s; using the first frame", target, item.path)
                capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
                target = 0.0
                ok, frame = capture.read()
            if not ok or frame is None:
                raise FrameExtractionFailed(item.path, "no decodable frame")

            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        except cv2.error as exc:
            raise FrameExtractionFailed(item.path, f"video decode error: {exc}") from exc
        finally:
            capture.release()

        return Still(image=Image.fromarray(rgb), frame_ref=f"video:{item.path}@{target:.2f}s")
