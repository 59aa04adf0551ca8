# tests/test_frame_extractor.py
# Tests for still extraction from images and videos

from contextlib import contextmanager
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from core.errors import FrameExtractionFailed
from core.frames import MediaFrameExtractor, Still, sample_time
from core.models.domain import BytesSource, FileSource, MediaItem, MediaKind


class TestSampleTime:
    """Videos are sampled at the midpoint, capped at a maximum offset."""

    def test_short_video_uses_midpoint(self):
        assert sample_time(4.0) == pytest.approx(2.0)

    def test_long_video_is_capped(self):
        assert sample_time(120.0) == pytest.approx(5.0)
        assert sample_time(120.0, max_seconds=3.0) == pytest.approx(3.0)

    def test_unknown_duration_uses_start(self):
        assert sample_time(0.0) == 0.0
        assert sample_time(-1.0) == 0.0


class TestImageExtraction:

    def test_image_is_returned_as_rgb_still(self, image_item: MediaItem):
        still = MediaFrameExtractor().extract(image_item)
        assert isinstance(still, Still)
        assert still.image.mode == "RGB"
        assert still.image.size == (32, 16)
        assert still.image.getpixel((0, 0)) == (10, 200, 30)
        assert still.frame_ref == "image:tmp/solid.png"

    def test_palette_image_is_converted(self, temp_dir: Path):
        path = temp_dir / "palette.gif"
        Image.new("P", (8, 8)).save(path)
        item = MediaItem(path="p.gif", kind=MediaKind.IMAGE, last_modified=1, source=FileSource(path))
        assert MediaFrameExtractor().extract(item).image.mode == "RGB"

    def test_bytes_source_is_released_after_extraction(self, temp_dir: Path):
        """In-memory media is spilled to a temp file only for the duration of the read."""
        path = temp_dir / "mem.png"
        Image.new("RGB", (4, 4), color=(1, 2, 3)).save(path)
        source = BytesSource(path.read_bytes(), suffix=".png")

        acquired = []
        original_acquire = source.acquire

        @contextmanager
        def tracking_acquire():
            with original_acquire() as local:
                acquired.append(local)
                assert local.exists()
                yield local

        source.acquire = tracking_acquire
        item = MediaItem(path="mem.png", kind=MediaKind.IMAGE, last_modified=1, source=source)

        still = MediaFrameExtractor().extract(item)
        assert still.image.getpixel((0, 0)) == (1, 2, 3)
        assert len(acquired) == 1
        assert not acquired[0].exists()

    def test_corrupt_image_fails(self, temp_dir: Path):
        path = temp_dir / "broken.jpg"
        path.write_bytes(b"not an image")
        item = MediaItem(path="broken.jpg", kind=MediaKind.IMAGE, last_modified=1, source=FileSource(path))
        with pytest.raises(FrameExtractionFailed) as excinfo:
            MediaFrameExtractor().extract(item)
        assert excinfo.value.path == "broken.jpg"

    def test_missing_file_fails(self, temp_dir: Path):
        item = MediaItem(
            path="gone.png",
            kind=MediaKind.IMAGE,
            last_modified=1,
            source=FileSource(temp_dir / "gone.png"),
        )
        with pytest.raises(FrameExtractionFailed):
            MediaFrameExtractor().extract(item)

    def test_item_without_source_fails(self):
        item = MediaItem(path="nowhere.png", kind=MediaKind.IMAGE, last_modified=1)
        with pytest.raises(FrameExtractionFailed):
            MediaFrameExtractor().extract(item)


class TestVideoExtraction:

    def test_undecodable_video_fails(self, temp_dir: Path):
        path = temp_dir / "clip.mp4"
        path.write_bytes(b"\x00" * 128)
        item = MediaItem(path="clip.mp4", kind=MediaKind.VIDEO, last_modified=1, source=FileSource(path))
        with pytest.raises(FrameExtractionFailed):
            MediaFrameExtractor().extract(item)

    def test_video_frame_is_sampled(self, temp_dir: Path):
        cv2 = pytest.importorskip("cv2")
        path = temp_dir / "clip.avi"
        writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (32, 24))
        if not writer.isOpened():
            pytest.skip("MJPG writer not available in this OpenCV build")
        for _ in range(20):
            writer.write(np.full((24, 32, 3), (0, 0, 255), dtype=np.uint8))
        writer.release()

        item = MediaItem(path="clip.avi", kind=MediaKind.VIDEO, last_modified=1, source=FileSource(path))
        still = MediaFrameExtractor().extract(item)

        assert still.image.size == (32, 24)
        assert still.frame_ref.startswith("video:clip.avi@")
        red, green, blue = still.image.getpixel((16, 12))
        assert red > 200 and blue < 60
