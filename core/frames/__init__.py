# Path: core/frames/__init__.py
# Purpose: Package initializer for still-frame extraction.
# Layer: core/frames.
# Details: Exposes the extractor contract and the default image/video implementation.

from .extractor import DEFAULT_MAX_SAMPLE_SECONDS, FrameExtractor, MediaFrameExtractor, Still, sample_time

__all__ = ["DEFAULT_MAX_SAMPLE_SECONDS", "FrameExtractor", "MediaFrameExtractor", "Still", "sample_time"]
