# Path: core/indexing/scanner.py
# Purpose: Scan folders and collect supported image and video files as media items.
# Layer: core/indexing.
# Details: Item identity is "<folder name>/<relative path>"; last_modified is the file mtime in milliseconds.

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from core.models.domain import FileSource, MediaItem, MediaKind

IMAGE_EXTENSIONS = {
    ".jpg", ".jpeg", ".jpe", ".jfif", ".png", ".gif", ".webp", ".bmp",
    ".heic", ".heif", ".avif", ".tif", ".tiff",
}
VIDEO_EXTENSIONS = {
    ".mp4", ".webm", ".ogg", ".mov", ".avi", ".mkv", ".m4v", ".flv", ".wmv", ".3gp", ".mpg", ".mpeg",
}
SUPPORTED_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS


def media_kind_for(path: Path | str) -> Optional[MediaKind]:
    """Return the media kind implied by the file extension, or None for unsupported files."""

    suffix = Path(path).suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if suffix in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return None


def media_item_from_file(path: Path, identity: Optional[str] = None) -> Optional[MediaItem]:
    """Build a media item for a single file; returns None if the file type is unsupported."""

    kind = media_kind_for(path)
    if kind is None:
        return None
    stat = path.stat()
    return MediaItem(
        path=identity or path.name,
        kind=kind,
        last_modified=stat.st_mtime_ns // 1_000_000,
        source=FileSource(path),
    )


class MediaScanner:
    """Scan a folder for supported image and video files."""

    def __init__(self, root: Path, recursive: bool = True) -> None:
        self.root = Path(root)
        self.recursive = recursive

    def scan(self) -> List[MediaItem]:
        """Return discovered media items sorted by their identity path."""

        items: List[MediaItem] = []
        for path in self._iter_media_files():
            relative = path.relative_to(self.root).as_posix()
            item = media_item_from_file(path, identity=f"{self.root.name}/{relative}")
            if item is not None:
                items.append(item)
        return sorted(items, key=lambda item: item.path.lower())

    def _iter_media_files(self) -> Iterable[Path]:
        """Yield media files under the root directory."""

        pattern = self.root.rglob("*") if self.recursive else self.root.glob("*")
        for path in pattern:
            if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS:
                yield path
