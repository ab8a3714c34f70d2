"""Build `MediaItem` collections from files on disk."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
import hashlib
import json
from pathlib import Path
import random
import subprocess

from loguru import logger

from core.exceptions import MediaLoadError
from core.models import MediaItem, MediaKind
from core.services.album_service import random_rotation
from core.services.interfaces import MetadataExtractor
from infrastructure.metadata import ExifMetadataExtractor, get_filesystem_modified_datetime

IMAGE_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".bmp",
    ".tif",
    ".tiff",
    ".heic",
    ".heif",
    ".dng",
}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".3gp", ".m4v", ".webm"}


def media_kind_for(path: Path) -> MediaKind | None:
    """Kind from the file extension; None for unsupported files."""
    ext = path.suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return MediaKind.PHOTO
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return None


def stable_media_id(path: Path) -> str:
    """Id derived from the resolved path so it survives re-imports."""
    return hashlib.sha1(str(path.resolve()).encode("utf-8", errors="ignore")).hexdigest()[:16]


def probe_video_duration(path: Path) -> float | None:
    """Duration in seconds via ffprobe; None when ffprobe is missing or fails."""
    cmd = [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30, check=False)
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as ex:
        logger.debug("ffprobe unavailable for {}: {}", path, ex)
        return None
    if result.returncode != 0:
        return None
    try:
        data = json.loads(result.stdout)
        return float(data["format"]["duration"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None


class MediaLibrary:
    """Scans folders and turns supported files into `MediaItem`s."""

    def __init__(
        self,
        extractor: MetadataExtractor | None = None,
        rng: random.Random | None = None,
        probe_videos: bool = True,
    ) -> None:
        self._extractor = extractor or ExifMetadataExtractor()
        self._rng = rng or random.Random()
        self._probe_videos = probe_videos

    def iter_media_files(self, folder: Path, recursive: bool = False) -> Iterator[Path]:
        pattern = "**/*" if recursive else "*"
        for path in sorted(folder.glob(pattern)):
            if path.is_file() and media_kind_for(path) is not None:
                yield path

    def scan(self, folder: str | Path, recursive: bool = False) -> list[MediaItem]:
        """Return items for every supported file in `folder`, in file-name order."""
        root = Path(folder)
        if not root.is_dir():
            raise MediaLoadError(f"media folder not found: {root}")
        items = self.load_files(self.iter_media_files(root, recursive))
        logger.info("Scanned {}: {} media items", root, len(items))
        return items

    def load_files(self, paths: Iterable[Path]) -> list[MediaItem]:
        uploaded_at = datetime.now()
        items: list[MediaItem] = []
        for path in paths:
            item = self.load_file(path, uploaded_at)
            if item is not None:
                items.append(item)
        return items

    def load_file(self, path: Path, uploaded_at: datetime | None = None) -> MediaItem | None:
        """Build one item; unsupported or unreadable files yield None."""
        kind = media_kind_for(path)
        if kind is None:
            return None
        try:
            size = path.stat().st_size
        except OSError as ex:
            logger.warning("Skipping unreadable file {}: {}", path, ex)
            return None

        common = {
            "id": stable_media_id(path),
            "source": str(path),
            "name": path.name,
            "size_bytes": size,
            "kind": kind,
            "uploaded_at": uploaded_at or datetime.now(),
            "rotation": random_rotation(self._rng),
        }
        if kind is MediaKind.VIDEO:
            duration = probe_video_duration(path) if self._probe_videos else None
            return MediaItem(
                captured_at=get_filesystem_modified_datetime(str(path)),
                duration=duration,
                **common,
            )

        info = self._extractor.extract(str(path))
        return MediaItem(
            captured_at=info.captured_at,
            location=info.location,
            metadata=None if info.metadata.is_empty else info.metadata,
            **common,
        )
