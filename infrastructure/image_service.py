"""Image decoding and data-URL embedding utilities.

Decodes photos with Pillow (HEIC/HEIF through pillow-heif when installed),
applies EXIF orientation, optionally bounds the longest side, and re-encodes
them as JPEG data URLs for offline documents.
"""

from __future__ import annotations

import asyncio
import base64
from collections import OrderedDict
import hashlib
import io
import os
from pathlib import Path
import threading
from typing import Any

from loguru import logger
from PIL import Image, ImageOps

try:  # pragma: no cover - optional dependency
    from pillow_heif import register_heif_opener  # type: ignore

    register_heif_opener()
    PIL_HEIF_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    PIL_HEIF_AVAILABLE = False

DATA_URL_PREFIX = "data:"
DEFAULT_JPEG_QUALITY = 80


def _compute_cache_key(path: str, size_key: int, quality: int) -> str:
    """Compute a stable cache key from path, mtime, size, requested side and quality."""
    try:
        st = os.stat(path)
        sig = f"{path}|{int(st.st_mtime_ns)}|{int(st.st_size)}|{int(size_key)}|{quality}"
    except OSError:
        sig = f"{path}|0|0|{int(size_key)}|{quality}"
    return hashlib.sha1(sig.encode("utf-8", errors="ignore")).hexdigest()


class _LRUCache:
    def __init__(self, capacity: int) -> None:
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        """Return cached value for key, moving it to the MRU position."""
        with self._lock:
            value = self._data.get(key)
            if value is None:
                return None
            self._data.move_to_end(key)
            return value

    def put(self, key: str, value: str) -> None:
        """Insert or update `key`, evicting LRU entries when over capacity."""
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self._cap:
                self._data.popitem(last=False)

    def __len__(self) -> int:
        return len(self._data)


class ImageService:
    """Pillow-backed decoding and JPEG data-URL encoding with a small memory cache."""

    def __init__(
        self,
        settings: Any | None = None,
        quality: int = DEFAULT_JPEG_QUALITY,
        max_side: int = 0,
    ) -> None:
        """Initialize encoder options, overridable from `export.*` settings."""
        self._quality = quality
        self._max_side = max_side
        mem_cap = 256
        if settings is not None:
            self._quality = settings.get_int("export.jpeg_quality", quality)
            self._max_side = settings.get_int("export.max_side", max_side)
            mem_cap = settings.get_int("export.cache_entries", mem_cap)
        self._cache = _LRUCache(mem_cap)

    @property
    def quality(self) -> int:
        return self._quality

    def load(self, path: str, requested_side: int = 0) -> Image.Image:
        """Decode `path` into an RGB image bounded by `requested_side` (0 = natural size)."""
        with Image.open(path) as im:  # pillow-heif registers opener for HEIC
            try:
                im = ImageOps.exif_transpose(im)
            except (OSError, ValueError, AttributeError):
                pass
            im = im.convert("RGB")
            if requested_side and requested_side > 0:
                im.thumbnail((requested_side, requested_side), Image.Resampling.LANCZOS)
            im.load()
            return im

    def encode_data_url(self, image: Image.Image) -> str:
        """Encode `image` as a base64 JPEG data URL."""
        buf = io.BytesIO()
        image.save(buf, "JPEG", quality=self._quality)
        payload = base64.b64encode(buf.getvalue()).decode("ascii")
        return f"data:image/jpeg;base64,{payload}"

    def to_data_url(self, source: str) -> str:
        """Blocking conversion of a media reference into a JPEG data URL.

        Raises:
            ValueError: `source` is not a local file.
            OSError: the file cannot be read or decoded.
        """
        if source.startswith(DATA_URL_PREFIX):
            return source
        if "://" in source or not Path(source).is_file():
            raise ValueError(f"not a readable local file: {source}")
        key = _compute_cache_key(source, self._max_side, self._quality)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        data_url = self.encode_data_url(self.load(source, self._max_side))
        self._cache.put(key, data_url)
        logger.debug("Embedded {} ({} chars)", source, len(data_url))
        return data_url


class PillowMediaEmbedder:
    """`MediaEmbedder` running `ImageService` conversions off the event loop."""

    def __init__(self, image_service: ImageService | None = None) -> None:
        self._images = image_service or ImageService()

    async def embed(self, source: str) -> str:
        return await asyncio.to_thread(self._images.to_data_url, source)
