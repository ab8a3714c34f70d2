from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
import struct
import zlib

from PIL import Image
import pytest

from core.models import MediaItem, MediaKind

UPLOADED = datetime(2025, 6, 1, 12, 0, 0)


def make_photo(
    item_id: str,
    captured_at: datetime | None,
    favorite: bool = False,
    source: str | None = None,
    **extra,
) -> MediaItem:
    return MediaItem(
        id=item_id,
        source=source or f"/media/{item_id}.jpg",
        name=f"{item_id}.jpg",
        size_bytes=1024,
        kind=MediaKind.PHOTO,
        uploaded_at=extra.pop("uploaded_at", UPLOADED),
        captured_at=captured_at,
        is_favorite=favorite,
        **extra,
    )


def make_video(item_id: str, captured_at: datetime | None, **extra) -> MediaItem:
    return MediaItem(
        id=item_id,
        source=f"/media/{item_id}.mp4",
        name=f"{item_id}.mp4",
        size_bytes=4096,
        kind=MediaKind.VIDEO,
        uploaded_at=extra.pop("uploaded_at", UPLOADED),
        captured_at=captured_at,
        **extra,
    )


def write_image(path: Path, size: tuple[int, int] = (40, 30), color=(200, 40, 40)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path)
    return path


class FakeEmbedder:
    """Async embedder with per-source failures and delays."""

    def __init__(self, fail: set[str] | None = None, delays: dict[str, float] | None = None):
        self.fail = fail or set()
        self.delays = delays or {}
        self.calls: list[str] = []

    async def embed(self, source: str) -> str:
        self.calls.append(source)
        await asyncio.sleep(self.delays.get(source, 0))
        if source in self.fail:
            raise RuntimeError(f"cannot decode {source}")
        return f"data:image/jpeg;base64,{source}"


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


def write_oversized_png(path: Path, side: int = 20000) -> Path:
    """PNG header declaring `side` x `side` pixels, above Pillow's decompression-bomb limit."""

    def chunk(tag: bytes, data: bytes) -> bytes:
        body = tag + data
        return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body))

    header = struct.pack(">IIBBBBB", side, side, 8, 2, 0, 0, 0)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", header) + chunk(b"IEND", b""))
    return path
