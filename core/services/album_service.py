"""Album assembly helpers and small display formatters."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
import random

from core.models import Album, MediaItem
from core.services.page_builder import chronological

MAIN_ALBUM_ID = "main-album"
MAX_ROTATION_DEG = 4.0

_SIZE_UNITS = ["B", "KB", "MB", "GB"]


def create_album(
    items: Iterable[MediaItem], name: str = "", album_id: str = MAIN_ALBUM_ID
) -> Album:
    """Build an album with items in chronological order and the first item as cover."""
    ordered = tuple(chronological(items))
    return Album(
        id=album_id,
        name=name,
        items=ordered,
        created_at=datetime.now(),
        cover=ordered[0] if ordered else None,
    )


def format_file_size(size_bytes: int) -> str:
    """Human readable size, e.g. "0 B", "512 B", "1.44 MB"."""
    if size_bytes <= 0:
        return "0 B"
    exp = 0
    while size_bytes >= 1024 ** (exp + 1) and exp < len(_SIZE_UNITS) - 1:
        exp += 1
    value = round(size_bytes / (1024**exp), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exp]}"


def random_rotation(rng: random.Random | None = None) -> float:
    """Small tilt in degrees for the scattered polaroid look."""
    source = rng or random
    return (source.random() - 0.5) * 2 * MAX_ROTATION_DEG
