"""Core domain models for media items, albums and album pages."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any


class MediaKind(str, Enum):
    """Kind of a media item; fixed for the lifetime of the item."""

    PHOTO = "photo"
    VIDEO = "video"


class PageKind(str, Enum):
    """Explicit page tag carried by every `AlbumPage`."""

    ORDINARY = "ordinary"
    INDEX = "index"
    VIDEO_SECTION = "videoSection"
    FAVORITES_SECTION = "favoritesSection"


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class CaptureMetadata:
    """Structured capture metadata; every field is optional."""

    camera: str | None = None
    lens: str | None = None
    settings: str | None = None
    coordinates: Coordinates | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.camera is None
            and self.lens is None
            and self.settings is None
            and self.coordinates is None
        )


def local_day(value: datetime) -> date:
    """Calendar day of `value` in local time (naive values are taken as local)."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.date()


def timestamp_key(value: datetime) -> float:
    """Comparable POSIX timestamp so naive and aware datetimes can be ordered together."""
    return value.timestamp()


@dataclass(frozen=True)
class MediaItem:
    """A single photo or video.

    `source` is an opaque media reference (a path or URL) handed to the
    embedding and metadata collaborators untouched.
    """

    id: str
    source: str
    name: str
    size_bytes: int
    kind: MediaKind
    uploaded_at: datetime
    captured_at: datetime | None = None
    description: str | None = None
    location: str | None = None
    metadata: CaptureMetadata | None = None
    rotation: float | None = None
    duration: float | None = None
    thumbnail: str | None = None
    is_favorite: bool = False

    def __post_init__(self) -> None:
        if self.kind is MediaKind.PHOTO:
            if self.duration is not None or self.thumbnail is not None:
                raise ValueError(f"photo {self.id!r} cannot carry duration or thumbnail")
        elif self.location is not None or self.metadata is not None:
            raise ValueError(f"video {self.id!r} cannot carry location or capture metadata")

    @property
    def is_photo(self) -> bool:
        return self.kind is MediaKind.PHOTO

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @property
    def effective_date(self) -> datetime:
        """Capture date when known, otherwise the upload date."""
        return self.captured_at if self.captured_at is not None else self.uploaded_at

    @property
    def effective_day(self) -> date:
        return local_day(self.effective_date)

    def with_changes(self, **changes: Any) -> MediaItem:
        """Return a copy with `changes` applied; `id` and `kind` cannot change."""
        if "id" in changes or "kind" in changes:
            raise ValueError("id and kind are immutable")
        return replace(self, **changes)


@dataclass(frozen=True)
class Album:
    """In-memory album root; items are ordered by effective date ascending."""

    id: str
    name: str
    items: tuple[MediaItem, ...]
    created_at: datetime
    cover: MediaItem | None = None
    is_open: bool = False

    def __post_init__(self) -> None:
        expected = self.items[0] if self.items else None
        if self.cover is not expected:
            raise ValueError("album cover must be the chronologically first item")

    @property
    def favorites(self) -> list[MediaItem]:
        return [it for it in self.items if it.is_photo and it.is_favorite]


@dataclass(frozen=True)
class AlbumPage:
    """One page of the book: either an index (title) page or a page of items."""

    id: str
    date_header: str
    items: tuple[MediaItem, ...]
    page_number: int
    is_index_page: bool = False
    kind: PageKind = PageKind.ORDINARY

    def __post_init__(self) -> None:
        if self.is_index_page and self.items:
            raise ValueError(f"index page {self.id!r} must not hold items")

    @property
    def is_video_section(self) -> bool:
        return self.kind is PageKind.VIDEO_SECTION

    @property
    def is_favorites_section(self) -> bool:
        return self.kind is PageKind.FAVORITES_SECTION


@dataclass
class DateGroup:
    """Photos sharing one local calendar day, in first-seen order."""

    day: date
    items: list[MediaItem] = field(default_factory=list)
