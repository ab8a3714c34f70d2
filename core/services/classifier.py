"""Split a media collection into photo, video and favorite views."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from core.models import MediaItem


@dataclass
class ClassifiedMedia:
    """Views over the same `MediaItem` objects, each in input order."""

    photos: list[MediaItem] = field(default_factory=list)
    videos: list[MediaItem] = field(default_factory=list)
    favorites: list[MediaItem] = field(default_factory=list)


class MediaClassifier:
    """Classifies items by kind; only photos can be favorites."""

    def classify(self, items: Iterable[MediaItem]) -> ClassifiedMedia:
        result = ClassifiedMedia()
        for item in items:
            if item.is_video:
                result.videos.append(item)
                continue
            result.photos.append(item)
            if item.is_favorite:
                result.favorites.append(item)
        return result
