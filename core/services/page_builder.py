"""Pagination of a media collection into album pages.

The whole transformation is a pure function of its inputs: callers re-run
`compute_pages` whenever the collection (or the capacity policy) changes and
throw the previous result away.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from core.models import AlbumPage, MediaItem, PageKind, timestamp_key
from core.services.classifier import MediaClassifier
from core.services.date_grouper import DateGrouper

DEFAULT_PAGE_CAPACITY = 4
VIDEOS_TITLE = "Videos"
FAVORITES_TITLE = "Favorites"


@dataclass(frozen=True)
class PageCapacityConfig:
    """Page capacity policy, shared by dated, video and favorite sections."""

    items_per_page: int = DEFAULT_PAGE_CAPACITY

    def __post_init__(self) -> None:
        if self.items_per_page < 1:
            raise ValueError(f"items_per_page must be >= 1, got {self.items_per_page}")


def format_index_header(day: date) -> str:
    """Long-form date used on index pages, e.g. "January 5, 2025"."""
    return f"{day:%B} {day.day}, {day.year}"


def chronological(items: Iterable[MediaItem], newest_first: bool = False) -> list[MediaItem]:
    """Stable sort by effective date; equal dates keep their input order."""
    return sorted(
        items, key=lambda it: timestamp_key(it.effective_date), reverse=newest_first
    )


def _chunks(items: Sequence[MediaItem], size: int) -> list[tuple[MediaItem, ...]]:
    return [tuple(items[i : i + size]) for i in range(0, len(items), size)]


class PageBuilder:
    """Builds the ordered page sequence: dated sections, videos, favorites."""

    def __init__(
        self,
        classifier: MediaClassifier | None = None,
        grouper: DateGrouper | None = None,
    ) -> None:
        self._classifier = classifier or MediaClassifier()
        self._grouper = grouper or DateGrouper()

    def build(
        self, items: Iterable[MediaItem], capacity: PageCapacityConfig | None = None
    ) -> list[AlbumPage]:
        """Return the pages for `items`; an empty collection yields no pages."""
        per_page = (capacity or PageCapacityConfig()).items_per_page
        ordered = chronological(items)
        if not ordered:
            return []

        classified = self._classifier.classify(ordered)
        groups = self._grouper.group(classified.photos)
        pages: list[AlbumPage] = []

        def next_number() -> int:
            return len(pages) + 1

        for group in groups:
            number = next_number()
            pages.append(
                AlbumPage(
                    id=f"index-{number}",
                    date_header=format_index_header(group.day),
                    items=(),
                    page_number=number,
                    is_index_page=True,
                    kind=PageKind.INDEX,
                )
            )
            for chunk in _chunks(group.items, per_page):
                number = next_number()
                pages.append(
                    AlbumPage(id=f"page-{number}", date_header="", items=chunk, page_number=number)
                )

        if classified.videos:
            newest_first = chronological(classified.videos, newest_first=True)
            pages.extend(
                self._section(
                    prefix="videos",
                    title=VIDEOS_TITLE,
                    items=newest_first,
                    per_page=per_page,
                    kind=PageKind.VIDEO_SECTION,
                    first_number=next_number(),
                )
            )

        # Favorites keep the ascending order of the sorted input, like the dated sections.
        favorites = classified.favorites
        if favorites:
            pages.extend(
                self._section(
                    prefix="favorites",
                    title=FAVORITES_TITLE,
                    items=favorites,
                    per_page=per_page,
                    kind=PageKind.FAVORITES_SECTION,
                    first_number=next_number(),
                )
            )
        return pages

    @staticmethod
    def _section(
        prefix: str,
        title: str,
        items: Sequence[MediaItem],
        per_page: int,
        kind: PageKind,
        first_number: int,
    ) -> list[AlbumPage]:
        """Title page followed by fixed-capacity chunks of `items`."""
        section = [
            AlbumPage(
                id=f"{prefix}-index",
                date_header=title,
                items=(),
                page_number=first_number,
                is_index_page=True,
                kind=kind,
            )
        ]
        for chunk_no, chunk in enumerate(_chunks(items, per_page), start=1):
            section.append(
                AlbumPage(
                    id=f"{prefix}-{chunk_no}",
                    date_header="",
                    items=chunk,
                    page_number=first_number + chunk_no,
                    kind=kind,
                )
            )
        return section


def compute_pages(
    items: Iterable[MediaItem], capacity: PageCapacityConfig | None = None
) -> list[AlbumPage]:
    """Convenience wrapper around `PageBuilder().build`."""
    return PageBuilder().build(items, capacity)
