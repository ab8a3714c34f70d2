"""Book navigation state decoupled from any UI toolkit.

The exported offline runtime implements the same rules in JavaScript; the
constants below are injected into that script so both stay in step.
"""

from __future__ import annotations

from collections.abc import Sequence

from core.models import AlbumPage, MediaItem

MOBILE_BREAKPOINT_PX = 768
SWIPE_THRESHOLD_PX = 50
DESKTOP_PAGES_PER_SPREAD = 2
MOBILE_PAGES_PER_SPREAD = 1


class BookNavigator:
    """Tracks the current page index and the open detail overlay."""

    def __init__(self, pages: Sequence[AlbumPage], viewport_width: int = 1024) -> None:
        self._pages = list(pages)
        self._index = 0
        self._viewport_width = viewport_width
        self.selected: MediaItem | None = None

    # State
    @property
    def index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return len(self._pages)

    @property
    def is_mobile(self) -> bool:
        return self._viewport_width < MOBILE_BREAKPOINT_PX

    @property
    def step(self) -> int:
        return MOBILE_PAGES_PER_SPREAD if self.is_mobile else DESKTOP_PAGES_PER_SPREAD

    def resize(self, viewport_width: int) -> None:
        self._viewport_width = viewport_width

    # Paging
    def go_to(self, index: int) -> bool:
        """Move to `index`; out-of-range targets are ignored. Returns True on a move."""
        if 0 <= index < self.total:
            self._index = index
            return True
        return False

    def next(self) -> bool:
        return self.go_to(self._index + self.step)

    def prev(self) -> bool:
        return self.go_to(self._index - self.step)

    @property
    def can_go_prev(self) -> bool:
        return self._index > 0

    @property
    def can_go_next(self) -> bool:
        return self._index < self.total - self.step

    def visible_pages(self) -> list[AlbumPage]:
        return self._pages[self._index : self._index + self.step]

    def page_indicator(self) -> str:
        first = self._index + 1
        if self.is_mobile:
            return f"Page {first} of {self.total}"
        last = min(self._index + DESKTOP_PAGES_PER_SPREAD, self.total)
        return f"Page {first}-{last} of {self.total}"

    # Detail overlay
    def open_detail(self, item: MediaItem) -> None:
        self.selected = item

    def close_detail(self) -> None:
        self.selected = None

    # Input
    def handle_key(self, key: str) -> bool:
        """Apply a keyboard event; arrows are ignored while the overlay is open."""
        if key == "Escape":
            if self.selected is None:
                return False
            self.close_detail()
            return True
        if self.selected is not None:
            return False
        if key == "ArrowLeft":
            return self.prev()
        if key == "ArrowRight":
            return self.next()
        return False

    def handle_swipe(self, start_x: float, end_x: float) -> bool:
        """Swipe left pages forward, swipe right pages back."""
        diff = start_x - end_x
        if abs(diff) <= SWIPE_THRESHOLD_PX:
            return False
        return self.next() if diff > 0 else self.prev()
