"""ViewModel orchestrating media loading, pagination and exports."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from core.models import Album, AlbumPage, MediaItem
from core.services.album_service import create_album
from core.services.interfaces import ExportResult
from core.services.navigation import BookNavigator
from core.services.page_builder import PageBuilder, PageCapacityConfig
from infrastructure.export_serializer import ExportSerializer
from infrastructure.media_library import MediaLibrary
from infrastructure.spread_export import SpreadExporter


class AlbumVM:
    """Album view-model.

    Holds the current (immutable) item collection. Every edit replaces the
    collection and re-derives album and pages from scratch.
    """

    def __init__(
        self,
        library: MediaLibrary | None = None,
        builder: PageBuilder | None = None,
        capacity: PageCapacityConfig | None = None,
        name: str = "",
    ) -> None:
        """Create an AlbumVM.

        Args:
            library: Source of `MediaItem`s (defaults to `MediaLibrary`).
            builder: Pagination service (defaults to `PageBuilder`).
            capacity: Items per page policy.
            name: Album display name.
        """
        self._library = library or MediaLibrary()
        self._builder = builder or PageBuilder()
        self._capacity = capacity or PageCapacityConfig()
        self._name = name
        self._items: tuple[MediaItem, ...] = ()
        self.album: Album = create_album((), name)
        self.pages: list[AlbumPage] = []

    @property
    def items(self) -> tuple[MediaItem, ...]:
        return self._items

    @property
    def name(self) -> str:
        return self._name

    def load_folder(self, folder: str | Path, recursive: bool = False) -> None:
        """Replace the collection with the media found in `folder`."""
        self.set_items(self._library.scan(folder, recursive=recursive))

    def set_items(self, items: Iterable[MediaItem]) -> None:
        self._items = tuple(items)
        self._recompute()

    def rename(self, name: str) -> None:
        self._name = name
        self._recompute()

    def set_capacity(self, capacity: PageCapacityConfig) -> None:
        self._capacity = capacity
        self._recompute()

    def toggle_favorite(self, item_id: str) -> bool:
        """Flip the favorite flag of a photo; returns the new state."""
        item = self._find(item_id)
        if not item.is_photo:
            raise ValueError(f"only photos can be favorites: {item_id}")
        updated = item.with_changes(is_favorite=not item.is_favorite)
        self._replace(updated)
        return updated.is_favorite

    def set_description(self, item_id: str, description: str) -> None:
        self._replace(self._find(item_id).with_changes(description=description or None))

    def navigator(self, viewport_width: int = 1024) -> BookNavigator:
        return BookNavigator(self.pages, viewport_width=viewport_width)

    def export_html(self, serializer: ExportSerializer, out_dir: str | Path) -> ExportResult:
        """Export the current pages; the in-memory album is untouched on failure."""
        return asyncio.run(serializer.export(self.album, self.pages, out_dir))

    def export_favorites(
        self, exporter: SpreadExporter, out_dir: str | Path, fmt: str = "pdf"
    ) -> Path:
        favorites = self.album.favorites
        if fmt == "pdf":
            return exporter.export_pdf(favorites, self._name, out_dir)
        if fmt == "jpeg":
            return exporter.export_jpeg_zip(favorites, self._name, out_dir)
        raise ValueError(f"unknown favorites format: {fmt}")

    def _find(self, item_id: str) -> MediaItem:
        for item in self._items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)

    def _replace(self, updated: MediaItem) -> None:
        self._items = tuple(updated if it.id == updated.id else it for it in self._items)
        self._recompute()

    def _recompute(self) -> None:
        self.album = create_album(self._items, self._name)
        self.pages = self._builder.build(self._items, self._capacity)
        logger.debug("Recomputed {} pages for {} items", len(self.pages), len(self._items))
