"""Offline export of album pages into one self-contained HTML document.

Video pages and video items are dropped, every remaining photo is embedded as
a data URL, and the document carries a small standalone runtime for paging and
the detail overlay. Per-photo embedding failures keep the original reference;
only assembling or writing the document can fail the export as a whole.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
import os
from pathlib import Path
import re
import tempfile
from typing import Any

from loguru import logger
from markupsafe import Markup

from core.exceptions import ExportError
from core.models import Album, AlbumPage, MediaItem, PageKind
from core.services.interfaces import (
    ExportResult,
    MediaEmbedder,
    PresentationRuleSource,
    RuleCollection,
)
from core.services.layout_scaler import ScalerConfig
from core.services.navigation import (
    DESKTOP_PAGES_PER_SPREAD,
    MOBILE_BREAKPOINT_PX,
    SWIPE_THRESHOLD_PX,
)
from infrastructure.export_template import BASE_CSS, DOCUMENT_TEMPLATE, RUNTIME_JS

DEFAULT_CONCURRENCY = 4
HEADER_ALLOWANCE_PX = 80
_STYLE_CLOSE = re.compile(r"</(style)", re.IGNORECASE)


def album_file_stem(album_name: str) -> str:
    """Album name reduced to `[a-z0-9_]`, safe to use inside an output directory."""
    return re.sub(r"[^a-z0-9]", "_", album_name, flags=re.IGNORECASE).lower() or "album"


def export_filename(album_name: str) -> str:
    """File name for an exported album: non-alphanumerics become "_", lower-cased."""
    return f"{album_file_stem(album_name)}_album.html"


def exportable_pages(pages: Sequence[AlbumPage]) -> list[AlbumPage]:
    """Photo-only view of `pages`: video section removed, stray videos filtered out."""
    result: list[AlbumPage] = []
    for page in pages:
        if page.kind is PageKind.VIDEO_SECTION:
            continue
        photos = tuple(it for it in page.items if it.is_photo)
        if photos != page.items:
            page = AlbumPage(
                id=page.id,
                date_header=page.date_header,
                items=photos,
                page_number=page.page_number,
                is_index_page=page.is_index_page,
                kind=page.kind,
            )
        result.append(page)
    return result


def photo_payload(item: MediaItem, data_url: str) -> dict[str, Any]:
    """JSON-ready photo entry consumed by the offline runtime."""
    meta = item.metadata
    coords = meta.coordinates if meta is not None else None
    return {
        "id": item.id,
        "name": item.name,
        "location": item.location,
        "description": item.description,
        "isFavorite": bool(item.is_favorite),
        "rotation": item.rotation or 0,
        "capturedAt": item.effective_date.isoformat(),
        "fileSize": item.size_bytes,
        "exifData": {
            "camera": meta.camera if meta else None,
            "lens": meta.lens if meta else None,
            "settings": meta.settings if meta else None,
            "coordinates": {"lat": coords.lat, "lng": coords.lng} if coords else None,
        },
        "dataUrl": data_url,
        "originalUrl": item.source,
    }


@dataclass
class ExportPayload:
    """Serialized album plus bookkeeping about degraded items."""

    data: dict[str, Any]
    fallback_ids: list[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.data["pages"])

    @property
    def item_count(self) -> int:
        return sum(len(p["photos"]) for p in self.data["pages"])


class ExportSerializer:
    """Builds offline HTML albums.

    Args:
        embedder: Converts media references into data URLs.
        rule_source: Supplies stylesheet text; None means base styles only.
        concurrency: Maximum conversions in flight.
        scaler: Overflow thresholds forwarded to the runtime.
    """

    def __init__(
        self,
        embedder: MediaEmbedder,
        rule_source: PresentationRuleSource | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        scaler: ScalerConfig | None = None,
    ) -> None:
        self._embedder = embedder
        self._rules = rule_source
        self._concurrency = max(1, int(concurrency or 1))
        self._scaler = scaler or ScalerConfig()

    async def build_payload(self, album_name: str, pages: Sequence[AlbumPage]) -> ExportPayload:
        """Embed every photo and return the payload in page order."""
        kept = exportable_pages(pages)
        sources = list(dict.fromkeys(it.source for page in kept for it in page.items))
        converted = await self._convert_all(sources)

        fallback_ids: list[str] = []
        page_dicts: list[dict[str, Any]] = []
        for page in kept:
            photos = []
            for item in page.items:
                data_url = converted.get(item.source)
                if data_url is None:
                    data_url = item.source
                    if item.id not in fallback_ids:
                        fallback_ids.append(item.id)
                photos.append(photo_payload(item, data_url))
            page_dicts.append(
                {
                    "id": page.id,
                    "dateHeader": page.date_header,
                    "pageNumber": page.page_number,
                    "isIndexPage": page.is_index_page,
                    "kind": page.kind.value,
                    "photos": photos,
                }
            )
        return ExportPayload(
            data={"albumName": album_name, "pages": page_dicts}, fallback_ids=fallback_ids
        )

    async def _convert_all(self, sources: list[str]) -> dict[str, str]:
        """Convert sources concurrently; failures are simply absent from the result."""
        semaphore = asyncio.Semaphore(self._concurrency)

        async def convert(source: str) -> str | None:
            async with semaphore:
                try:
                    return await self._embedder.embed(source)
                except Exception as ex:  # pylint: disable=broad-exception-caught
                    logger.warning("Embedding failed for {}, keeping original: {}", source, ex)
                    return None

        results = await asyncio.gather(*(convert(s) for s in sources))
        return {src: res for src, res in zip(sources, results) if res is not None}

    def collect_rules(self) -> RuleCollection:
        if self._rules is None:
            return RuleCollection(css="")
        return self._rules.collect()

    def runtime_config(self) -> dict[str, Any]:
        cfg = self._scaler
        return {
            "mobileBreakpoint": MOBILE_BREAKPOINT_PX,
            "pagesPerSpread": DESKTOP_PAGES_PER_SPREAD,
            "swipeThreshold": SWIPE_THRESHOLD_PX,
            "favoritesKind": PageKind.FAVORITES_SECTION.value,
            "headerAllowance": HEADER_ALLOWANCE_PX,
            "overflowTolerance": cfg.overflow_tolerance,
            "fitRatio": cfg.fit_ratio,
            "minScale": cfg.min_scale,
            "baseGap": cfg.base_gap_px,
            "minGap": cfg.min_gap_px,
        }

    def render_document(self, payload: ExportPayload, rules: RuleCollection) -> str:
        """Render the final HTML; raises `ExportError` on any rendering problem."""
        title = payload.data["albumName"] or "Album"
        try:
            return DOCUMENT_TEMPLATE.render(
                title=title,
                base_css=Markup(BASE_CSS),
                collected_css=Markup(_STYLE_CLOSE.sub(r"<\\/\1", rules.css)),
                runtime_config=self.runtime_config(),
                album_data=payload.data,
                runtime_js=Markup(RUNTIME_JS),
            )
        except (TypeError, ValueError) as ex:
            raise ExportError(f"could not render album document: {ex}") from ex

    async def render(self, album_name: str, pages: Sequence[AlbumPage]) -> str:
        """Return the complete offline document for `pages`."""
        payload = await self.build_payload(album_name, pages)
        return self.render_document(payload, self.collect_rules())

    async def export(
        self, album: Album, pages: Sequence[AlbumPage], out_dir: str | Path
    ) -> ExportResult:
        """Write the offline document for `album` into `out_dir`.

        Raises:
            ExportError: the document could not be rendered or written; no file
                is left behind in that case.
        """
        payload = await self.build_payload(album.name, pages)
        rules = self.collect_rules()
        document = self.render_document(payload, rules)
        target = Path(out_dir) / export_filename(album.name)
        write_atomic(target, document)
        logger.info(
            "Exported {} pages ({} photos, {} fallbacks) to {}",
            payload.page_count,
            payload.item_count,
            len(payload.fallback_ids),
            target,
        )
        return ExportResult(
            path=target,
            page_count=payload.page_count,
            item_count=payload.item_count,
            fallback_ids=payload.fallback_ids,
            skipped_sources=rules.skipped,
        )


def write_atomic(target: Path, text: str) -> None:
    """Write `text` to `target` through a temp file so failures leave nothing behind."""
    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=target.parent, suffix=".tmp", delete=False
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
        os.replace(tmp_name, target)
    except OSError as ex:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
        raise ExportError(f"could not write {target}: {ex}") from ex
