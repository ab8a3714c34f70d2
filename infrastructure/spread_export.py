"""Favorites export as book spreads (multi-page PDF or a zip of JPEGs)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import io
from pathlib import Path
import zipfile

from loguru import logger
from PIL import Image, ImageDraw, ImageFont, ImageOps

from core.exceptions import ExportError
from core.models import MediaItem
from core.services.page_builder import DEFAULT_PAGE_CAPACITY
from infrastructure.export_serializer import album_file_stem
from infrastructure.image_service import ImageService

SPREAD_WIDTH = 1600
PAGE_WIDTH = 800
PAGE_HEIGHT = 600
PAGE_PADDING = 32
TITLE_HEIGHT = 56
FRAME_PADDING = 12
CAPTION_HEIGHT = 25
BACKGROUND = (255, 255, 224)
RULE_COLOR = (222, 230, 238)
PLACEHOLDER = (220, 220, 220)


@dataclass
class Spread:
    left: list[MediaItem]
    right: list[MediaItem]
    title: str = ""


def plan_spreads(
    favorites: Sequence[MediaItem], album_name: str = "", per_page: int = DEFAULT_PAGE_CAPACITY
) -> list[Spread]:
    """Split favorites into two-page spreads; the first spread carries the title."""
    per_spread = per_page * 2
    spreads: list[Spread] = []
    for start in range(0, len(favorites), per_spread):
        chunk = list(favorites[start : start + per_spread])
        spreads.append(
            Spread(
                left=chunk[:per_page],
                right=chunk[per_page:],
                title=f"{album_name or 'Album'} - Favorites" if start == 0 else "",
            )
        )
    return spreads


class SpreadExporter:
    """Renders favorite spreads with Pillow."""

    def __init__(self, image_service: ImageService | None = None) -> None:
        self._images = image_service or ImageService()

    def render_spread(self, spread: Spread) -> Image.Image:
        canvas = Image.new("RGB", (SPREAD_WIDTH, PAGE_HEIGHT), BACKGROUND)
        draw = ImageDraw.Draw(canvas)
        for y in range(0, PAGE_HEIGHT, 20):
            draw.line([(0, y), (SPREAD_WIDTH, y)], fill=RULE_COLOR)
        draw.line([(PAGE_WIDTH, 0), (PAGE_WIDTH, PAGE_HEIGHT)], fill=(180, 180, 180), width=1)

        top = PAGE_PADDING
        if spread.title:
            font = ImageFont.load_default()
            width = draw.textlength(spread.title, font=font)
            origin = ((PAGE_WIDTH - width) / 2, PAGE_PADDING)
            draw.text(origin, spread.title, fill=(44, 62, 80), font=font)
            top += TITLE_HEIGHT
        self._draw_grid(canvas, spread.left, 0, top)
        self._draw_grid(canvas, spread.right, PAGE_WIDTH, PAGE_PADDING)
        return canvas

    def _draw_grid(self, canvas: Image.Image, items: list[MediaItem], x0: int, top: int) -> None:
        """Place up to four polaroids in a 2x2 grid on one page."""
        cell_w = (PAGE_WIDTH - 2 * PAGE_PADDING) // 2
        cell_h = (PAGE_HEIGHT - top - PAGE_PADDING) // 2
        side = max(1, min(cell_w, cell_h) - 2 * FRAME_PADDING - CAPTION_HEIGHT - 8)
        for idx, item in enumerate(items[:4]):
            col, row = idx % 2, idx // 2
            frame_w = side + 2 * FRAME_PADDING
            frame_h = side + 2 * FRAME_PADDING + CAPTION_HEIGHT
            fx = x0 + PAGE_PADDING + col * cell_w + (cell_w - frame_w) // 2
            fy = top + row * cell_h + (cell_h - frame_h) // 2
            canvas.paste(Image.new("RGB", (frame_w, frame_h), (255, 255, 255)), (fx, fy))
            canvas.paste(self._photo_tile(item, side), (fx + FRAME_PADDING, fy + FRAME_PADDING))

    def _photo_tile(self, item: MediaItem, side: int) -> Image.Image:
        try:
            img = self._images.load(item.source)
            return ImageOps.fit(img, (side, side), Image.Resampling.LANCZOS)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.warning("Could not load {} for spread, using placeholder: {}", item.source, ex)
            return Image.new("RGB", (side, side), PLACEHOLDER)

    def _render_all(self, favorites: Sequence[MediaItem], album_name: str) -> list[Image.Image]:
        if not favorites:
            raise ExportError("No favorites to export")
        return [self.render_spread(s) for s in plan_spreads(favorites, album_name)]

    def export_pdf(
        self, favorites: Sequence[MediaItem], album_name: str, out_dir: str | Path
    ) -> Path:
        """Write `<stem>-favorites.pdf`, one spread per page."""
        spreads = self._render_all(favorites, album_name)
        target = Path(out_dir) / f"{album_file_stem(album_name)}-favorites.pdf"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            spreads[0].save(target, "PDF", save_all=True, append_images=spreads[1:], resolution=96)
        except OSError as ex:
            raise ExportError(f"could not write {target}: {ex}") from ex
        logger.info("Exported {} favorite spreads to {}", len(spreads), target)
        return target

    def export_jpeg_zip(
        self, favorites: Sequence[MediaItem], album_name: str, out_dir: str | Path
    ) -> Path:
        """Write `<stem>-favorites-spreads.zip` holding spread-01.jpg, spread-02.jpg, ..."""
        spreads = self._render_all(favorites, album_name)
        target = Path(out_dir) / f"{album_file_stem(album_name)}-favorites-spreads.zip"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for number, spread in enumerate(spreads, start=1):
                    buf = io.BytesIO()
                    spread.save(buf, "JPEG", quality=90)
                    zf.writestr(f"spread-{number:02d}.jpg", buf.getvalue())
        except OSError as ex:
            raise ExportError(f"could not write {target}: {ex}") from ex
        logger.info("Exported {} favorite spreads to {}", len(spreads), target)
        return target
