"""Best-effort capture metadata extraction (EXIF, filesystem and file name).

Nothing in here raises for bad input: callers get `CaptureInfo()` defaults
when a file cannot be read, and pagination falls back to the upload date.
"""

from __future__ import annotations

from datetime import datetime
import os
from pathlib import Path
import re
from typing import Any

from loguru import logger
from PIL import Image

from core.models import CaptureMetadata, Coordinates
from core.services.interfaces import CaptureInfo

# Optional rawpy for RAW metadata (DNG)
try:  # pragma: no cover - optional dependency
    import rawpy  # type: ignore

    RAWPY_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    RAWPY_AVAILABLE = False

EXIF_DT_FMT = "%Y:%m:%d %H:%M:%S"

# EXIF tags and IFD pointers
TAG_MAKE = 271
TAG_MODEL = 272
TAG_DATETIME = 306
TAG_EXIF_IFD = 0x8769
TAG_GPS_IFD = 0x8825
TAG_EXPOSURE_TIME = 33434
TAG_FNUMBER = 33437
TAG_ISO = 34855
TAG_DATETIME_ORIGINAL = 36867
TAG_DATETIME_DIGITIZED = 36868
TAG_FOCAL_LENGTH = 37386
TAG_LENS_MODEL = 42036

_LOCATION_PATTERNS = [
    re.compile(r"IMG[_-]\d+[_-](?P<place>[A-Za-z\s]+)", re.IGNORECASE),  # IMG_123_Paris
    re.compile(r"DSC[_-](?P<place>[A-Za-z\s]+)[_-]", re.IGNORECASE),  # DSC_London_123
    re.compile(r"(?P<place>[A-Za-z\s]+)[_-]\d+"),  # Paris_123, Paris-2024
    re.compile(r"^(?P<place>[A-Za-z\s]{3,})$"),  # Paris
    re.compile(r"(?P<place>[A-Za-z\s]+)[_-](?:photo|pic|img)", re.IGNORECASE),  # Paris_photo
    re.compile(r"^(?P<place>[A-Za-z\s]+)[_-]"),  # Paris_
    re.compile(r"[_-](?P<place>[A-Za-z\s]+)$"),  # _Paris
]
_CAMERA_WORDS = re.compile(r"\b(photo|pic|img|image|dsc|camera)\b", re.IGNORECASE)


def parse_exif_datetime(value: Any) -> datetime | None:
    """Parse an EXIF timestamp ("YYYY:MM:DD HH:MM:SS" or ISO-like); None on failure."""
    if not value:
        return None
    text = str(value).strip().rstrip("\x00")
    try:
        if len(text) >= 19 and text[4] == ":" and text[7] == ":":
            return datetime.strptime(text[:19], EXIF_DT_FMT)
        return datetime.fromisoformat(text.replace("/", "-"))
    except (ValueError, TypeError):
        return None


def get_filesystem_modified_datetime(path: str) -> datetime | None:
    """Best-effort file modification time."""
    try:
        return datetime.fromtimestamp(os.path.getmtime(path))
    except (OSError, ValueError) as ex:
        logger.debug("getmtime failed for {}: {}", path, ex)
        return None


def location_from_filename(filename: str) -> str | None:
    """Guess a place name from common file naming patterns, e.g. "IMG_123_Paris.jpg"."""
    stem = Path(filename).stem
    for pattern in _LOCATION_PATTERNS:
        match = pattern.search(stem)
        if not match:
            continue
        place = match.group("place")
        if not place or not 2 < len(place) < 30:
            continue
        cleaned = re.sub(r"[_-]", " ", place)
        cleaned = re.sub(r"\b\w", lambda m: m.group(0).upper(), cleaned).strip()
        if cleaned and not cleaned.isdigit() and not _CAMERA_WORDS.search(cleaned):
            return cleaned
    return None


def format_coordinates(coords: Coordinates) -> str:
    return f"{coords.lat:.4f}, {coords.lng:.4f}"


def _rational(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def _dms_to_degrees(dms: Any, ref: Any) -> float | None:
    try:
        degrees, minutes, seconds = (float(v) for v in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    result = degrees + minutes / 60.0 + seconds / 3600.0
    if str(ref).upper().startswith(("S", "W")):
        result = -result
    return result


def _format_settings(exif_ifd: dict[int, Any]) -> str | None:
    parts: list[str] = []
    focal = _rational(exif_ifd.get(TAG_FOCAL_LENGTH))
    if focal:
        parts.append(f"{focal:g}mm")
    fnumber = _rational(exif_ifd.get(TAG_FNUMBER))
    if fnumber:
        parts.append(f"f/{fnumber:g}")
    exposure = _rational(exif_ifd.get(TAG_EXPOSURE_TIME))
    if exposure:
        parts.append(f"1/{round(1 / exposure)}s" if exposure < 1 else f"{exposure:g}s")
    iso = exif_ifd.get(TAG_ISO)
    if isinstance(iso, (tuple, list)):
        iso = iso[0] if iso else None
    if iso:
        parts.append(f"ISO {iso}")
    return " ".join(parts) or None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip().strip("\x00").strip()
    return text or None


class ExifMetadataExtractor:
    """`MetadataExtractor` reading EXIF through Pillow (rawpy fallback for DNG dates)."""

    def __init__(self, use_filename_locations: bool = True) -> None:
        self._use_filename_locations = use_filename_locations

    def extract(self, source: str) -> CaptureInfo:
        """Return capture info for `source`; any failure yields defaults."""
        try:
            info = self._read_exif(source)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.debug("EXIF read failed for {}: {}", source, ex)
            info = CaptureInfo(captured_at=self._read_raw_datetime(source))

        if info.location is None and self._use_filename_locations:
            info.location = location_from_filename(source)
        if info.captured_at is None:
            info.captured_at = get_filesystem_modified_datetime(source)
        return info

    def _read_exif(self, path: str) -> CaptureInfo:
        with Image.open(path) as im:
            exif = im.getexif()
        if not exif:
            return CaptureInfo()
        exif_ifd: dict[int, Any] = dict(exif.get_ifd(TAG_EXIF_IFD) or {})
        gps_ifd: dict[int, Any] = dict(exif.get_ifd(TAG_GPS_IFD) or {})

        captured_at = None
        for raw in (
            exif_ifd.get(TAG_DATETIME_ORIGINAL),
            exif.get(TAG_DATETIME_ORIGINAL),
            exif.get(TAG_DATETIME),
            exif_ifd.get(TAG_DATETIME_DIGITIZED),
        ):
            captured_at = parse_exif_datetime(raw)
            if captured_at is not None:
                break

        coordinates = None
        if gps_ifd:
            lat = _dms_to_degrees(gps_ifd.get(2), gps_ifd.get(1, "N"))
            lng = _dms_to_degrees(gps_ifd.get(4), gps_ifd.get(3, "E"))
            if lat is not None and lng is not None:
                coordinates = Coordinates(lat=lat, lng=lng)

        make = _clean_text(exif.get(TAG_MAKE))
        model = _clean_text(exif.get(TAG_MODEL))
        if make and model and model.lower().startswith(make.lower()):
            camera = model
        else:
            camera = " ".join(p for p in (make, model) if p) or None

        metadata = CaptureMetadata(
            camera=camera,
            lens=_clean_text(exif_ifd.get(TAG_LENS_MODEL)),
            settings=_format_settings(exif_ifd),
            coordinates=coordinates,
        )
        location = format_coordinates(coordinates) if coordinates else None
        return CaptureInfo(captured_at=captured_at, location=location, metadata=metadata)

    @staticmethod
    def _read_raw_datetime(path: str) -> datetime | None:
        """Try rawpy for DNG files whose EXIF Pillow cannot parse."""
        if not (RAWPY_AVAILABLE and path.lower().endswith(".dng")):
            return None
        try:
            with rawpy.imread(path) as raw:  # type: ignore[attr-defined]
                md = getattr(raw, "metadata", None)
                ts = None
                if md is not None:
                    ts = getattr(md, "timestamp", None) or getattr(md, "shooting_datetime", None)
                if isinstance(ts, datetime):
                    return ts
                if ts:
                    return datetime.fromtimestamp(float(ts))
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.debug("rawpy EXIF fallback failed for {}: {}", path, ex)
        return None
