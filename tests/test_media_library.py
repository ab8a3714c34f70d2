from __future__ import annotations

from pathlib import Path
import random

import pytest

from conftest import write_image, write_oversized_png
from core.exceptions import MediaLoadError
from core.models import MediaKind
from core.services.album_service import MAX_ROTATION_DEG
from infrastructure.media_library import MediaLibrary, media_kind_for, stable_media_id


@pytest.fixture
def media_folder(tmp_path: Path) -> Path:
    write_image(tmp_path / "beach_01.jpg")
    write_image(tmp_path / "IMG_0002.png")
    (tmp_path / "notes.txt").write_text("not media", encoding="utf-8")
    (tmp_path / "clip.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42")
    write_image(tmp_path / "nested" / "inner.jpg")
    return tmp_path


@pytest.fixture
def library() -> MediaLibrary:
    return MediaLibrary(rng=random.Random(7), probe_videos=False)


def test_media_kind_for():
    assert media_kind_for(Path("a.JPG")) is MediaKind.PHOTO
    assert media_kind_for(Path("a.heic")) is MediaKind.PHOTO
    assert media_kind_for(Path("a.mov")) is MediaKind.VIDEO
    assert media_kind_for(Path("a.txt")) is None


def test_scan_picks_supported_files(media_folder, library):
    items = library.scan(media_folder)
    assert sorted(it.name for it in items) == ["IMG_0002.png", "beach_01.jpg", "clip.mp4"]

    by_name = {it.name: it for it in items}
    video = by_name["clip.mp4"]
    assert video.kind is MediaKind.VIDEO
    assert video.duration is None
    assert video.location is None and video.metadata is None

    photo = by_name["beach_01.jpg"]
    assert photo.kind is MediaKind.PHOTO
    assert photo.location == "Beach"
    assert photo.captured_at is not None
    assert photo.size_bytes == (media_folder / "beach_01.jpg").stat().st_size
    assert all(abs(it.rotation) <= MAX_ROTATION_DEG for it in items)


def test_scan_recursive(media_folder, library):
    names = {it.name for it in library.scan(media_folder, recursive=True)}
    assert "inner.jpg" in names


def test_ids_are_stable_across_scans(media_folder, library):
    first = [it.id for it in library.scan(media_folder)]
    second = [it.id for it in library.scan(media_folder)]
    assert first == second
    assert len(set(first)) == len(first)
    assert stable_media_id(media_folder / "clip.mp4") in first


def test_missing_folder_raises(tmp_path, library):
    with pytest.raises(MediaLoadError):
        library.scan(tmp_path / "missing")


def test_load_file_skips_unsupported(tmp_path, library):
    path = tmp_path / "readme.md"
    path.write_text("x", encoding="utf-8")
    assert library.load_file(path) is None


def test_scan_keeps_items_next_to_an_oversized_image(tmp_path, library):
    write_image(tmp_path / "ok.jpg")
    write_oversized_png(tmp_path / "huge.png")

    items = library.scan(tmp_path)
    assert sorted(it.name for it in items) == ["huge.png", "ok.jpg"]
