from __future__ import annotations

import asyncio
from datetime import datetime
import json
import re

import pytest

from conftest import FakeEmbedder, make_photo, make_video
from core.exceptions import ExportError
from core.models import PageKind
from core.services.album_service import create_album
from core.services.page_builder import compute_pages
from infrastructure.export_serializer import (
    ExportSerializer,
    album_file_stem,
    export_filename,
    exportable_pages,
    photo_payload,
)
from infrastructure.stylesheets import FileRuleSource

_PAYLOAD_RE = re.compile(r"var albumData = (.*?);\n", re.DOTALL)


def _collection():
    return [
        make_photo("p1", datetime(2025, 1, 5, 10, 0)),
        make_photo("p2", datetime(2025, 1, 5, 11, 0), favorite=True),
        make_video("v1", datetime(2025, 1, 5, 12, 0)),
        make_photo("p3", datetime(2025, 1, 6, 9, 0)),
    ]


def _payload(serializer, pages, name="Trip"):
    return asyncio.run(serializer.build_payload(name, pages))


def _photo_ids(payload):
    return [ph["id"] for page in payload.data["pages"] for ph in page["photos"]]


def test_export_filename():
    assert export_filename("Summer Trip 2024!") == "summer_trip_2024__album.html"
    assert export_filename("Été") == "_t__album.html"
    assert export_filename("") == "album_album.html"


def test_video_pages_are_dropped():
    pages = compute_pages(_collection())
    kept = exportable_pages(pages)
    assert all(p.kind is not PageKind.VIDEO_SECTION for p in kept)
    assert [p.id for p in kept] == [
        "index-1",
        "page-2",
        "index-3",
        "page-4",
        "favorites-index",
        "favorites-1",
    ]
    # live page numbers are kept even though the video section is gone
    assert [p.page_number for p in kept][-2:] == [7, 8]


def test_payload_contains_no_videos(fake_embedder):
    payload = _payload(ExportSerializer(fake_embedder), compute_pages(_collection()))
    assert "v1" not in _photo_ids(payload)
    assert "/media/v1.mp4" not in fake_embedder.calls
    assert payload.page_count == 6


def test_photo_only_payload_matches_live_pages(fake_embedder):
    items = [item for item in _collection() if item.is_photo]
    pages = compute_pages(items)
    payload = _payload(ExportSerializer(fake_embedder), pages)

    assert [p["id"] for p in payload.data["pages"]] == [p.id for p in pages]
    for live, exported in zip(pages, payload.data["pages"]):
        assert [ph["id"] for ph in exported["photos"]] == [it.id for it in live.items]
        assert exported["pageNumber"] == live.page_number
        assert exported["isIndexPage"] == live.is_index_page
        assert exported["kind"] == live.kind.value
        assert exported["dateHeader"] == live.date_header


def test_embedding_failure_falls_back_to_source():
    embedder = FakeEmbedder(fail={"/media/p2.jpg"})
    payload = _payload(ExportSerializer(embedder), compute_pages(_collection()))

    photos = {ph["id"]: ph for page in payload.data["pages"] for ph in page["photos"]}
    assert photos["p2"]["dataUrl"] == "/media/p2.jpg"
    assert photos["p1"]["dataUrl"] == "data:image/jpeg;base64,/media/p1.jpg"
    assert payload.fallback_ids == ["p2"]


def test_order_survives_out_of_order_completion():
    items = [make_photo(f"p{i}", datetime(2025, 1, 1, 0, i)) for i in range(6)]
    delays = {f"/media/p{i}.jpg": 0.01 * (6 - i) for i in range(6)}
    embedder = FakeEmbedder(delays=delays)
    payload = _payload(ExportSerializer(embedder, concurrency=3), compute_pages(items))

    assert _photo_ids(payload) == [f"p{i}" for i in range(6)]
    assert all(
        ph["dataUrl"].endswith(ph["originalUrl"])
        for page in payload.data["pages"]
        for ph in page["photos"]
    )


def test_favorites_are_converted_once(fake_embedder):
    _payload(ExportSerializer(fake_embedder), compute_pages(_collection()))
    assert fake_embedder.calls.count("/media/p2.jpg") == 1


def test_photo_payload_fields():
    item = make_photo(
        "a",
        datetime(2025, 1, 5, 10, 0),
        description="Beach",
        location="Nice",
        rotation=1.5,
    )
    entry = photo_payload(item, "data:x")
    assert entry["capturedAt"] == "2025-01-05T10:00:00"
    assert entry["fileSize"] == 1024
    assert entry["rotation"] == 1.5
    assert entry["exifData"] == {
        "camera": None,
        "lens": None,
        "settings": None,
        "coordinates": None,
    }
    assert entry["originalUrl"] == "/media/a.jpg"


def test_render_embeds_payload_and_runtime(fake_embedder):
    serializer = ExportSerializer(fake_embedder)
    html = asyncio.run(serializer.render("Trip", compute_pages(_collection())))

    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Trip - Photo Album</title>" in html
    match = _PAYLOAD_RE.search(html)
    assert match is not None
    data = json.loads(match.group(1))
    assert data["albumName"] == "Trip"
    assert len(data["pages"]) == 6
    assert '"mobileBreakpoint": 768' in html


def test_hostile_album_name_cannot_break_out(fake_embedder):
    name = "</script><script>alert(1)</script>"
    html = asyncio.run(ExportSerializer(fake_embedder).render(name, []))
    assert "<script>alert(1)" not in html
    assert "&lt;/script&gt;" in html


def test_collected_rules_are_inlined_and_skips_reported(tmp_path, fake_embedder):
    css = tmp_path / "theme.css"
    css.write_text(".polaroid { color: red; }", encoding="utf-8")
    missing = tmp_path / "missing.css"
    serializer = ExportSerializer(fake_embedder, rule_source=FileRuleSource([css, missing]))

    album = create_album(_collection(), "Trip")
    result = asyncio.run(serializer.export(album, compute_pages(album.items), tmp_path / "out"))

    html = result.path.read_text(encoding="utf-8")
    assert ".polaroid { color: red; }" in html
    assert result.skipped_sources == [str(missing)]


def test_export_writes_named_file(tmp_path, fake_embedder):
    album = create_album(_collection(), "Summer Trip")
    pages = compute_pages(album.items)
    result = asyncio.run(ExportSerializer(fake_embedder).export(album, pages, tmp_path))

    assert result.path == tmp_path / "summer_trip_album.html"
    assert result.path.is_file()
    assert result.page_count == 6
    # favorites appear in their dated page and in the favorites section
    assert result.item_count == 4
    assert result.fallback_ids == []
    assert [p.name for p in tmp_path.iterdir()] == ["summer_trip_album.html"]


def test_export_write_failure_leaves_nothing(tmp_path, fake_embedder):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    album = create_album(_collection(), "Trip")

    with pytest.raises(ExportError):
        asyncio.run(
            ExportSerializer(fake_embedder).export(album, compute_pages(album.items), blocker)
        )
    assert [p.name for p in tmp_path.iterdir()] == ["not-a-dir"]


def test_runtime_config_mirrors_scaler():
    cfg = ExportSerializer(FakeEmbedder()).runtime_config()
    assert cfg["pagesPerSpread"] == 2
    assert cfg["swipeThreshold"] == 50
    assert cfg["minScale"] == 0.7
    assert cfg["favoritesKind"] == "favoritesSection"


def test_album_file_stem_strips_path_parts():
    assert album_file_stem("../My Trip") == "___my_trip"
    assert album_file_stem("a/b\\c") == "a_b_c"
    assert album_file_stem("") == "album"
