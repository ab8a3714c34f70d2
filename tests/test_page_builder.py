from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import make_photo, make_video
from core.models import PageKind
from core.services.classifier import MediaClassifier
from core.services.date_grouper import DateGrouper
from core.services.page_builder import (
    PageBuilder,
    PageCapacityConfig,
    chronological,
    compute_pages,
    format_index_header,
)


def _ids(pages):
    return [p.id for p in pages]


def _item_ids(page):
    return [it.id for it in page.items]


def _mixed_collection():
    return [
        make_photo("p3", datetime(2025, 1, 6, 8, 0), favorite=True),
        make_video("v1", datetime(2025, 1, 4, 10, 0)),
        make_photo("p1", datetime(2025, 1, 5, 10, 0)),
        make_video("v2", datetime(2025, 1, 7, 10, 0)),
        make_photo("p2", datetime(2025, 1, 5, 11, 0), favorite=True),
        make_photo("p4", datetime(2025, 1, 6, 9, 0)),
        make_video("v3", datetime(2025, 1, 5, 10, 0)),
    ]


def test_empty_collection_yields_no_pages():
    assert compute_pages([]) == []


def test_two_days_of_photos():
    items = [
        make_photo("a1", datetime(2025, 1, 5, 10, 0)),
        make_photo("a2", datetime(2025, 1, 5, 11, 0)),
        make_photo("a3", datetime(2025, 1, 5, 12, 0)),
        make_photo("b1", datetime(2025, 1, 6, 9, 0)),
        make_photo("b2", datetime(2025, 1, 6, 10, 0)),
    ]
    pages = compute_pages(items)

    assert _ids(pages) == ["index-1", "page-2", "index-3", "page-4"]
    assert [p.page_number for p in pages] == [1, 2, 3, 4]
    assert pages[0].date_header == "January 5, 2025"
    assert pages[2].date_header == "January 6, 2025"
    assert _item_ids(pages[1]) == ["a1", "a2", "a3"]
    assert _item_ids(pages[3]) == ["b1", "b2"]
    assert pages[0].is_index_page and pages[0].kind is PageKind.INDEX
    assert not pages[1].is_index_page and pages[1].kind is PageKind.ORDINARY


def test_six_favorites_on_one_day():
    items = [make_photo(f"f{i}", datetime(2025, 3, 1, 8, i), favorite=True) for i in range(6)]
    pages = compute_pages(items)

    assert _ids(pages) == [
        "index-1",
        "page-2",
        "page-3",
        "favorites-index",
        "favorites-1",
        "favorites-2",
    ]
    assert [len(p.items) for p in pages] == [0, 4, 2, 0, 4, 2]
    assert pages[3].date_header == "Favorites"
    assert pages[3].is_index_page
    assert all(p.kind is PageKind.FAVORITES_SECTION for p in pages[3:])
    assert _item_ids(pages[4]) + _item_ids(pages[5]) == [f"f{i}" for i in range(6)]


def test_page_numbers_are_dense_and_ordered():
    pages = compute_pages(_mixed_collection())
    assert [p.page_number for p in pages] == list(range(1, len(pages) + 1))


def test_full_section_order():
    pages = compute_pages(_mixed_collection())
    assert _ids(pages) == [
        "index-1",
        "page-2",
        "index-3",
        "page-4",
        "videos-index",
        "videos-1",
        "favorites-index",
        "favorites-1",
    ]
    assert pages[4].date_header == "Videos"
    assert pages[4].kind is PageKind.VIDEO_SECTION and pages[4].is_index_page


def test_videos_are_newest_first():
    pages = compute_pages(_mixed_collection())
    video_page = next(p for p in pages if p.id == "videos-1")
    assert _item_ids(video_page) == ["v2", "v3", "v1"]


def test_videos_never_appear_in_dated_sections():
    pages = compute_pages(_mixed_collection())
    for page in pages:
        if page.kind in (PageKind.ORDINARY, PageKind.FAVORITES_SECTION):
            assert all(it.is_photo for it in page.items)


def test_dated_pages_are_chronological():
    pages = compute_pages(_mixed_collection())
    dated = [it for p in pages if p.kind is PageKind.ORDINARY for it in p.items]
    assert [it.id for it in dated] == ["p1", "p2", "p3", "p4"]
    stamps = [it.effective_date for it in dated]
    assert stamps == sorted(stamps)


def test_favorites_follow_photo_order():
    pages = compute_pages(_mixed_collection())
    favs = [it.id for p in pages if p.kind is PageKind.FAVORITES_SECTION for it in p.items]
    assert favs == ["p2", "p3"]


def test_favorites_are_the_same_objects():
    items = _mixed_collection()
    pages = compute_pages(items)
    fav_page = next(p for p in pages if p.id == "favorites-1")
    dated = {it.id: it for p in pages if p.kind is PageKind.ORDINARY for it in p.items}
    for item in fav_page.items:
        assert item is dated[item.id]


def test_sections_absent_when_empty():
    photos_only = [make_photo("a", datetime(2025, 1, 1))]
    assert _ids(compute_pages(photos_only)) == ["index-1", "page-2"]

    videos_only = [make_video("v", datetime(2025, 1, 1)), make_video("w", datetime(2025, 1, 2))]
    pages = compute_pages(videos_only)
    assert _ids(pages) == ["videos-index", "videos-1"]
    assert [p.page_number for p in pages] == [1, 2]


def test_index_pages_hold_no_items():
    for page in compute_pages(_mixed_collection()):
        if page.is_index_page:
            assert page.items == ()


def test_single_item_day_still_gets_index_page():
    items = [
        make_photo("a", datetime(2025, 1, 5)),
        make_photo("b", datetime(2025, 1, 9)),
        make_photo("c", datetime(2025, 1, 9, 1)),
    ]
    pages = compute_pages(items)
    assert _ids(pages) == ["index-1", "page-2", "index-3", "page-4"]
    assert _item_ids(pages[1]) == ["a"]


def test_capacity_is_respected():
    items = [make_photo(f"p{i}", datetime(2025, 2, 1, 0, i)) for i in range(7)]
    pages = compute_pages(items, PageCapacityConfig(3))
    assert [len(p.items) for p in pages] == [0, 3, 3, 1]


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        PageCapacityConfig(0)


def test_build_is_deterministic():
    items = _mixed_collection()
    assert compute_pages(items) == compute_pages(list(items))


def test_equal_dates_keep_input_order():
    when = datetime(2025, 1, 1, 12, 0)
    items = [make_photo("second", when), make_photo("first", when)]
    pages = compute_pages(items)
    assert _item_ids(pages[1]) == ["second", "first"]


def test_missing_capture_date_uses_upload_date():
    items = [
        make_photo("late", datetime(2025, 8, 1)),
        make_photo("nodate", None, uploaded_at=datetime(2025, 7, 1)),
    ]
    pages = compute_pages(items)
    assert _item_ids(pages[1]) == ["nodate"]
    assert pages[0].date_header == "July 1, 2025"


def test_naive_and_aware_dates_can_be_mixed():
    items = [
        make_photo("aware", datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)),
        make_photo("naive", datetime(2024, 12, 1, 12, 0)),
    ]
    pages = compute_pages(items)
    assert _item_ids(pages[1]) == ["naive"]


def test_builder_accepts_injected_collaborators():
    builder = PageBuilder(MediaClassifier(), DateGrouper())
    assert builder.build([make_photo("a", datetime(2025, 1, 1))])[0].id == "index-1"


def test_chronological_newest_first_is_stable():
    when = datetime(2025, 1, 1)
    items = [make_video("x", when), make_video("y", when), make_video("z", datetime(2025, 2, 1))]
    assert [it.id for it in chronological(items, newest_first=True)] == ["z", "x", "y"]


def test_format_index_header():
    assert format_index_header(datetime(2024, 12, 25).date()) == "December 25, 2024"


class _FirstFavoriteOnly(MediaClassifier):
    def classify(self, items):
        result = super().classify(items)
        result.favorites = result.favorites[:1]
        return result


def test_favorites_section_uses_classifier_view():
    builder = PageBuilder(classifier=_FirstFavoriteOnly())
    pages = builder.build(_mixed_collection())
    favs = [it.id for p in pages if p.kind is PageKind.FAVORITES_SECTION for it in p.items]
    assert favs == ["p2"]
