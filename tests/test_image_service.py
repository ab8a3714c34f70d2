from __future__ import annotations

import asyncio
import base64
import io

from PIL import Image
import pytest

from conftest import write_image
from infrastructure.image_service import ImageService, PillowMediaEmbedder, _LRUCache
from infrastructure.settings import JsonSettings


def _decode(data_url: str) -> Image.Image:
    header, payload = data_url.split(",", 1)
    assert header == "data:image/jpeg;base64"
    return Image.open(io.BytesIO(base64.b64decode(payload)))


def test_to_data_url_encodes_jpeg(tmp_path):
    path = write_image(tmp_path / "a.png", size=(64, 32))
    url = ImageService().to_data_url(str(path))
    img = _decode(url)
    assert img.format == "JPEG"
    assert img.size == (64, 32)


def test_max_side_bounds_longest_edge(tmp_path):
    path = write_image(tmp_path / "big.png", size=(200, 100))
    url = ImageService(max_side=50).to_data_url(str(path))
    assert _decode(url).size == (50, 25)


def test_settings_override_encoder_options(tmp_path):
    settings = JsonSettings.from_dict({"export": {"jpeg_quality": 55, "max_side": 20}})
    service = ImageService(settings)
    assert service.quality == 55
    path = write_image(tmp_path / "a.png", size=(40, 40))
    assert _decode(service.to_data_url(str(path))).size == (20, 20)


def test_data_url_passes_through():
    assert ImageService().to_data_url("data:image/png;base64,AAAA") == "data:image/png;base64,AAAA"


@pytest.mark.parametrize("source", ["https://example.com/a.jpg", "/does/not/exist.jpg"])
def test_non_local_sources_are_rejected(source):
    with pytest.raises(ValueError):
        ImageService().to_data_url(source)


def test_undecodable_file_raises_oserror(tmp_path):
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(b"not an image")
    with pytest.raises(OSError):
        ImageService().to_data_url(str(broken))


def test_repeated_conversion_is_cached(tmp_path):
    path = write_image(tmp_path / "a.png")
    service = ImageService()
    first = service.to_data_url(str(path))
    assert service.to_data_url(str(path)) is first


def test_lru_cache_evicts_oldest():
    cache = _LRUCache(2)
    cache.put("a", "1")
    cache.put("b", "2")
    assert cache.get("a") == "1"
    cache.put("c", "3")
    assert cache.get("b") is None
    assert cache.get("a") == "1"
    assert len(cache) == 2


def test_embedder_runs_conversion(tmp_path):
    path = write_image(tmp_path / "a.png")
    url = asyncio.run(PillowMediaEmbedder().embed(str(path)))
    assert url.startswith("data:image/jpeg;base64,")


def test_embedder_propagates_failures():
    with pytest.raises(ValueError):
        asyncio.run(PillowMediaEmbedder().embed("/does/not/exist.jpg"))
