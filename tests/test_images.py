"""Tests for image fetching, resizing and decoding."""

from io import BytesIO

import httpx
import pytest
from conftest import CDN_BASE, png_bytes
from PIL import Image

from photo_space_faces.indexing.images import decode_rgb, fetch_image, image_size

URL = f"{CDN_BASE}v1/photo-space/a.png"


def _client(routes: dict[str, bytes], seen: list[str] | None = None) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if seen is not None:
            seen.append(url)
        if url in routes:
            return httpx.Response(200, content=routes[url])
        return httpx.Response(404)

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_small_image_used_as_is():
    data = png_bytes(100, 50)
    with _client({URL: data}) as client:
        fetched = fetch_image(client, URL)
    assert fetched.data == data
    assert fetched.resized is False
    assert (fetched.original_width, fetched.original_height) == (100, 50)


def test_oversized_image_refetched_through_resize_transform():
    big = png_bytes(200, 200, noise=True)
    small = png_bytes(10, 10)
    resized = f"{CDN_BASE}w_64,h_64,c_limit/v1/photo-space/a.png"
    seen: list[str] = []
    with _client({URL: big, resized: small}, seen) as client:
        fetched = fetch_image(client, URL, max_bytes=2000, max_dim=64)
    assert seen == [URL, resized]
    assert fetched.data == small
    assert fetched.resized is True
    assert (fetched.original_width, fetched.original_height) == (200, 200)


def test_oversized_image_without_cdn_marker_shrunk_locally():
    url = "https://example.com/a.png"
    big = png_bytes(200, 200, noise=True)
    with _client({url: big}) as client:
        fetched = fetch_image(client, url, max_bytes=100_000, max_dim=128)
    assert len(big) > 100_000
    assert len(fetched.data) <= 100_000
    with Image.open(BytesIO(fetched.data)) as img:
        assert img.format == "JPEG"
        assert max(img.size) <= 128
    assert (fetched.original_width, fetched.original_height) == (200, 200)


def test_http_error_raised():
    with _client({}) as client:
        with pytest.raises(httpx.HTTPStatusError):
            fetch_image(client, URL)


def test_decode_rgb_shape():
    data = png_bytes(30, 20)
    pixels = decode_rgb(data)
    assert pixels.shape == (20, 30, 3)
    assert image_size(data) == (30, 20)
