"""Fetch photo bytes from the CDN and decode them for the detectors."""

import logging
from dataclasses import dataclass
from io import BytesIO

import httpx
import numpy as np
from PIL import Image
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from photo_space_faces.catalog.cdn import is_transformable, resized_url
from photo_space_faces.config import MAX_IMAGE_BYTES, RESIZE_MAX_DIM

logger = logging.getLogger(__name__)


@dataclass
class FetchedImage:
    """Bytes to send to the recognition service, plus what we know about them."""

    data: bytes
    original_width: int
    original_height: int
    resized: bool


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, max=10),
    retry=retry_if_exception_type(httpx.TimeoutException),
    reraise=True,
)
def fetch_bytes(client: httpx.Client, url: str) -> bytes:
    """GET ``url`` and return the body. Raises httpx.HTTPError on failure."""
    resp = client.get(url)
    resp.raise_for_status()
    return resp.content


def fetch_image(
    client: httpx.Client,
    url: str,
    max_bytes: int = MAX_IMAGE_BYTES,
    max_dim: int = RESIZE_MAX_DIM,
) -> FetchedImage:
    """Fetch an image, keeping it under ``max_bytes``.

    Oversized images are re-fetched through the CDN resize transform; if the
    URL cannot be transformed, or the variant is still too large, the bytes
    are downscaled locally.
    """
    data = fetch_bytes(client, url)
    width, height = image_size(data)
    if len(data) <= max_bytes:
        return FetchedImage(data=data, original_width=width, original_height=height, resized=False)

    logger.info("%s: image %.1fMB > %.1fMB, resizing", url, len(data) / 1e6, max_bytes / 1e6)
    if is_transformable(url):
        data = fetch_bytes(client, resized_url(url, max_dim))
    if len(data) > max_bytes:
        data = shrink_image(data, max_dim, max_bytes)
    return FetchedImage(data=data, original_width=width, original_height=height, resized=True)


def image_size(data: bytes) -> tuple[int, int]:
    """Read ``(width, height)`` from the image header."""
    with Image.open(BytesIO(data)) as img:
        return img.size


def decode_rgb(data: bytes) -> np.ndarray:
    """Decode image bytes into an RGB ``(height, width, 3)`` uint8 array."""
    with Image.open(BytesIO(data)) as img:
        return np.asarray(img.convert("RGB"))


def shrink_image(data: bytes, max_dim: int, max_bytes: int) -> bytes:
    """Re-encode as JPEG with the longest edge at most ``max_dim``.

    The edge limit is halved until the encoded size fits ``max_bytes``.
    """
    with Image.open(BytesIO(data)) as img:
        rgb = img.convert("RGB")
    dim = max_dim
    while True:
        candidate = rgb.copy()
        candidate.thumbnail((dim, dim))
        buf = BytesIO()
        candidate.save(buf, format="JPEG", quality=90)
        encoded = buf.getvalue()
        if len(encoded) <= max_bytes or dim <= 256:
            return encoded
        dim //= 2
