"""Delivery-URL transforms for Cloudinary-style image URLs.

A transform is a path segment inserted right after the upload marker::

    https://res.cloudinary.com/CLOUD/image/upload/v123/photo-space/file.jpg
    https://res.cloudinary.com/CLOUD/image/upload/w_2048,c_limit/v123/photo-space/file.jpg

URLs without the marker are returned unchanged.
"""

from photo_space_faces.config import CDN_UPLOAD_MARKER, THUMBNAIL_PADDING, THUMBNAIL_SIZE
from photo_space_faces.geometry import BoundingBox


def apply_transform(url: str, transform: str, marker: str = CDN_UPLOAD_MARKER) -> str:
    """Insert a transform segment after the first upload marker."""
    idx = url.find(marker)
    if idx == -1:
        return url
    insert_at = idx + len(marker)
    return f"{url[:insert_at]}{transform}/{url[insert_at:]}"


def is_transformable(url: str, marker: str = CDN_UPLOAD_MARKER) -> bool:
    return marker in url


def resized_url(url: str, max_dim: int) -> str:
    """Variant of ``url`` whose longest edge is capped at ``max_dim`` pixels."""
    return apply_transform(url, f"w_{max_dim},h_{max_dim},c_limit")


def optimized_url(url: str) -> str:
    """Gallery-sized, auto-format/quality variant of ``url``."""
    return apply_transform(url, "w_1920,q_auto,f_auto")


def thumbnail_url(
    url: str,
    box: BoundingBox,
    width: int,
    height: int,
    size: int = THUMBNAIL_SIZE,
    padding: float = THUMBNAIL_PADDING,
) -> str:
    """Square face thumbnail cropped from the original image.

    The crop is centered on the box, its side is the longest box side (in
    pixels) padded by ``padding`` on each side, and the result is filled to
    ``size`` x ``size``.
    """
    cx, cy = box.center
    cx *= width
    cy *= height
    side = max(box.w * width, box.h * height) * (1 + padding * 2)

    crop_x = max(0, round(cx - side / 2))
    crop_y = max(0, round(cy - side / 2))
    crop_side = round(side)

    return apply_transform(
        url,
        f"c_crop,w_{crop_side},h_{crop_side},x_{crop_x},y_{crop_y}"
        f"/c_fill,w_{size},h_{size}/f_webp,q_auto:low",
    )
