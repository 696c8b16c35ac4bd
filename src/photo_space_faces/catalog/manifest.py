"""Load photo records from a JSON manifest."""

import json
from pathlib import Path

from photo_space_faces.models import Photo


def load_manifest(path: Path) -> list[Photo]:
    """Read a JSON list of ``{"name", "url", "thumb_url"?, "width"?, "height"?}``.

    Raises ValueError on entries without a name or URL.
    """
    entries = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected a JSON list of photos")

    photos: list[Photo] = []
    for n, entry in enumerate(entries):
        name = entry.get("name")
        url = entry.get("url")
        if not name or not url:
            raise ValueError(f"{path}: entry {n} needs 'name' and 'url'")
        photos.append(
            Photo(
                id=None,
                name=name,
                url=url,
                thumb_url=entry.get("thumb_url") or entry.get("thumb"),
                width=entry.get("width"),
                height=entry.get("height"),
                created_at=None,
            )
        )
    return photos
