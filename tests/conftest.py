"""Shared test fixtures."""

from io import BytesIO

import duckdb
import numpy as np
import pytest
from PIL import Image

from photo_space_faces.catalog.schema import ensure_schema
from photo_space_faces.geometry import BoundingBox
from photo_space_faces.indexing.face_repository import insert_faces
from photo_space_faces.indexing.recognition import CollectionNotFoundError
from photo_space_faces.models import DetectedFace, Face, LandmarkFace, Photo

CDN_BASE = "https://res.cloudinary.com/demo/image/upload/"


@pytest.fixture
def db_conn():
    """In-memory DuckDB connection with schema initialized."""
    conn = duckdb.connect(":memory:")
    ensure_schema(conn)
    yield conn
    conn.close()


def make_photo(name: str, width: int | None = 100, height: int | None = 50) -> Photo:
    """Helper to create a Photo with a CDN URL derived from its name."""
    return Photo(
        id=None,
        name=name,
        url=f"{CDN_BASE}v1/photo-space/{name}",
        thumb_url=None,
        width=width,
        height=height,
        created_at=None,
    )


def make_face(
    photo_name: str,
    external_face_id: str | None,
    box: tuple[float, float, float, float] = (0.1, 0.1, 0.2, 0.2),
    landmarks: list[tuple[float, float]] | None = None,
) -> Face:
    return Face(
        id=None,
        photo_name=photo_name,
        external_face_id=external_face_id,
        landmarks=landmarks or [],
        box=BoundingBox(*box),
        thumbnail=None,
    )


def add_faces(conn, *external_ids: str | None, photo_name: str = "group.jpg") -> list[int]:
    """Insert one face per external id and return the new row ids in order."""
    insert_faces(conn, [make_face(photo_name, ext) for ext in external_ids])
    rows = conn.execute(
        "SELECT id FROM faces WHERE photo_name = ? ORDER BY id", [photo_name]
    ).fetchall()
    return [row[0] for row in rows][-len(external_ids) :]


def png_bytes(width: int = 100, height: int = 50, noise: bool = False) -> bytes:
    """Encode a small RGB image as PNG."""
    if noise:
        rng = np.random.default_rng(0)
        pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
        img = Image.fromarray(pixels, "RGB")
    else:
        img = Image.new("RGB", (width, height), color=(120, 80, 40))
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def detected(face_id: str, box: tuple[float, float, float, float]) -> DetectedFace:
    return DetectedFace(external_face_id=face_id, box=BoundingBox(*box), confidence=99.0)


def landmark_face(box: tuple[float, float, float, float], points: int = 3) -> LandmarkFace:
    bx = BoundingBox(*box)
    return LandmarkFace(
        box=bx, landmarks=[(bx.x + bx.w * i / points, bx.y) for i in range(points)]
    )


class FakeRecognition:
    """In-memory stand-in for RekognitionClient."""

    def __init__(
        self,
        detections: dict | None = None,
        matches: dict | None = None,
        collection_exists: bool = True,
    ) -> None:
        # photo name -> list[DetectedFace] | Exception
        self.detections = detections or {}
        # face id -> list[(face id, similarity)] | Exception
        self.matches = matches or {}
        self.exists = collection_exists
        self.index_calls: list[str] = []
        self.search_calls: list[str] = []

    def collection_exists(self, collection_id: str) -> bool:
        return self.exists

    def require_collection(self, collection_id: str) -> None:
        if not self.exists:
            raise CollectionNotFoundError(collection_id)

    def index_faces(self, collection_id, image_bytes, external_id):
        self.index_calls.append(external_id)
        if not self.exists:
            raise CollectionNotFoundError(collection_id)
        result = self.detections.get(external_id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def search_faces(self, collection_id, face_id, threshold=80.0, max_results=100):
        self.search_calls.append(face_id)
        result = self.matches.get(face_id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeDetector:
    """Landmark detector returning canned faces."""

    def __init__(self, faces: list[LandmarkFace] | None = None, error: Exception | None = None):
        self.faces = faces or []
        self.error = error
        self.calls: list[tuple[int, int]] = []

    def detect(self, pixels, width, height):
        self.calls.append((width, height))
        if self.error is not None:
            raise self.error
        return list(self.faces)
