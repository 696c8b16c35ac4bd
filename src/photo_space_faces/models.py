"""Data models for photos, faces and persons."""

from dataclasses import dataclass, field
from datetime import datetime

from photo_space_faces.geometry import BoundingBox

Point = tuple[float, float]


@dataclass
class Photo:
    """A catalog photo. Created by the external ingestion process."""

    id: int | None
    name: str
    url: str
    thumb_url: str | None
    width: int | None
    height: int | None
    created_at: datetime | None


@dataclass(frozen=True)
class DetectedFace:
    """A face indexed by the recognition service."""

    external_face_id: str
    box: BoundingBox
    confidence: float  # 0-100


@dataclass(frozen=True)
class LandmarkFace:
    """A face found by the local landmark detector, in normalized coordinates."""

    box: BoundingBox
    landmarks: list[Point] = field(default_factory=list)


@dataclass
class Face:
    """A persisted face row."""

    id: int | None
    photo_name: str
    external_face_id: str | None
    landmarks: list[Point]
    box: BoundingBox
    thumbnail: str | None
    person_id: int | None = None
    created_at: datetime | None = None


@dataclass
class Person:
    """A cluster of faces believed to depict the same individual."""

    id: int
    name: str | None
    face_count: int
    created_at: datetime | None
