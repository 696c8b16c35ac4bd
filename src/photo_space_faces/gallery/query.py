"""Read-only projections served to the gallery front end, plus person naming."""

import json
from dataclasses import dataclass, replace

import duckdb

from photo_space_faces.catalog.cdn import optimized_url
from photo_space_faces.catalog.repository import list_photos
from photo_space_faces.clustering.person_repository import get_person
from photo_space_faces.geometry import BoundingBox
from photo_space_faces.models import Person, Photo, Point


@dataclass
class FaceOverlay:
    """A face as drawn over its photo."""

    id: int
    photo_name: str
    person_id: int | None
    person_name: str | None
    landmarks: list[Point]
    box: BoundingBox


@dataclass
class PersonCard:
    """A person with one face to show for them."""

    person: Person
    photo_name: str | None
    thumbnail: str | None


def faces_for_photo(conn: duckdb.DuckDBPyConnection, photo_name: str) -> list[FaceOverlay]:
    """All faces of a photo with their person's name, if any."""
    rows = conn.execute(
        """
        SELECT f.id, f.photo_name, f.person_id, p.name, f.landmarks,
               f.box_x, f.box_y, f.box_w, f.box_h
        FROM faces f
        LEFT JOIN persons p ON p.id = f.person_id
        WHERE f.photo_name = ?
        ORDER BY f.id
        """,
        [photo_name],
    ).fetchall()
    results = []
    for row in rows:
        landmarks_raw = json.loads(row[4]) if isinstance(row[4], str) else row[4]
        results.append(
            FaceOverlay(
                id=row[0],
                photo_name=row[1],
                person_id=row[2],
                person_name=row[3],
                landmarks=[(pt["x"], pt["y"]) for pt in landmarks_raw or []],
                box=BoundingBox(x=row[5], y=row[6], w=row[7], h=row[8]),
            )
        )
    return results


def persons_with_representative_face(conn: duckdb.DuckDBPyConnection) -> list[PersonCard]:
    """Persons by face count (desc), each with its earliest face's thumbnail."""
    rows = conn.execute(
        """
        SELECT p.id, p.name, p.face_count, p.created_at, rep.photo_name, rep.thumbnail
        FROM persons p
        LEFT JOIN (
            SELECT person_id, photo_name, thumbnail,
                   row_number() OVER (PARTITION BY person_id ORDER BY id) AS rn
            FROM faces
            WHERE person_id IS NOT NULL
        ) rep ON rep.person_id = p.id AND rep.rn = 1
        ORDER BY p.face_count DESC, p.id ASC
        """
    ).fetchall()
    return [
        PersonCard(
            person=Person(id=row[0], name=row[1], face_count=row[2], created_at=row[3]),
            photo_name=row[4],
            thumbnail=row[5],
        )
        for row in rows
    ]


def photos_for_person(conn: duckdb.DuckDBPyConnection, person_id: int) -> list[str]:
    """Names of the photos a person appears in."""
    rows = conn.execute(
        "SELECT DISTINCT photo_name FROM faces WHERE person_id = ? ORDER BY photo_name",
        [person_id],
    ).fetchall()
    return [row[0] for row in rows]


def rename_person(
    conn: duckdb.DuckDBPyConnection, person_id: int, name: str | None
) -> Person | None:
    """Set a person's display name. Returns None if the person does not exist."""
    if get_person(conn, person_id) is None:
        return None
    conn.execute("UPDATE persons SET name = ? WHERE id = ?", [name, person_id])
    return get_person(conn, person_id)


def gallery_photos(conn: duckdb.DuckDBPyConnection) -> list[Photo]:
    """All photos in name order, with display-sized delivery URLs."""
    return [replace(photo, url=optimized_url(photo.url)) for photo in list_photos(conn)]
