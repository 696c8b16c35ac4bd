"""CRUD operations for face rows in DuckDB."""

import json

import duckdb

from photo_space_faces.geometry import BoundingBox
from photo_space_faces.models import Face

FACE_COLUMNS = """
    id, photo_name, external_face_id, landmarks,
    box_x, box_y, box_w, box_h, thumbnail, person_id, created_at
"""


def photo_has_faces(conn: duckdb.DuckDBPyConnection, photo_name: str) -> bool:
    """True if any face row exists for the photo (i.e. it was already indexed)."""
    row = conn.execute(
        "SELECT id FROM faces WHERE photo_name = ? LIMIT 1", [photo_name]
    ).fetchone()
    return row is not None


def insert_faces(conn: duckdb.DuckDBPyConnection, faces: list[Face]) -> None:
    """Insert the faces of one photo atomically."""
    conn.begin()
    try:
        for face in faces:
            conn.execute(
                """
                INSERT INTO faces
                (photo_name, external_face_id, landmarks,
                 box_x, box_y, box_w, box_h, thumbnail)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    face.photo_name,
                    face.external_face_id,
                    json.dumps([{"x": x, "y": y} for x, y in face.landmarks]),
                    face.box.x,
                    face.box.y,
                    face.box.w,
                    face.box.h,
                    face.thumbnail,
                ],
            )
    except Exception:
        conn.rollback()
        raise
    conn.commit()


def list_clusterable_faces(conn: duckdb.DuckDBPyConnection) -> list[tuple[int, str]]:
    """Return ``(face_id, external_face_id)`` for every face known to the service.

    Ordered by creation time, ties broken by insertion order.
    """
    rows = conn.execute(
        """
        SELECT id, external_face_id
        FROM faces
        WHERE external_face_id IS NOT NULL
        ORDER BY created_at ASC, id ASC
        """
    ).fetchall()
    return [(row[0], row[1]) for row in rows]


def get_faces_for_photo(conn: duckdb.DuckDBPyConnection, photo_name: str) -> list[Face]:
    rows = conn.execute(
        f"SELECT {FACE_COLUMNS} FROM faces WHERE photo_name = ? ORDER BY id",
        [photo_name],
    ).fetchall()
    return [row_to_face(row) for row in rows]


def get_face_stats(conn: duckdb.DuckDBPyConnection) -> tuple[int, int, int, int]:
    """Return (total_photos, indexed_photos, faces, meshed_faces)."""
    total_row = conn.execute("SELECT COUNT(*) FROM photos").fetchone()
    total = total_row[0] if total_row else 0

    indexed_row = conn.execute("SELECT COUNT(DISTINCT photo_name) FROM faces").fetchone()
    indexed = indexed_row[0] if indexed_row else 0

    faces_row = conn.execute("SELECT COUNT(*) FROM faces").fetchone()
    faces = faces_row[0] if faces_row else 0

    meshed_row = conn.execute(
        "SELECT COUNT(*) FROM faces WHERE json_array_length(landmarks) > 0"
    ).fetchone()
    meshed = meshed_row[0] if meshed_row else 0

    return total, indexed, faces, meshed


def row_to_face(row: tuple) -> Face:
    """Convert a row selected with FACE_COLUMNS to a Face."""
    landmarks_raw = row[3]
    if isinstance(landmarks_raw, str):
        landmarks_raw = json.loads(landmarks_raw)
    landmarks = [(pt["x"], pt["y"]) for pt in landmarks_raw or []]

    return Face(
        id=row[0],
        photo_name=row[1],
        external_face_id=row[2],
        landmarks=landmarks,
        box=BoundingBox(x=row[4], y=row[5], w=row[6], h=row[7]),
        thumbnail=row[8],
        person_id=row[9],
        created_at=row[10],
    )
