"""CRUD operations for catalog photos in DuckDB."""

import duckdb

from photo_space_faces.models import Photo


def insert_photo(conn: duckdb.DuckDBPyConnection, photo: Photo) -> None:
    """Insert a single photo record. Skip on name conflict."""
    conn.execute(
        """
        INSERT INTO photos (name, url, thumb_url, width, height)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT (name) DO NOTHING
        """,
        [photo.name, photo.url, photo.thumb_url, photo.width, photo.height],
    )


def insert_photos(conn: duckdb.DuckDBPyConnection, photos: list[Photo]) -> None:
    """Bulk insert photo records."""
    for photo in photos:
        insert_photo(conn, photo)


def get_photo_by_name(conn: duckdb.DuckDBPyConnection, name: str) -> Photo | None:
    """Look up a single photo by its unique name."""
    result = conn.execute("SELECT * FROM photos WHERE name = ?", [name]).fetchone()
    if result is None:
        return None
    return _row_to_photo(result)


def list_photos(conn: duckdb.DuckDBPyConnection, limit: int | None = None) -> list[Photo]:
    """List all photos ordered by name."""
    query = "SELECT * FROM photos ORDER BY name ASC"
    params: list = []
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)
    rows = conn.execute(query, params).fetchall()
    return [_row_to_photo(row) for row in rows]


def count_photos(conn: duckdb.DuckDBPyConnection) -> int:
    row = conn.execute("SELECT COUNT(*) FROM photos").fetchone()
    return row[0] if row else 0


def _row_to_photo(row: tuple) -> Photo:
    """Convert a DB row tuple to Photo.

    Column order matches schema.py DDL:
    0:id, 1:name, 2:url, 3:thumb_url, 4:width, 5:height, 6:created_at
    """
    return Photo(
        id=row[0],
        name=row[1],
        url=row[2],
        thumb_url=row[3],
        width=row[4],
        height=row[5],
        created_at=row[6],
    )
