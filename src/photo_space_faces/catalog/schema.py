"""DuckDB schema definition and migration."""

import duckdb


def ensure_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create tables and indexes if they do not exist."""
    conn.execute("CREATE SEQUENCE IF NOT EXISTS photos_id_seq START 1")
    conn.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            id          INTEGER PRIMARY KEY DEFAULT nextval('photos_id_seq'),
            name        VARCHAR NOT NULL UNIQUE,
            url         VARCHAR NOT NULL,
            thumb_url   VARCHAR,
            width       INTEGER,
            height      INTEGER,
            created_at  TIMESTAMP DEFAULT current_timestamp
        )
    """)

    # persons is derived state: wiped and rebuilt by every clustering run
    conn.execute("CREATE SEQUENCE IF NOT EXISTS persons_id_seq START 1")
    conn.execute("""
        CREATE TABLE IF NOT EXISTS persons (
            id          INTEGER PRIMARY KEY DEFAULT nextval('persons_id_seq'),
            name        VARCHAR,
            face_count  INTEGER NOT NULL DEFAULT 0,
            created_at  TIMESTAMP DEFAULT current_timestamp
        )
    """)

    # faces.person_id is rewritten wholesale by clustering, so it carries no
    # FOREIGN KEY or index (DuckDB rewrites indexed columns as delete+insert).
    conn.execute("CREATE SEQUENCE IF NOT EXISTS faces_id_seq START 1")
    conn.execute("""
        CREATE TABLE IF NOT EXISTS faces (
            id                INTEGER PRIMARY KEY DEFAULT nextval('faces_id_seq'),
            photo_name        VARCHAR NOT NULL,
            person_id         INTEGER,
            external_face_id  VARCHAR,
            landmarks         JSON NOT NULL,
            box_x             FLOAT NOT NULL,
            box_y             FLOAT NOT NULL,
            box_w             FLOAT NOT NULL,
            box_h             FLOAT NOT NULL,
            thumbnail         VARCHAR,
            created_at        TIMESTAMP DEFAULT current_timestamp
        )
    """)
    conn.execute("CREATE INDEX IF NOT EXISTS idx_faces_photo_name ON faces(photo_name)")

    _migrate(conn)


def _migrate(conn: duckdb.DuckDBPyConnection) -> None:
    """Add columns that may not exist in older schemas."""
    migrations = [
        "ALTER TABLE photos ADD COLUMN IF NOT EXISTS thumb_url VARCHAR",
        "ALTER TABLE faces ADD COLUMN IF NOT EXISTS thumbnail VARCHAR",
    ]
    for sql in migrations:
        conn.execute(sql)


def truncate_all(conn: duckdb.DuckDBPyConnection) -> None:
    """Delete every row from faces, persons and photos."""
    for table in ("faces", "persons", "photos"):
        conn.execute(f"DELETE FROM {table}")
