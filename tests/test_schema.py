"""Tests for DuckDB schema creation and migration."""

import duckdb
from conftest import add_faces, make_photo

from photo_space_faces.catalog.repository import insert_photo
from photo_space_faces.catalog.schema import ensure_schema, truncate_all


def _table_names(conn) -> set[str]:
    rows = conn.execute(
        "SELECT table_name FROM information_schema.tables WHERE table_schema = 'main'"
    ).fetchall()
    return {row[0] for row in rows}


def test_ensure_schema_creates_tables(db_conn):
    assert {"photos", "faces", "persons"} <= _table_names(db_conn)


def test_ensure_schema_idempotent():
    conn = duckdb.connect(":memory:")
    ensure_schema(conn)
    ensure_schema(conn)  # Should not raise
    assert {"photos", "faces", "persons"} <= _table_names(conn)
    conn.close()


def test_truncate_all(db_conn):
    insert_photo(db_conn, make_photo("a.jpg"))
    add_faces(db_conn, "f1", photo_name="a.jpg")
    db_conn.execute("INSERT INTO persons (face_count) VALUES (1)")

    truncate_all(db_conn)

    for table in ("photos", "faces", "persons"):
        assert db_conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 0
