"""Persistence for derived person clusters."""

import duckdb

from photo_space_faces.models import Person


def replace_persons(conn: duckdb.DuckDBPyConnection, clusters: list[list[int]]) -> list[int]:
    """Throw away every person and create one per cluster of face ids.

    Clearing old assignments, deleting persons, inserting the new ones and
    reassigning faces happen in a single transaction, so readers never see
    a window without persons. Returns the new person ids, one per cluster.
    """
    person_ids: list[int] = []
    conn.begin()
    try:
        conn.execute("UPDATE faces SET person_id = NULL WHERE person_id IS NOT NULL")
        conn.execute("DELETE FROM persons")
        for face_ids in clusters:
            row = conn.execute(
                "INSERT INTO persons (face_count) VALUES (?) RETURNING id",
                [len(face_ids)],
            ).fetchone()
            person_id = row[0]
            placeholders = ", ".join(["?"] * len(face_ids))
            conn.execute(
                f"UPDATE faces SET person_id = ? WHERE id IN ({placeholders})",
                [person_id, *face_ids],
            )
            person_ids.append(person_id)
    except Exception:
        conn.rollback()
        raise
    conn.commit()
    return person_ids


def list_persons(conn: duckdb.DuckDBPyConnection) -> list[Person]:
    """All persons, largest cluster first."""
    rows = conn.execute(
        "SELECT id, name, face_count, created_at FROM persons ORDER BY face_count DESC, id ASC"
    ).fetchall()
    return [_row_to_person(row) for row in rows]


def get_person(conn: duckdb.DuckDBPyConnection, person_id: int) -> Person | None:
    row = conn.execute(
        "SELECT id, name, face_count, created_at FROM persons WHERE id = ?", [person_id]
    ).fetchone()
    if row is None:
        return None
    return _row_to_person(row)


def get_face_groups(conn: duckdb.DuckDBPyConnection) -> dict[int, set[int]]:
    """Map each person id to the set of its face ids."""
    rows = conn.execute(
        "SELECT person_id, id FROM faces WHERE person_id IS NOT NULL"
    ).fetchall()
    groups: dict[int, set[int]] = {}
    for person_id, face_id in rows:
        groups.setdefault(person_id, set()).add(face_id)
    return groups


def _row_to_person(row: tuple) -> Person:
    return Person(id=row[0], name=row[1], face_count=row[2], created_at=row[3])
