"""Tests for face rows CRUD operations."""

from conftest import add_faces, make_face, make_photo

from photo_space_faces.catalog.repository import insert_photos
from photo_space_faces.indexing.face_repository import (
    get_face_stats,
    get_faces_for_photo,
    insert_faces,
    list_clusterable_faces,
    photo_has_faces,
)


def test_insert_and_read_back(db_conn):
    points = [(0.1, 0.2), (0.3, 0.4)]
    insert_faces(db_conn, [make_face("a.jpg", "f1", box=(0.25, 0.5, 0.125, 0.25), landmarks=points)])

    [face] = get_faces_for_photo(db_conn, "a.jpg")
    assert face.id is not None
    assert face.external_face_id == "f1"
    assert face.landmarks == points
    assert (face.box.x, face.box.y, face.box.w, face.box.h) == (0.25, 0.5, 0.125, 0.25)
    assert face.person_id is None


def test_photo_has_faces(db_conn):
    assert not photo_has_faces(db_conn, "a.jpg")
    add_faces(db_conn, "f1", photo_name="a.jpg")
    assert photo_has_faces(db_conn, "a.jpg")
    assert not photo_has_faces(db_conn, "b.jpg")


def test_list_clusterable_faces_in_insertion_order(db_conn):
    first = add_faces(db_conn, "f1", None, "f2", photo_name="a.jpg")
    second = add_faces(db_conn, "f3", photo_name="b.jpg")
    assert list_clusterable_faces(db_conn) == [
        (first[0], "f1"),
        (first[2], "f2"),
        (second[0], "f3"),
    ]


def test_get_face_stats(db_conn):
    insert_photos(db_conn, [make_photo("a.jpg"), make_photo("b.jpg"), make_photo("c.jpg")])
    insert_faces(
        db_conn,
        [
            make_face("a.jpg", "f1", landmarks=[(0.1, 0.1)]),
            make_face("a.jpg", "f2"),
            make_face("b.jpg", "f3"),
        ],
    )
    assert get_face_stats(db_conn) == (3, 2, 3, 1)
