"""Tests for landmark correspondence and per-photo face extraction."""

import httpx
import pytest
from conftest import (
    CDN_BASE,
    FakeDetector,
    FakeRecognition,
    detected,
    landmark_face,
    png_bytes,
)

from photo_space_faces.indexing.extractor import ExtractionStatus, FaceExtractor, match_landmarks
from photo_space_faces.indexing.face_repository import get_faces_for_photo
from photo_space_faces.indexing.recognition import (
    CollectionNotFoundError,
    RecognitionServiceError,
)

PHOTO = "party.png"
PHOTO_URL = f"{CDN_BASE}v1/photo-space/{PHOTO}"


def _http(status: int = 200) -> httpx.Client:
    data = png_bytes(100, 50)

    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status)
        return httpx.Response(200, content=data)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _face_count(conn) -> int:
    return conn.execute("SELECT COUNT(*) FROM faces").fetchone()[0]


# -- correspondence matching --


def test_match_picks_highest_iou_landmark_face():
    det = detected("f1", (0.1, 0.1, 0.2, 0.2))
    exact = landmark_face((0.1, 0.1, 0.2, 0.2))
    far = landmark_face((0.6, 0.6, 0.1, 0.1))
    assert match_landmarks([det], [far, exact]) == [exact.landmarks]


def test_match_below_threshold_gives_empty_landmarks():
    det = detected("f1", (0.0, 0.0, 0.2, 0.2))
    # overlap 0.2 x 0.04 -> IoU = 0.008 / 0.072 ~ 0.11
    weak = landmark_face((0.0, 0.16, 0.2, 0.2))
    assert match_landmarks([det], [weak], threshold=0.3) == [[]]
    assert match_landmarks([det], [weak], threshold=0.1) == [weak.landmarks]


def test_match_without_landmark_faces():
    assert match_landmarks([detected("f1", (0.1, 0.1, 0.2, 0.2))], []) == [[]]


def test_match_is_many_to_one():
    a = detected("f1", (0.10, 0.10, 0.2, 0.2))
    b = detected("f2", (0.12, 0.12, 0.2, 0.2))
    only = landmark_face((0.11, 0.11, 0.2, 0.2))
    assert match_landmarks([a, b], [only]) == [only.landmarks, only.landmarks]


# -- extraction --


def test_extract_persists_faces_with_meshes_and_thumbnails(db_conn):
    recognition = FakeRecognition(
        detections={
            PHOTO: [detected("f1", (0.1, 0.1, 0.2, 0.2)), detected("f2", (0.6, 0.2, 0.2, 0.4))]
        }
    )
    mesh = landmark_face((0.1, 0.1, 0.2, 0.2), points=5)
    detector = FakeDetector([mesh])

    with _http() as http:
        result = FaceExtractor(recognition, detector, http).extract(db_conn, PHOTO, PHOTO_URL)

    assert result.status is ExtractionStatus.INDEXED
    assert (result.faces, result.meshed) == (2, 1)
    assert detector.calls == [(100, 50)]

    faces = {f.external_face_id: f for f in get_faces_for_photo(db_conn, PHOTO)}
    assert set(faces) == {"f1", "f2"}
    assert faces["f1"].landmarks == mesh.landmarks
    assert faces["f2"].landmarks == []
    assert faces["f2"].box.x == pytest.approx(0.6)
    assert faces["f2"].box.h == pytest.approx(0.4)
    assert faces["f1"].person_id is None
    assert faces["f1"].thumbnail.startswith(f"{CDN_BASE}c_crop,")
    assert faces["f1"].thumbnail.endswith(f"/v1/photo-space/{PHOTO}")


def test_extract_twice_is_a_no_op(db_conn):
    recognition = FakeRecognition(detections={PHOTO: [detected("f1", (0.1, 0.1, 0.2, 0.2))]})
    with _http() as http:
        extractor = FaceExtractor(recognition, FakeDetector(), http)
        first = extractor.extract(db_conn, PHOTO, PHOTO_URL)
        before = _face_count(db_conn)
        second = extractor.extract(db_conn, PHOTO, PHOTO_URL)

    assert first.status is ExtractionStatus.INDEXED
    assert second.status is ExtractionStatus.ALREADY_INDEXED
    assert _face_count(db_conn) == before == 1
    assert recognition.index_calls == [PHOTO]


def test_extract_no_detections_writes_nothing(db_conn):
    detector = FakeDetector()
    with _http() as http:
        result = FaceExtractor(FakeRecognition(), detector, http).extract(
            db_conn, PHOTO, PHOTO_URL
        )
    assert result.status is ExtractionStatus.NO_FACES
    assert _face_count(db_conn) == 0
    assert detector.calls == []


def test_extract_fetch_failure_skips_photo(db_conn):
    recognition = FakeRecognition()
    with _http(status=404) as http:
        result = FaceExtractor(recognition, FakeDetector(), http).extract(
            db_conn, PHOTO, PHOTO_URL
        )
    assert result.status is ExtractionStatus.FAILED
    assert recognition.index_calls == []


def test_extract_recognition_error_is_not_fatal(db_conn):
    recognition = FakeRecognition(detections={PHOTO: RecognitionServiceError("throttled")})
    with _http() as http:
        result = FaceExtractor(recognition, FakeDetector(), http).extract(
            db_conn, PHOTO, PHOTO_URL
        )
    assert result.status is ExtractionStatus.FAILED
    assert _face_count(db_conn) == 0


def test_extract_missing_collection_propagates(db_conn):
    recognition = FakeRecognition(collection_exists=False)
    with _http() as http:
        extractor = FaceExtractor(recognition, FakeDetector(), http)
        with pytest.raises(CollectionNotFoundError):
            extractor.extract(db_conn, PHOTO, PHOTO_URL)


def test_extract_keeps_faces_when_landmark_detector_fails(db_conn):
    recognition = FakeRecognition(detections={PHOTO: [detected("f1", (0.1, 0.1, 0.2, 0.2))]})
    detector = FakeDetector(error=RuntimeError("model crashed"))
    with _http() as http:
        result = FaceExtractor(recognition, detector, http).extract(db_conn, PHOTO, PHOTO_URL)
    assert result.status is ExtractionStatus.INDEXED
    assert result.meshed == 0
    [face] = get_faces_for_photo(db_conn, PHOTO)
    assert face.landmarks == []
