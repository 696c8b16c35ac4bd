"""Per-photo face extraction: recognition + landmark mesh, fused by IoU."""

import enum
import logging
from dataclasses import dataclass
from typing import Protocol

import duckdb
import httpx
import numpy as np

from photo_space_faces.catalog.cdn import thumbnail_url
from photo_space_faces.config import (
    IOU_THRESHOLD,
    MAX_IMAGE_BYTES,
    REKOGNITION_COLLECTION_ID,
    RESIZE_MAX_DIM,
    THUMBNAIL_SIZE,
)
from photo_space_faces.geometry import iou
from photo_space_faces.indexing.face_repository import insert_faces, photo_has_faces
from photo_space_faces.indexing.images import decode_rgb, fetch_image
from photo_space_faces.indexing.recognition import RecognitionServiceError, RekognitionClient
from photo_space_faces.models import DetectedFace, Face, LandmarkFace, Point

logger = logging.getLogger(__name__)


class LandmarkDetector(Protocol):
    def detect(self, pixels: np.ndarray, width: int, height: int) -> list[LandmarkFace]: ...


class ExtractionStatus(enum.Enum):
    INDEXED = "indexed"
    ALREADY_INDEXED = "already_indexed"
    NO_FACES = "no_faces"
    FAILED = "failed"


@dataclass(frozen=True)
class ExtractionResult:
    photo_name: str
    status: ExtractionStatus
    faces: int = 0
    meshed: int = 0


def match_landmarks(
    detections: list[DetectedFace],
    landmark_faces: list[LandmarkFace],
    threshold: float = IOU_THRESHOLD,
) -> list[list[Point]]:
    """Pick a landmark mesh for each recognition detection.

    Each detection independently takes the landmark face with the highest
    IoU (first one wins on ties) if that IoU reaches ``threshold``, otherwise
    an empty list. Two detections may take the same landmark face.
    """
    matched: list[list[Point]] = []
    for det in detections:
        best_iou = 0.0
        best: LandmarkFace | None = None
        for candidate in landmark_faces:
            score = iou(det.box, candidate.box)
            if score > best_iou:
                best_iou = score
                best = candidate
        if best is not None and best_iou >= threshold:
            matched.append(list(best.landmarks))
        else:
            matched.append([])
    return matched


class FaceExtractor:
    """Turn one catalog photo into persisted face rows."""

    def __init__(
        self,
        recognition: RekognitionClient,
        detector: LandmarkDetector,
        http_client: httpx.Client,
        collection_id: str = REKOGNITION_COLLECTION_ID,
        iou_threshold: float = IOU_THRESHOLD,
        max_image_bytes: int = MAX_IMAGE_BYTES,
        resize_max_dim: int = RESIZE_MAX_DIM,
        thumbnail_size: int = THUMBNAIL_SIZE,
    ) -> None:
        self.recognition = recognition
        self.detector = detector
        self.http_client = http_client
        self.collection_id = collection_id
        self.iou_threshold = iou_threshold
        self.max_image_bytes = max_image_bytes
        self.resize_max_dim = resize_max_dim
        self.thumbnail_size = thumbnail_size

    def extract(
        self,
        conn: duckdb.DuckDBPyConnection,
        photo_name: str,
        photo_url: str,
        log: logging.Logger | logging.LoggerAdapter = logger,
    ) -> ExtractionResult:
        """Index the faces of one photo unless it already has face rows.

        Fetch and recognition-service failures are logged and reported as
        FAILED; a missing collection propagates.
        """
        if photo_has_faces(conn, photo_name):
            log.info("Skipping %s (already processed)", photo_name)
            return ExtractionResult(photo_name, ExtractionStatus.ALREADY_INDEXED)

        try:
            fetched = fetch_image(
                self.http_client,
                photo_url,
                max_bytes=self.max_image_bytes,
                max_dim=self.resize_max_dim,
            )
            pixels = decode_rgb(fetched.data)
        except (httpx.HTTPError, OSError) as e:
            log.error("%s: could not load image: %s", photo_name, e)
            return ExtractionResult(photo_name, ExtractionStatus.FAILED)

        height, width = pixels.shape[:2]

        try:
            detections = self.recognition.index_faces(self.collection_id, fetched.data, photo_name)
        except RecognitionServiceError as e:
            log.error("%s: Rekognition error: %s", photo_name, e)
            return ExtractionResult(photo_name, ExtractionStatus.FAILED)

        if not detections:
            log.info("%s: no faces (Rekognition)", photo_name)
            return ExtractionResult(photo_name, ExtractionStatus.NO_FACES)

        try:
            landmark_faces = self.detector.detect(pixels, width, height)
        except Exception:
            # faces are already in the collection; keep them without meshes
            log.exception("%s: landmark detection failed", photo_name)
            landmark_faces = []

        meshes = match_landmarks(detections, landmark_faces, self.iou_threshold)

        faces = [
            Face(
                id=None,
                photo_name=photo_name,
                external_face_id=det.external_face_id,
                landmarks=landmarks,
                box=det.box,
                thumbnail=thumbnail_url(
                    photo_url,
                    det.box,
                    fetched.original_width,
                    fetched.original_height,
                    size=self.thumbnail_size,
                ),
            )
            for det, landmarks in zip(detections, meshes)
        ]
        insert_faces(conn, faces)

        meshed = sum(1 for landmarks in meshes if landmarks)
        log.info("%s: %d face(s) indexed, %d mesh-matched", photo_name, len(faces), meshed)
        return ExtractionResult(photo_name, ExtractionStatus.INDEXED, faces=len(faces), meshed=meshed)
