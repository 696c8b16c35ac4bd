"""AWS Rekognition adapter: face collections, IndexFaces and SearchFaces."""

import logging
import re

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from photo_space_faces.config import (
    AWS_REGION,
    MATCH_THRESHOLD,
    MAX_SEARCH_RESULTS,
    MIN_CONFIDENCE,
    REKOGNITION_CONNECT_TIMEOUT,
    REKOGNITION_MAX_ATTEMPTS,
    REKOGNITION_READ_TIMEOUT,
)
from photo_space_faces.geometry import BoundingBox
from photo_space_faces.models import DetectedFace

logger = logging.getLogger(__name__)

_NOT_FOUND = "ResourceNotFoundException"
_EXTERNAL_ID_INVALID = re.compile(r"[^a-zA-Z0-9_.\-:]")


class RecognitionServiceError(RuntimeError):
    """A single Rekognition call failed (network, throttling, bad input)."""


class CollectionNotFoundError(RuntimeError):
    """The face collection does not exist. Fatal for the whole run."""

    def __init__(self, collection_id: str) -> None:
        super().__init__(f"Rekognition collection '{collection_id}' does not exist")
        self.collection_id = collection_id


class RekognitionClient:
    """Thin wrapper over the boto3 Rekognition client."""

    def __init__(
        self,
        client=None,
        region: str = AWS_REGION,
        min_confidence: float = MIN_CONFIDENCE,
    ) -> None:
        if client is None:
            client = boto3.client(
                "rekognition",
                region_name=region,
                config=Config(
                    connect_timeout=REKOGNITION_CONNECT_TIMEOUT,
                    read_timeout=REKOGNITION_READ_TIMEOUT,
                    retries={"mode": "standard", "max_attempts": REKOGNITION_MAX_ATTEMPTS},
                ),
            )
        self.client = client
        self.min_confidence = min_confidence

    def collection_exists(self, collection_id: str) -> bool:
        try:
            self.client.describe_collection(CollectionId=collection_id)
        except ClientError as e:
            if _error_code(e) == _NOT_FOUND:
                return False
            raise RecognitionServiceError(str(e)) from e
        except BotoCoreError as e:
            raise RecognitionServiceError(str(e)) from e
        return True

    def ensure_collection(self, collection_id: str) -> bool:
        """Create the collection if it does not exist. Returns True if created."""
        if self.collection_exists(collection_id):
            logger.info("Rekognition collection '%s' exists.", collection_id)
            return False
        try:
            self.client.create_collection(CollectionId=collection_id)
        except (BotoCoreError, ClientError) as e:
            raise RecognitionServiceError(str(e)) from e
        logger.info("Created Rekognition collection '%s'.", collection_id)
        return True

    def require_collection(self, collection_id: str) -> None:
        if not self.collection_exists(collection_id):
            raise CollectionNotFoundError(collection_id)

    def delete_collection(self, collection_id: str) -> bool:
        """Delete the collection. Returns False if it was already gone."""
        try:
            self.client.delete_collection(CollectionId=collection_id)
        except ClientError as e:
            if _error_code(e) == _NOT_FOUND:
                return False
            raise RecognitionServiceError(str(e)) from e
        except BotoCoreError as e:
            raise RecognitionServiceError(str(e)) from e
        return True

    def index_faces(
        self, collection_id: str, image_bytes: bytes, external_id: str
    ) -> list[DetectedFace]:
        """Index every face in the image and return the confident ones.

        Detections below ``min_confidence`` or with an empty box are dropped.
        """
        response = self._call(
            collection_id,
            "index_faces",
            CollectionId=collection_id,
            Image={"Bytes": image_bytes},
            ExternalImageId=external_image_id(external_id),
            DetectionAttributes=["DEFAULT"],
            QualityFilter="AUTO",
        )

        detections: list[DetectedFace] = []
        for record in response.get("FaceRecords", []):
            face = record.get("Face") or {}
            face_id = face.get("FaceId")
            raw_box = face.get("BoundingBox")
            confidence = face.get("Confidence", 0.0)
            if not face_id or not raw_box or confidence < self.min_confidence:
                continue
            box = BoundingBox(
                x=raw_box.get("Left", 0.0),
                y=raw_box.get("Top", 0.0),
                w=raw_box.get("Width", 0.0),
                h=raw_box.get("Height", 0.0),
            )
            if not box.is_valid():
                continue
            detections.append(DetectedFace(external_face_id=face_id, box=box, confidence=confidence))
        return detections

    def search_faces(
        self,
        collection_id: str,
        face_id: str,
        threshold: float = MATCH_THRESHOLD,
        max_results: int = MAX_SEARCH_RESULTS,
    ) -> list[tuple[str, float]]:
        """Return ``(face_id, similarity)`` for faces similar to ``face_id``."""
        response = self._call(
            collection_id,
            "search_faces",
            CollectionId=collection_id,
            FaceId=face_id,
            FaceMatchThreshold=threshold,
            MaxFaces=max_results,
        )
        matches = []
        for match in response.get("FaceMatches", []):
            matched_id = (match.get("Face") or {}).get("FaceId")
            if matched_id:
                matches.append((matched_id, match.get("Similarity", 0.0)))
        return matches

    def _call(self, collection_id: str, operation: str, **params) -> dict:
        try:
            return getattr(self.client, operation)(**params)
        except ClientError as e:
            if _error_code(e) == _NOT_FOUND:
                raise CollectionNotFoundError(collection_id) from e
            raise RecognitionServiceError(f"{operation} failed: {e}") from e
        except BotoCoreError as e:
            raise RecognitionServiceError(f"{operation} failed: {e}") from e


def external_image_id(name: str) -> str:
    """Map a photo name onto Rekognition's ExternalImageId alphabet."""
    return _EXTERNAL_ID_INVALID.sub("_", name)[:255]


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")
