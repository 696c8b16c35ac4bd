"""Run both batch stages back to back: index new photos, then re-cluster."""

import sys

import httpx

from photo_space_faces.clustering.engine import ClusteringEngine
from photo_space_faces.config import HTTP_TIMEOUT, LOG_LEVEL, REKOGNITION_COLLECTION_ID
from photo_space_faces.db import get_connection
from photo_space_faces.indexing.extractor import FaceExtractor
from photo_space_faces.indexing.indexer import index_corpus
from photo_space_faces.indexing.landmarks import MediaPipeLandmarkDetector
from photo_space_faces.indexing.recognition import RekognitionClient
from photo_space_faces.log import setup_logging


def main() -> int:
    setup_logging(LOG_LEVEL)
    recognition = RekognitionClient()
    recognition.ensure_collection(REKOGNITION_COLLECTION_ID)

    conn = get_connection()
    detector = MediaPipeLandmarkDetector()
    try:
        with httpx.Client(timeout=HTTP_TIMEOUT, follow_redirects=True) as http_client:
            extractor = FaceExtractor(recognition, detector, http_client)
            index_summary = index_corpus(conn, extractor)
        result = ClusteringEngine(recognition).run(conn)
    finally:
        detector.close()
        conn.close()

    print(f"Indexed {index_summary.faces_indexed} new faces; {result.persons} persons.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
