"""Project-wide configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(os.environ.get("PHOTO_SPACE_PROJECT_ROOT", Path.cwd()))

load_dotenv(PROJECT_ROOT / ".env")

DB_PATH = Path(os.environ.get("PHOTO_SPACE_DB_PATH", PROJECT_ROOT / "photo_space.duckdb"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Recognition service – AWS Rekognition
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
REKOGNITION_COLLECTION_ID = os.environ.get("REKOGNITION_COLLECTION_ID", "photo-space-faces")
REKOGNITION_CONNECT_TIMEOUT = float(os.environ.get("REKOGNITION_CONNECT_TIMEOUT", "10"))
REKOGNITION_READ_TIMEOUT = float(os.environ.get("REKOGNITION_READ_TIMEOUT", "60"))
REKOGNITION_MAX_ATTEMPTS = int(os.environ.get("REKOGNITION_MAX_ATTEMPTS", "1"))

MIN_CONFIDENCE = 90.0  # IndexFaces confidence (0-100)
MATCH_THRESHOLD = 80.0  # SearchFaces similarity (0-100)
MAX_SEARCH_RESULTS = 100

# Landmark detector – MediaPipe Face Mesh (468 points)
MESH_MAX_FACES = int(os.environ.get("MESH_MAX_FACES", "20"))
MESH_MIN_DETECTION_CONFIDENCE = 0.5

# Indexing
IOU_THRESHOLD = 0.3
CONCURRENCY = 3
MAX_IMAGE_BYTES = 5 * 1024 * 1024  # Rekognition raw-bytes limit
RESIZE_MAX_DIM = 2048
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "60"))

# CDN (Cloudinary-style delivery URLs)
CDN_UPLOAD_MARKER = os.environ.get("CDN_UPLOAD_MARKER", "/image/upload/")
THUMBNAIL_SIZE = 80
THUMBNAIL_PADDING = 0.3
