"""MediaPipe Face Mesh wrapper for dense facial landmarks."""

import threading

import numpy as np

from photo_space_faces.config import MESH_MAX_FACES, MESH_MIN_DETECTION_CONFIDENCE
from photo_space_faces.geometry import BoundingBox
from photo_space_faces.models import LandmarkFace

MESH_POINTS = 468


class MediaPipeLandmarkDetector:
    """Detect faces and their 468-point landmark mesh.

    The graph is loaded once and shared by every photo in a run. MediaPipe
    graphs are not re-entrant, so calls are serialized.
    """

    def __init__(
        self,
        max_faces: int = MESH_MAX_FACES,
        min_detection_confidence: float = MESH_MIN_DETECTION_CONFIDENCE,
    ) -> None:
        import mediapipe as mp

        self.mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=True,
            max_num_faces=max_faces,
            refine_landmarks=False,
            min_detection_confidence=min_detection_confidence,
        )
        self._lock = threading.Lock()

    def detect(self, pixels: np.ndarray, width: int, height: int) -> list[LandmarkFace]:
        """Detect faces in an RGB ``(height, width, 3)`` uint8 array.

        Args:
            pixels: Decoded RGB image.
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            One LandmarkFace per detected face, in normalized coordinates.
            Faces whose landmark extent is empty are dropped.
        """
        with self._lock:
            results = self.mesh.process(pixels)

        faces: list[LandmarkFace] = []
        for face_landmarks in results.multi_face_landmarks or []:
            xs = np.array([lm.x for lm in face_landmarks.landmark]) * width
            ys = np.array([lm.y for lm in face_landmarks.landmark]) * height
            face = landmark_face_from_pixels(xs, ys, width, height)
            if face is not None:
                faces.append(face)
        return faces

    def close(self) -> None:
        self.mesh.close()


def landmark_face_from_pixels(
    xs: np.ndarray, ys: np.ndarray, width: int, height: int
) -> LandmarkFace | None:
    """Build a normalized LandmarkFace from pixel-space landmark coordinates.

    The box is the landmarks' extent clipped to the image; points are
    clipped to ``[0, 1]``.
    """
    if len(xs) == 0:
        return None
    x1 = float(np.clip(xs.min(), 0, width))
    y1 = float(np.clip(ys.min(), 0, height))
    x2 = float(np.clip(xs.max(), 0, width))
    y2 = float(np.clip(ys.max(), 0, height))

    box = BoundingBox.from_pixels(x1, y1, x2 - x1, y2 - y1, width, height)
    if not box.is_valid():
        return None
    norm_xs = np.clip(xs / width, 0.0, 1.0)
    norm_ys = np.clip(ys / height, 0.0, 1.0)
    points = [(float(x), float(y)) for x, y in zip(norm_xs, norm_ys)]
    return LandmarkFace(box=box, landmarks=points)
